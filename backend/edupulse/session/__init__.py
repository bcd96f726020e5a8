"""In-memory session: loaded snapshot, signed-in user and view state."""

import logging
from typing import Optional

from ..clients import StoreClient, StoreError
from ..models import CompletedAttempt, Result, ScopedEntities, Snapshot, SortConfig, User
from ..services.analytics import AnalyticsFilterState
from ..services.quiz import QuizSession, QuizTimer
from ..services.scoping import scope_for_role

logger = logging.getLogger(__name__)


class EduPulseSession:
    """
    Single in-memory session.

    The snapshot is fetched once (and on explicit refresh); results graded
    during the session are appended locally whether or not the store
    accepted them.
    """

    def __init__(self, store: StoreClient):
        self.store = store
        self.snapshot = Snapshot()
        self.user: Optional[User] = None
        self.quiz: Optional[QuizSession] = None
        self.timer: Optional[QuizTimer] = None
        self.last_attempt: Optional[CompletedAttempt] = None
        self.analytics: Optional[AnalyticsFilterState] = None
        self.roster_sort = SortConfig()

    # ============ SNAPSHOT ============

    async def refresh(self) -> bool:
        """Re-fetch the snapshot; on failure keep the current one."""
        try:
            self.snapshot = await self.store.get_data()
            return True
        except StoreError as e:
            logger.error(f"Error fetching data: {e}")
            return False

    def append_result(self, result: Result):
        self.snapshot.results.append(result)

    # ============ USER ============

    def sign_in(self, user: User):
        self.stop_quiz()
        self.user = user
        self.last_attempt = None
        self.analytics = AnalyticsFilterState(user)
        self.roster_sort = SortConfig()
        logger.info(f"Signed in: {user.account} ({user.role})")

    def sign_out(self) -> Optional[User]:
        user = self.user
        self.stop_quiz()
        self.user = None
        self.last_attempt = None
        self.analytics = None
        return user

    def scoped(self) -> ScopedEntities:
        if self.user is None:
            raise RuntimeError("No signed-in user")
        return scope_for_role(self.user, self.snapshot)

    # ============ QUIZ ============

    def stop_quiz(self):
        if self.timer:
            self.timer.cancel()
        self.timer = None
        self.quiz = None


# Global session instance (initialized in main app)
_session_instance: Optional[EduPulseSession] = None

def init_session(store: StoreClient) -> EduPulseSession:
    """Initialize global session instance."""
    global _session_instance
    _session_instance = EduPulseSession(store)
    return _session_instance

def get_session() -> EduPulseSession:
    """Get global session instance."""
    if _session_instance is None:
        raise RuntimeError("Session not initialized. Call init_session() first.")
    return _session_instance
