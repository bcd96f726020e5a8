"""
Submission service - coordinates the end of a quiz attempt.

FLOW:
1. Double-submit guard on the quiz session
2. Grade the attempt (grading service)
3. Build the Result record and append it to the in-memory snapshot
4. Send it to the store; a failure is logged but never blocks step 5
5. Record the attempt and close the quiz, unless a newer quiz replaced it
6. Build the review for the student
"""

import logging
from datetime import datetime
from typing import Optional

from ..clients import StoreError
from ..models import CompletedAttempt, QuizReview
from .grading import build_result, build_review, grade_attempt

logger = logging.getLogger(__name__)


class SubmissionService:
    """Grades, records and persists the session's active quiz."""

    def __init__(self, session):
        self.session = session

    async def submit(self, now: Optional[datetime] = None) -> Optional[QuizReview]:
        """
        Finish the active quiz.

        Returns:
            The review, or None when there is no active quiz or a submission
            is already in flight.
        """
        session = self.session
        quiz = session.quiz
        if quiz is None or session.user is None:
            return None
        if not quiz.begin_submit():
            logger.info("Submission already in progress, ignoring")
            return None

        try:
            finished_at = now or datetime.now(quiz.started_at.tzinfo)
            outcome = grade_attempt(quiz.questions, quiz.answers, quiz.started_at, finished_at)
            subject = session.snapshot.subject_by_id(quiz.lesson.subject_id)
            result = build_result(session.user, quiz.lesson, subject, outcome, finished_at.astimezone())
        except Exception:
            quiz.abort_submit()
            raise

        # Local state is authoritative for the session
        session.append_result(result)

        persisted = True
        try:
            await session.store.submit_result(result)
            logger.info(f"Result {result.result_id} saved ({result.name}, {result.lesson_name}, {result.score:.1f})")
        except StoreError as e:
            persisted = False
            logger.error(f"Error submitting result {result.result_id}: {e}")

        # A new quiz may have started while the store call was pending
        if session.quiz is quiz:
            session.last_attempt = CompletedAttempt(
                lesson_id=quiz.lesson.id,
                questions=quiz.questions,
                outcome=outcome,
                persisted=persisted,
            )
            session.stop_quiz()
        else:
            logger.info(f"Quiz '{quiz.lesson.name}' was replaced before its submission finished")

        review = build_review(quiz.questions, outcome.answers, quiz.lesson, outcome)
        review.persisted = persisted
        return review
