"""
Quiz session state: question selection, answer recording and the countdown.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from ..config.settings import settings
from ..models import Lesson, Question, QuestionType

logger = logging.getLogger(__name__)


def select_quiz_questions(
    lesson: Lesson,
    questions: Sequence[Question],
    rng: Optional[random.Random] = None
) -> List[Question]:
    """Shuffle the lesson's pool and cap it at ``lesson.count`` when set."""
    rng = rng or random.Random()
    pool = [q for q in questions if q.lesson_id == lesson.id]
    rng.shuffle(pool)
    if lesson.count and lesson.count > 0:
        return pool[:lesson.count]
    return pool


def time_limit_seconds(lesson: Lesson, question_count: int) -> int:
    if lesson.timeout_minutes and lesson.timeout_minutes > 0:
        return int(lesson.timeout_minutes * 60)
    return question_count * settings.SECONDS_PER_QUESTION


class QuizSession:
    """One student's in-progress attempt at a lesson."""

    def __init__(
        self,
        lesson: Lesson,
        questions: List[Question],
        started_at: Optional[datetime] = None
    ):
        if not questions:
            raise ValueError(f"Lesson '{lesson.name}' has no questions")
        self.lesson = lesson
        self.questions = questions
        self.started_at = started_at or datetime.now(timezone.utc)
        self.remaining_seconds = time_limit_seconds(lesson, len(questions))
        self.answers: Dict[int, str] = {}
        self.submitting = False

    def _question(self, question_id: int) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(question_id)

    def answer(self, question_id: int, value: str) -> str:
        """Replace the answer (short answer, single choice, true/false)."""
        self._question(question_id)
        if not self.submitting:
            self.answers[question_id] = value
        return self.answers.get(question_id, "")

    def toggle_option(self, question_id: int, letter: str) -> str:
        """
        Select an option. Multi-choice questions toggle membership and keep the
        selection sorted as "A, C"; deselecting everything leaves "".
        """
        question = self._question(question_id)
        if self.submitting:
            return self.answers.get(question_id, "")

        letter = letter.strip().upper()
        if question.type == QuestionType.CHOOSE_MULTIPLE:
            current = [s.strip() for s in self.answers.get(question_id, "").split(",") if s.strip()]
            if letter in current:
                current.remove(letter)
            else:
                current.append(letter)
            self.answers[question_id] = ", ".join(sorted(current))
        else:
            self.answers[question_id] = letter
        return self.answers[question_id]

    def is_selected(self, question_id: int, letter: str) -> bool:
        return letter in [s.strip() for s in self.answers.get(question_id, "").split(",")]

    def tick(self) -> bool:
        """Advance the countdown by one second. Returns True once time is up."""
        if not self.submitting and self.remaining_seconds > 0:
            self.remaining_seconds -= 1
        return self.remaining_seconds <= 0

    def begin_submit(self) -> bool:
        """Double-submit guard: True only for the first caller."""
        if self.submitting:
            return False
        self.submitting = True
        return True

    def abort_submit(self):
        self.submitting = False


class QuizTimer:
    """Wakes every second, ticks the session and submits at zero."""

    def __init__(
        self,
        session: QuizSession,
        on_expire: Callable[[], Awaitable[object]],
        interval: float = 1.0
    ):
        self.session = session
        self.on_expire = on_expire
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def start(self):
        self._task = asyncio.create_task(self._run())

    def cancel(self):
        # Never cancel from inside the timer's own expiry callback
        if self._task and not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()

    async def _run(self):
        while not self.session.submitting:
            await asyncio.sleep(self.interval)
            if self.session.tick():
                logger.info(f"Time is up for lesson '{self.session.lesson.name}', submitting")
                await self.on_expire()
                return
