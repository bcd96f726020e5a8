"""Quiz, grading and review models."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .entities import Question


class LessonGate(str, Enum):
    UNLOCKED = "unlocked"
    LOCKED = "locked"


class GradeOutcome(BaseModel):
    """Raw grading of one attempt, before the 0-10 scaling."""
    score: int  # Questions answered correctly
    total: int
    time_spent: str  # "m:ss"
    answers: Dict[int, str] = Field(default_factory=dict)


class LessonCard(BaseModel):
    lesson_id: int
    name: str
    title: str = ""
    gate: LessonGate
    best_score: Optional[float] = None
    passed: bool = False
    target_score: float
    question_count: Optional[int] = None  # None = "Tất cả"
    timeout_minutes: Optional[float] = None


class ReviewItem(BaseModel):
    question: Question
    submitted: str = ""
    answer_key: str = ""
    correct: bool
    explanation: str = ""


class QuizReview(BaseModel):
    lesson_id: int
    lesson_name: str
    score: int
    total: int
    final_score: float
    target_score: float
    passed: bool
    celebrate: bool
    time_spent: str
    tab: str = "ALL"  # ALL or WRONG
    answers_readable: bool = True
    notice: Optional[str] = None
    items: List[ReviewItem] = Field(default_factory=list)
    persisted: Optional[bool] = None


class CompletedAttempt(BaseModel):
    """Last graded attempt of the session, kept for the review screen."""
    lesson_id: int
    questions: List[Question]
    outcome: GradeOutcome
    persisted: bool
