"""Pydantic models for the EduPulse service"""

from .entities import (
    PASS,
    FAIL,
    NOT_ATTEMPTED,
    ROLE_STUDENT,
    ROLE_TEACHER,
    ROLE_ADMIN,
    QuestionType,
    Subject,
    Lesson,
    Question,
    User,
    Result,
    Snapshot,
    LoginResponse,
)
from .quiz import LessonGate, GradeOutcome, LessonCard, ReviewItem, QuizReview, CompletedAttempt
from .scope import ScopedEntities
from .analytics import (
    AnalyticsFilters,
    AnalyticsOptions,
    LeaderboardEntry,
    AnalyticsRow,
    AnalyticsReport,
)
from .requests import LoginRequest, AnswerUpdate, FilterChange, ItemSave
from .roster import (
    NO_SCORE,
    RosterRow,
    RosterFilters,
    SortConfig,
    ReminderMail,
    RosterView,
)

__all__ = [
    # Constants
    "PASS",
    "FAIL",
    "NOT_ATTEMPTED",
    "NO_SCORE",
    "ROLE_STUDENT",
    "ROLE_TEACHER",
    "ROLE_ADMIN",
    
    # Entity models
    "QuestionType",
    "Subject",
    "Lesson",
    "Question",
    "User",
    "Result",
    "Snapshot",
    "LoginResponse",
    
    # Quiz models
    "LessonGate",
    "GradeOutcome",
    "LessonCard",
    "ReviewItem",
    "QuizReview",
    "CompletedAttempt",
    
    # Scope models
    "ScopedEntities",
    
    # Analytics models
    "AnalyticsFilters",
    "AnalyticsOptions",
    "LeaderboardEntry",
    "AnalyticsRow",
    "AnalyticsReport",
    
    # Roster models
    "RosterRow",
    "RosterFilters",
    "SortConfig",
    "ReminderMail",
    "RosterView",
    
    # Request models
    "LoginRequest",
    "AnswerUpdate",
    "FilterChange",
    "ItemSave",
]
