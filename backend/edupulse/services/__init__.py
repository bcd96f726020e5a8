"""Services for grading, gating, scoping and aggregating quiz results."""

from .grading import grade_attempt, final_score, build_result, build_review, parse_answer_map
from .quiz import QuizSession, QuizTimer, select_quiz_questions
from .gating import evaluate_lesson_gate, lesson_cards, student_subjects
from .scoping import scope_for_role
from .analytics import AnalyticsFilterState, aggregate_analytics, analytics_view
from .roster import build_roster, roster_view, reminder_mail, next_sort, attempt_detail
from .submission import SubmissionService

__all__ = [
    "grade_attempt",
    "final_score",
    "build_result",
    "build_review",
    "parse_answer_map",
    "QuizSession",
    "QuizTimer",
    "select_quiz_questions",
    "evaluate_lesson_gate",
    "lesson_cards",
    "student_subjects",
    "scope_for_role",
    "AnalyticsFilterState",
    "aggregate_analytics",
    "analytics_view",
    "build_roster",
    "roster_view",
    "reminder_mail",
    "next_sort",
    "attempt_detail",
    "SubmissionService",
]
