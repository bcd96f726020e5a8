"""
Grading service - scores a completed quiz attempt against its answer key.

Every question is worth exactly one point regardless of its stored ``point``
value; the raw score is later scaled to 0-10 by ``final_score``.
"""

import json
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from ..models import (
    FAIL,
    PASS,
    GradeOutcome,
    Lesson,
    Question,
    QuizReview,
    Result,
    ReviewItem,
    Subject,
    User,
)

logger = logging.getLogger(__name__)

UNKNOWN_SUBJECT = "Không xác định"
UNREADABLE_ANSWERS = "Không thể đọc dữ liệu bài làm"


def normalize_answer(value: Optional[str]) -> str:
    """
    Canonical form of an answer or answer key.

    Split on commas, trim, uppercase, drop empty tokens, sort, rejoin:
    " b, a" -> "A,B".
    """
    tokens = [token.strip().upper() for token in str(value or "").split(",")]
    return ",".join(sorted(token for token in tokens if token))


def is_correct(question: Question, answer: Optional[str]) -> bool:
    """Unanswered (None or "") never matches, even against an empty key."""
    submitted = normalize_answer(answer)
    if not submitted:
        return False
    return submitted == normalize_answer(question.answer_key)


def format_elapsed(milliseconds: float) -> str:
    """Elapsed time as "m:ss" (no hour component)."""
    milliseconds = max(0, int(milliseconds))
    minutes = milliseconds // 60000
    seconds = (milliseconds % 60000) // 1000
    return f"{minutes}:{seconds:02d}"


def grade_attempt(
    questions: Sequence[Question],
    answers: Mapping[int, str],
    started_at: datetime,
    finished_at: Optional[datetime] = None
) -> GradeOutcome:
    """
    Grade one attempt.

    Args:
        questions: Questions in the order they were presented
        answers: question id -> submitted answer string
        started_at: When the quiz session started
        finished_at: Submission time (defaults to now, in started_at's timezone)

    Returns:
        GradeOutcome with raw score, question count, "m:ss" time spent and the
        answer map (kept for review).
    """
    if finished_at is None:
        finished_at = datetime.now(started_at.tzinfo)

    raw = sum(1 for q in questions if is_correct(q, answers.get(q.id)))
    elapsed_ms = (finished_at - started_at).total_seconds() * 1000

    return GradeOutcome(
        score=raw,
        total=len(questions),
        time_spent=format_elapsed(elapsed_ms),
        answers={int(k): str(v) for k, v in answers.items()},
    )


def final_score(raw: int, total: int) -> float:
    """Raw score -> 0-10 scale, 0 when there were no questions."""
    return (raw / total) * 10 if total > 0 else 0.0


def verdict(score: float, lesson: Lesson) -> str:
    return PASS if score >= lesson.effective_target else FAIL


def generate_result_id(now: datetime) -> str:
    """Timestamp token: RES_<epoch milliseconds>."""
    return f"RES_{int(now.timestamp() * 1000)}"


def format_created_date(now: datetime) -> str:
    """Vietnamese locale timestamp, e.g. "14:05:09 19/10/2026"."""
    return f"{now:%H:%M:%S} {now.day}/{now.month}/{now.year}"


def build_result(
    user: User,
    lesson: Lesson,
    subject: Optional[Subject],
    outcome: GradeOutcome,
    now: Optional[datetime] = None
) -> Result:
    """Turn a graded attempt into the persisted Result record."""
    now = now or datetime.now()
    score = final_score(outcome.score, outcome.total)

    return Result(
        result_id=generate_result_id(now),
        name=user.name,
        class_name=user.class_name,
        subject_name=subject.name if subject else UNKNOWN_SUBJECT,
        lesson_name=lesson.name,
        score=score,
        total_questions=outcome.total,
        status=verdict(score, lesson),
        time_spent=outcome.time_spent,
        answers=json.dumps({str(k): v for k, v in outcome.answers.items()}, ensure_ascii=False),
        created_date=format_created_date(now),
        role=user.role,
        subject_id=subject.id if subject else None,
        lesson_id=lesson.id,
    )


# ============ REVIEW ============

def parse_answer_map(serialized: Optional[str]) -> Optional[Dict[int, str]]:
    """
    Decode a stored answer map.

    Returns None when the data cannot be read, so the review can show a
    notice instead of failing.
    """
    if not serialized:
        return {}
    try:
        raw = json.loads(serialized)
    except (TypeError, ValueError):
        logger.warning("Unreadable answer data in result")
        return None
    if not isinstance(raw, dict):
        return None

    answers = {}
    for key, value in raw.items():
        try:
            answers[int(key)] = "" if value is None else str(value)
        except (TypeError, ValueError):
            return None
    return answers


def build_review(
    questions: Sequence[Question],
    answers: Optional[Mapping[int, str]],
    lesson: Lesson,
    outcome: GradeOutcome,
    tab: str = "ALL"
) -> QuizReview:
    """Per-question review of an attempt; tab="WRONG" keeps only misses."""
    score = final_score(outcome.score, outcome.total)
    passed = score >= lesson.effective_target

    review = QuizReview(
        lesson_id=lesson.id,
        lesson_name=lesson.name,
        score=outcome.score,
        total=outcome.total,
        final_score=score,
        target_score=lesson.effective_target,
        passed=passed,
        celebrate=passed,
        time_spent=outcome.time_spent,
        tab="WRONG" if tab.upper() == "WRONG" else "ALL",
    )

    if answers is None:
        review.answers_readable = False
        review.notice = UNREADABLE_ANSWERS
        return review

    items: List[ReviewItem] = []
    for question in questions:
        submitted = answers.get(question.id, "")
        correct = is_correct(question, submitted)
        if review.tab == "WRONG" and correct:
            continue
        items.append(ReviewItem(
            question=question,
            submitted=submitted,
            answer_key=question.answer_key,
            correct=correct,
            explanation=question.explanation,
        ))
    review.items = items
    return review
