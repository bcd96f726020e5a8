"""
Roster service - one row per (visible student, lesson of their grade).

Each row carries the student's best attempt (highest score, not the latest)
or the "Chưa thi" sentinel when there is none.
"""

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

from ..models import (
    NO_SCORE,
    NOT_ATTEMPTED,
    GradeOutcome,
    Lesson,
    Question,
    QuizReview,
    ReminderMail,
    Result,
    RosterFilters,
    RosterRow,
    RosterView,
    ScopedEntities,
    SortConfig,
    Subject,
    User,
)
from ..utils import extract_grade_number, natural_sort_key
from .gating import student_attempts
from .grading import build_review, parse_answer_map

logger = logging.getLogger(__name__)

EMPTY_ROSTER = "Không có dữ liệu học sinh phù hợp"
NO_ANSWERS = "Học sinh chưa làm câu hỏi nào"
NUMERIC_COLUMNS = ("score",)


def best_attempt(attempts: Sequence[Result]) -> Optional[Result]:
    """Highest score; on a tie the later attempt wins."""
    best = None
    for attempt in attempts:
        if best is None or attempt.score >= best.score:
            best = attempt
    return best


def build_roster(
    students: Sequence[User],
    subjects: Sequence[Subject],
    lessons: Sequence[Lesson],
    results: Sequence[Result]
) -> List[RosterRow]:
    """Cross-join students x lessons of their grade x best attempt."""
    subjects_by_id = {s.id: s for s in subjects}
    rows = []

    for student in students:
        grade = extract_grade_number(student.class_name)
        relevant = [
            l for l in lessons
            if l.subject_id in subjects_by_id and subjects_by_id[l.subject_id].grade == grade
        ]

        for lesson in relevant:
            best = best_attempt(student_attempts(student, lesson, results))
            rows.append(RosterRow(
                class_name=student.class_name,
                name=student.name,
                account=student.account,
                email=student.email,
                subject_name=subjects_by_id[lesson.subject_id].name,
                lesson_id=lesson.id,
                lesson_name=lesson.name,
                score=best.score if best else NO_SCORE,
                status=best.status if best else NOT_ATTEMPTED,
                target=lesson.effective_target,
                result_id=best.result_id if best else None,
            ))

    return rows


def filter_roster(rows: Sequence[RosterRow], filters: RosterFilters) -> List[RosterRow]:
    return [
        row for row in rows
        if (filters.class_name is None or row.class_name == filters.class_name)
        and (filters.subject is None or row.subject_name == filters.subject)
        and (filters.lesson is None or row.lesson_name == filters.lesson)
        and (filters.status is None or row.status == filters.status)
    ]


def sort_roster(rows: Sequence[RosterRow], sort: SortConfig) -> List[RosterRow]:
    """Numeric columns by value, text columns in natural order ("9/2" before "9/10")."""
    if sort.key in NUMERIC_COLUMNS:
        key = lambda row: getattr(row, sort.key)
    else:
        key = lambda row: natural_sort_key(getattr(row, sort.key))
    return sorted(rows, key=key, reverse=sort.order == "desc")


def next_sort(current: SortConfig, key: str) -> SortConfig:
    """Clicking the active column flips its order; a new column starts ascending."""
    if current.key == key and current.order == "asc":
        return SortConfig(key=key, order="desc")
    return SortConfig(key=key, order="asc")


def roster_view(
    scoped: ScopedEntities,
    filters: RosterFilters,
    sort: SortConfig
) -> RosterView:
    rows = build_roster(scoped.students, scoped.subjects, scoped.lessons, scoped.results)
    rows = sort_roster(filter_roster(rows, filters), sort)

    if filters.subject is None:
        lesson_names = [l.name for l in scoped.lessons]
    else:
        subject_ids = {s.id for s in scoped.subjects if s.name == filters.subject}
        lesson_names = [l.name for l in scoped.lessons if l.subject_id in subject_ids]

    return RosterView(
        rows=rows,
        sort=sort,
        classes=sorted({s.class_name for s in scoped.students}, key=natural_sort_key),
        lessons=list(dict.fromkeys(lesson_names)),
        student_count=len(scoped.students),
        result_count=len(scoped.results),
        empty_message=None if rows else EMPTY_ROSTER,
    )


def reminder_mail(row: RosterRow) -> ReminderMail:
    """
    Compose the completion reminder for a Fail / not-attempted row.

    Returned as a mailto: link; sending is left to the user's mail client.
    """
    if not row.can_remind:
        raise ValueError(f"{row.name} already passed {row.lesson_name}")
    if not row.email:
        raise ValueError(f"{row.name} has no email address")

    subject = f"[EduPulse] Nhắc nhở hoàn thành bài tập: {row.lesson_name}"
    body = (
        f"Chào {row.name},\n\n"
        f"Hệ thống ghi nhận bạn chưa hoàn thành hoặc chưa đạt điểm mục tiêu cho bài tập \"{row.lesson_name}\".\n\n"
        f"Bạn hãy dành thời gian vào EduPulse để ôn tập và làm bài nhé!\n\n"
        f"Trân trọng,\nGiáo viên bộ môn."
    )
    url = f"mailto:{row.email}?subject={quote(subject, safe='')}&body={quote(body, safe='')}"
    logger.info(f"Reminder composed for {row.name} ({row.lesson_name})")
    return ReminderMail(to=row.email, subject=subject, body=body, url=url)


def attempt_detail(
    result: Result,
    lesson: Lesson,
    questions: Sequence[Question],
    tab: str = "ALL"
) -> QuizReview:
    """Review of a stored attempt; unreadable or empty answer data yields a notice."""
    answers = parse_answer_map(result.answers)
    presented = [q for q in questions if answers is None or q.id in answers]
    total = result.total_questions or len(presented)
    outcome = GradeOutcome(
        score=round(result.score * total / 10) if total else 0,
        total=total,
        time_spent=result.time_spent,
        answers=answers or {},
    )
    review = build_review(presented, answers, lesson, outcome, tab)
    if answers == {}:
        review.notice = NO_ANSWERS
    return review
