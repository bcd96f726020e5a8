"""
Analytics service - pass rate, leaderboard and result log over scoped results.

Filtering happens in two layers:
1. Structural filters, cascading grade -> class -> subject -> lesson.
2. Chart filters (status, student) on top; they only narrow the log table.

The leaderboard and pass rate are computed from layer 1 only.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from ..config.settings import settings
from ..models import (
    FAIL,
    PASS,
    AnalyticsFilters,
    AnalyticsOptions,
    AnalyticsReport,
    AnalyticsRow,
    LeaderboardEntry,
    Lesson,
    Result,
    ScopedEntities,
    Subject,
    User,
)
from ..utils import (
    extract_grade_number,
    format_score,
    is_grade_level_label,
    natural_sort_key,
    round_half_up,
)
from .scoping import scope_label

logger = logging.getLogger(__name__)

NO_MATCHING_ROWS = "Không tìm thấy dữ liệu phù hợp với bộ lọc"
CHART_STATUSES = (PASS, FAIL)


class AnalyticsFilterState:
    """
    Filter selections for one user's analytics view.

    Teachers have their grade fixed; subject-specialist teachers also have
    their subject fixed, and it survives grade changes.
    """

    def __init__(self, user: User):
        self.user = user
        self.filters = AnalyticsFilters()
        if self.grade_locked:
            self.filters.grade = extract_grade_number(user.class_name)
        if self.subject_locked:
            self.filters.subject = user.subject_teacher

    @property
    def grade_locked(self) -> bool:
        return self.user.is_teacher

    @property
    def subject_locked(self) -> bool:
        return self.user.is_teacher and bool(self.user.subject_teacher)

    def clear_chart_filters(self):
        self.filters.status = None
        self.filters.student = None

    # ============ STRUCTURAL ============

    def select_grade(self, grade: Optional[int]):
        if not self.grade_locked:
            self.filters.grade = grade
        self.filters.class_name = None
        if not self.subject_locked:
            self.filters.subject = None
        self.filters.lesson = None
        self.clear_chart_filters()

    def select_class(self, class_name: Optional[str]):
        self.filters.class_name = class_name
        self.clear_chart_filters()

    def select_subject(self, subject: Optional[str]):
        if not self.subject_locked:
            self.filters.subject = subject
        self.filters.lesson = None
        self.clear_chart_filters()

    def select_lesson(self, lesson: Optional[str]):
        self.filters.lesson = lesson
        self.clear_chart_filters()

    # ============ CHART ============

    def toggle_status(self, status: Optional[str]):
        """Selecting the active status again clears it."""
        if status not in CHART_STATUSES or self.filters.status == status:
            self.filters.status = None
        else:
            self.filters.status = status

    def toggle_student(self, name: Optional[str]):
        if not name or self.filters.student == name:
            self.filters.student = None
        else:
            self.filters.student = name


# ============ OPTION LISTS ============

def grade_options(all_classes: Sequence[str], results: Sequence[Result]) -> List[int]:
    """Known grades, from the class list when the store sent one, else from results."""
    source = all_classes if all_classes else [r.class_name for r in results]
    return sorted({g for g in (extract_grade_number(c) for c in source) if g > 0})


def class_options(
    user: User,
    all_classes: Sequence[str],
    results: Sequence[Result],
    grade: Optional[int]
) -> List[str]:
    source = list(all_classes) if all_classes else list({r.class_name.strip() for r in results})
    classes = [c for c in source if grade is None or extract_grade_number(c) == grade]

    if user.is_teacher:
        teacher_label = (user.class_name or "").strip()
        if is_grade_level_label(teacher_label):
            # The bare grade label duplicates the "all classes" choice
            classes = [c for c in classes if c != str(extract_grade_number(teacher_label))]
        else:
            classes = [c for c in classes if c == teacher_label]

    return sorted(set(classes), key=natural_sort_key)


def subject_options(subjects: Sequence[Subject], grade: Optional[int]) -> List[str]:
    return sorted({s.name for s in subjects if grade is None or s.grade == grade})


def lesson_options(
    subjects: Sequence[Subject],
    lessons: Sequence[Lesson],
    grade: Optional[int],
    subject: Optional[str]
) -> List[str]:
    subject_ids = {
        s.id for s in subjects
        if (grade is None or s.grade == grade) and (subject is None or s.name == subject)
    }
    return sorted({l.name for l in lessons if l.subject_id in subject_ids})


def analytics_title(user: User) -> str:
    label = scope_label(user)
    return f"Thống kê {label}" if label else "Báo cáo & Phân tích"


# ============ AGGREGATION ============

def apply_structural_filters(results: Sequence[Result], filters: AnalyticsFilters) -> List[Result]:
    return [
        r for r in results
        if (filters.grade is None or extract_grade_number(r.class_name) == filters.grade)
        and (filters.class_name is None or r.class_name.strip() == filters.class_name)
        and (filters.subject is None or r.subject_name == filters.subject)
        and (filters.lesson is None or r.lesson_name == filters.lesson)
    ]


def apply_chart_filters(results: Sequence[Result], filters: AnalyticsFilters) -> List[Result]:
    return [
        r for r in results
        if (filters.status is None or r.status == filters.status)
        and (filters.student is None or r.name == filters.student)
    ]


def leaderboard(results: Sequence[Result], size: int) -> List[LeaderboardEntry]:
    """
    Best (max) score per student name, highest first.

    Ties keep the order in which students were first encountered.
    """
    bests = {}
    for r in results:
        if r.name not in bests or r.score > bests[r.name]:
            bests[r.name] = r.score

    ranked = sorted(bests.items(), key=lambda item: item[1], reverse=True)
    return [
        LeaderboardEntry(name=name, score=score, score_display=format_score(score))
        for name, score in ranked[:size]
    ]


def aggregate_analytics(
    scoped_results: Sequence[Result],
    filters: AnalyticsFilters,
    leaderboard_size: Optional[int] = None
) -> AnalyticsReport:
    """Pass rate, top-N and the result log for the current filters."""
    if leaderboard_size is None:
        leaderboard_size = settings.LEADERBOARD_SIZE

    base = apply_structural_filters(scoped_results, filters)
    display = apply_chart_filters(base, filters)

    pass_count = sum(1 for r in base if r.status == PASS)
    fail_count = sum(1 for r in base if r.status == FAIL)
    graded = pass_count + fail_count

    report = AnalyticsReport(
        filters=filters.model_copy(),
        pass_count=pass_count,
        fail_count=fail_count,
        total=len(base),
        leaderboard=leaderboard(base, leaderboard_size),
        chart_filtered=filters.status is not None or filters.student is not None,
    )

    if graded > 0:
        report.pass_rate = pass_count / graded * 100
        report.pass_rate_display = round_half_up(report.pass_rate)

    report.rows = [
        AnalyticsRow(
            result_id=r.result_id,
            name=r.name,
            class_name=r.class_name,
            subject_name=r.subject_name,
            lesson_name=r.lesson_name,
            created_date=r.created_date,
            score=r.score,
            score_display=format_score(r.score),
            status=r.status,
        )
        for r in display
    ]
    if not report.rows:
        report.empty_message = NO_MATCHING_ROWS

    return report


def analytics_view(
    state: AnalyticsFilterState,
    scoped: ScopedEntities,
    all_classes: Sequence[str]
) -> Tuple[AnalyticsOptions, AnalyticsReport]:
    """Option lists plus report for the current state."""
    filters = state.filters
    classes = class_options(state.user, all_classes, scoped.results, filters.grade)

    # A class-level teacher has exactly one class: select it
    if (
        state.user.is_teacher
        and not is_grade_level_label(state.user.class_name)
        and len(classes) == 1
        and filters.class_name is None
    ):
        filters.class_name = classes[0]

    options = AnalyticsOptions(
        title=analytics_title(state.user),
        grades=[filters.grade] if state.grade_locked else grade_options(all_classes, scoped.results),
        classes=classes,
        subjects=subject_options(scoped.subjects, filters.grade),
        lessons=lesson_options(scoped.subjects, scoped.lessons, filters.grade, filters.subject),
        grade_locked=state.grade_locked,
        subject_locked=state.subject_locked,
    )
    return options, aggregate_analytics(scoped.results, filters)
