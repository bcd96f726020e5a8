"""
Lesson gating - which lessons of a subject a student may attempt.

Recomputed from the full result log on every call; progress is never stored.
"""

from typing import List, Optional, Sequence

from ..models import Lesson, LessonCard, LessonGate, Result, Subject, User
from ..utils import extract_grade_number, result_for_lesson, same_student


def student_attempts(student: User, lesson: Lesson, results: Sequence[Result]) -> List[Result]:
    return [r for r in results if same_student(r, student) and result_for_lesson(r, lesson)]


def has_passed(student: User, lesson: Lesson, results: Sequence[Result]) -> bool:
    return any(r.passed for r in student_attempts(student, lesson, results))


def best_score(student: User, lesson: Lesson, results: Sequence[Result]) -> Optional[float]:
    """Highest score across all attempts, None when never attempted."""
    scores = [r.score for r in student_attempts(student, lesson, results)]
    return max(scores) if scores else None


def evaluate_lesson_gate(
    student: User,
    lesson: Lesson,
    subject_lessons: Sequence[Lesson],
    results: Sequence[Result]
) -> LessonGate:
    """
    The first lesson of a subject (lowest id) is always unlocked; any other
    lesson unlocks once the student has a Pass on the lesson right before it.
    Unlocked lessons stay re-attemptable.
    """
    ordered = sorted(
        (l for l in subject_lessons if l.subject_id == lesson.subject_id),
        key=lambda l: l.id
    )
    position = next((i for i, l in enumerate(ordered) if l.id == lesson.id), None)

    if position is None:
        raise ValueError(f"Lesson {lesson.id} is not part of subject {lesson.subject_id}")
    if position == 0:
        return LessonGate.UNLOCKED

    previous = ordered[position - 1]
    return LessonGate.UNLOCKED if has_passed(student, previous, results) else LessonGate.LOCKED


def student_subjects(student: User, subjects: Sequence[Subject]) -> List[Subject]:
    grade = extract_grade_number(student.class_name)
    return [s for s in subjects if s.grade == grade]


def lesson_cards(
    student: User,
    subject: Subject,
    lessons: Sequence[Lesson],
    results: Sequence[Result]
) -> List[LessonCard]:
    """Dashboard cards for one subject, in prerequisite order."""
    subject_lessons = sorted((l for l in lessons if l.subject_id == subject.id), key=lambda l: l.id)

    cards = []
    for lesson in subject_lessons:
        cards.append(LessonCard(
            lesson_id=lesson.id,
            name=lesson.name,
            title=lesson.title,
            gate=evaluate_lesson_gate(student, lesson, subject_lessons, results),
            best_score=best_score(student, lesson, results),
            passed=has_passed(student, lesson, results),
            target_score=lesson.effective_target,
            question_count=lesson.count,
            timeout_minutes=lesson.timeout_minutes,
        ))
    return cards
