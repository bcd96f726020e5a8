"""Utility functions for the EduPulse backend."""

import math
import re
from typing import Tuple

from ..models import Lesson, Result, User

_DIGITS = re.compile(r"\d+")
_DIGIT_RUNS = re.compile(r"(\d+)")


def extract_grade_number(label: str) -> int:
    """First run of digits in a class label ("12A1" -> 12, "9/1" -> 9), 0 when none."""
    match = _DIGITS.search(str(label or ""))
    return int(match.group(0)) if match else 0


def is_grade_level_label(label: str) -> bool:
    """
    True when the label names a whole grade ("9"), False for a specific class ("9/1").
    
    An empty label counts as grade-level (grade 0).
    """
    label = (label or "").strip()
    if not label:
        return True
    return label == str(extract_grade_number(label))


def natural_sort_key(value: str) -> Tuple:
    """Case-insensitive ordering that compares digit runs numerically ("9/2" < "9/10")."""
    value = str(value or "")
    parts = _DIGIT_RUNS.split(value)
    # re.split with a group alternates text/digits, so odd positions are always digits
    key = tuple(int(part) if i % 2 else part.casefold() for i, part in enumerate(parts))
    return key, value


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def format_score(score: float) -> str:
    """Scores are displayed with one decimal."""
    return f"{score:.1f}"


def same_student(result: Result, student: User) -> bool:
    """
    Match a result to a student by name, narrowed by class label when both sides carry one.
    
    Results reference students by display name only; the class label guards
    against two students sharing a name in different classes.
    """
    if result.name != student.name:
        return False
    result_class = (result.class_name or "").strip()
    student_class = (student.class_name or "").strip()
    if result_class and student_class:
        return result_class == student_class
    return True


def result_for_lesson(result: Result, lesson: Lesson) -> bool:
    """Match by resolved lesson id when available, else by lesson name."""
    if result.lesson_id is not None:
        return result.lesson_id == lesson.id
    return result.lesson_name == lesson.name
