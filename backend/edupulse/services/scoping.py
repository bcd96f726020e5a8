"""
Visibility scoping - the slice of a snapshot each role may act on.

    Admin               everything
    Teacher, grade "9"  students/results whose class label extracts to grade 9
    Teacher, "9/1"      students/results with class label exactly "9/1"
    Student             only the subjects (and their lessons) of their own grade

Teachers see the subjects of their grade, or just their specialised subject
at that grade. Staff submissions never appear in scoped results.
"""

import logging
from typing import List, Sequence

from ..models import ROLE_STUDENT, Result, ScopedEntities, Snapshot, Subject, User
from ..utils import extract_grade_number, is_grade_level_label

logger = logging.getLogger(__name__)


def student_accounts(snapshot: Snapshot) -> List[User]:
    """The student roster, falling back to Student-role users when the store sent none."""
    if snapshot.students:
        return list(snapshot.students)
    return [u for u in snapshot.users if u.role_key == ROLE_STUDENT]


def learner_results(results: Sequence[Result]) -> List[Result]:
    """Drop teacher/admin test submissions."""
    return [r for r in results if not r.is_staff_submission]


def in_teacher_scope(label: str, teacher: User) -> bool:
    """Whether a student/result class label falls inside a teacher's class or grade."""
    teacher_label = (teacher.class_name or "").strip()
    label = (label or "").strip()
    if is_grade_level_label(teacher_label):
        return extract_grade_number(label) == extract_grade_number(teacher_label)
    return label == teacher_label


def teacher_subjects(teacher: User, subjects: Sequence[Subject]) -> List[Subject]:
    grade = extract_grade_number(teacher.class_name)
    specialization = (teacher.subject_teacher or "").strip()
    return [
        s for s in subjects
        if s.grade == grade and (not specialization or s.name == specialization)
    ]


def scope_label(user: User) -> str:
    """Heading for a user's scope: "Khối 9", "Lớp 9/1", or "" for non-teachers."""
    if not user.is_teacher:
        return ""
    label = (user.class_name or "").strip()
    if is_grade_level_label(label):
        return f"Khối {extract_grade_number(label)}"
    return f"Lớp {label}"


def scope_for_role(user: User, snapshot: Snapshot) -> ScopedEntities:
    """Narrow a snapshot to what ``user`` may see."""
    grade = extract_grade_number(user.class_name)
    scoped = ScopedEntities(
        grade=grade,
        class_level=user.is_teacher and not is_grade_level_label(user.class_name),
    )

    if user.is_admin:
        scoped.students = student_accounts(snapshot)
        scoped.results = learner_results(snapshot.results)
        scoped.subjects = list(snapshot.subjects)
        scoped.users = list(snapshot.users)
    elif user.is_teacher:
        scoped.students = [s for s in student_accounts(snapshot) if in_teacher_scope(s.class_name, user)]
        scoped.results = [r for r in learner_results(snapshot.results) if in_teacher_scope(r.class_name, user)]
        scoped.subjects = teacher_subjects(user, snapshot.subjects)
        scoped.users = [
            u for u in snapshot.users
            if u.role_key == ROLE_STUDENT and extract_grade_number(u.class_name) == grade
        ]
    else:
        scoped.subjects = [s for s in snapshot.subjects if s.grade == grade]

    subject_ids = {s.id for s in scoped.subjects}
    scoped.lessons = [l for l in snapshot.lessons if l.subject_id in subject_ids]
    lesson_ids = {l.id for l in scoped.lessons}
    scoped.questions = [q for q in snapshot.questions if q.lesson_id in lesson_ids]

    logger.debug(
        f"Scoped {user.account} ({user.role}): {len(scoped.students)} students, "
        f"{len(scoped.results)} results, {len(scoped.subjects)} subjects"
    )
    return scoped
