"""Shared fixtures: a small two-grade school snapshot."""

import pytest

from edupulse.config.settings import settings
from edupulse.models import (
    Lesson,
    Question,
    QuestionType,
    Result,
    Snapshot,
    Subject,
    User,
)


def make_result(name, class_name, lesson, score, status, subject="Biology", result_id=None, role="Student", **extra):
    return Result(
        result_id=result_id or f"RES_{name}_{lesson.id}_{score}",
        name=name,
        class_name=class_name,
        subject_name=subject,
        lesson_name=lesson.name,
        score=score,
        total_questions=2,
        status=status,
        role=role,
        lesson_id=lesson.id,
        subject_id=lesson.subject_id,
        **extra
    )


@pytest.fixture(autouse=True)
def no_quiz_timer(monkeypatch):
    """Route tests drive submission explicitly."""
    monkeypatch.setattr(settings, "QUIZ_AUTO_SUBMIT", False)


@pytest.fixture
def biology():
    return Subject(id=1, name="Biology", grade=9)


@pytest.fixture
def chemistry():
    return Subject(id=2, name="Chemistry", grade=9)


@pytest.fixture
def lessons():
    return [
        Lesson(id=1, subject_id=1, name="L1", target_score=8.0),
        Lesson(id=2, subject_id=1, name="L2", target_score=8.0),
        Lesson(id=3, subject_id=1, name="L3"),
        Lesson(id=4, subject_id=2, name="C1", target_score=5.0),
        Lesson(id=5, subject_id=3, name="P1"),
    ]


@pytest.fixture
def questions():
    return [
        Question(id=1, lesson_id=1, type=QuestionType.CHOOSE_ONE, text="Q1",
                 option_a="Cell", option_b="Atom", answer_key="A", explanation="Cells are alive"),
        Question(id=2, lesson_id=1, type=QuestionType.CHOOSE_MULTIPLE, text="Q2",
                 option_a="x", option_b="y", option_c="z", answer_key="B,C"),
        Question(id=3, lesson_id=2, type=QuestionType.SHORT_ANSWER, text="Q3", answer_key="dna"),
        Question(id=4, lesson_id=4, type=QuestionType.TRUE_FALSE, text="Q4", answer_key="A"),
    ]


@pytest.fixture
def student():
    return User(account="an", name="An", class_name="9/1", email="an@school.vn", role="Student")


@pytest.fixture
def users(student):
    return [
        student,
        User(account="binh", name="Binh", class_name="9/2", email="binh@school.vn", role="Student"),
        User(account="chi", name="Chi", class_name="9/10", email="", role="Student"),
        User(account="dung", name="Dung", class_name="10A1", role="Student"),
        User(account="gv9", name="Teacher Nine", class_name="9", role="Teacher"),
        User(account="gv91", name="Teacher NineOne", class_name="9/1", role="Teacher"),
        User(account="gvbio", name="Bio Teacher", class_name="9", role="Teacher", subject_teacher="Biology"),
        User(account="admin", name="Admin", class_name="", role="Admin"),
    ]


@pytest.fixture
def snapshot(biology, chemistry, lessons, questions, users):
    l1, l2, _, c1, _ = lessons
    physics = Subject(id=3, name="Physics", grade=10)
    return Snapshot(
        users=users,
        subjects=[biology, chemistry, physics],
        lessons=lessons,
        questions=questions,
        results=[
            make_result("Binh", "9/2", l1, 9.0, "Pass"),
            make_result("Binh", "9/2", l2, 5.0, "Fail"),
            make_result("Chi", "9/10", l1, 4.0, "Fail"),
            make_result("Chi", "9/10", c1, 6.0, "Pass", subject="Chemistry"),
            make_result("Teacher Nine", "9", l1, 10.0, "Pass", role="Teacher"),
        ],
        all_classes=["9/1", "9/2", "9/10", "9", "10A1"],
    )
