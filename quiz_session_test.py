import asyncio
import random

import pytest

from edupulse.models import Lesson
from edupulse.services.quiz import QuizSession, QuizTimer, select_quiz_questions, time_limit_seconds


@pytest.fixture
def l1(lessons):
    return lessons[0]


@pytest.fixture
def l1_questions(questions):
    return [q for q in questions if q.lesson_id == 1]


class TestSelection:
    def test_only_lesson_questions(self, l1, questions):
        picked = select_quiz_questions(l1, questions, random.Random(1))
        assert sorted(q.id for q in picked) == [1, 2]

    def test_capped_by_count(self, l1, questions):
        capped = l1.model_copy(update={"count": 1})
        assert len(select_quiz_questions(capped, questions, random.Random(3))) == 1

    def test_empty_pool(self, lessons, questions):
        assert select_quiz_questions(lessons[2], questions) == []


def test_time_limit():
    lesson = Lesson(id=1, subject_id=1, name="L1", timeout_minutes=1.5)
    assert time_limit_seconds(lesson, 10) == 90
    assert time_limit_seconds(lesson.model_copy(update={"timeout_minutes": None}), 3) == 180


class TestQuizSession:
    def test_requires_questions(self, l1):
        with pytest.raises(ValueError):
            QuizSession(l1, [])

    def test_multiple_choice_toggle(self, l1, l1_questions):
        quiz = QuizSession(l1, l1_questions)
        assert quiz.toggle_option(2, "c") == "C"
        assert quiz.toggle_option(2, "A") == "A, C"
        assert quiz.is_selected(2, "A")
        assert quiz.toggle_option(2, "A") == "C"
        assert quiz.toggle_option(2, "C") == ""

    def test_single_choice_replaces(self, l1, l1_questions):
        quiz = QuizSession(l1, l1_questions)
        quiz.toggle_option(1, "A")
        assert quiz.toggle_option(1, "B") == "B"
        assert not quiz.is_selected(1, "A")

    def test_unknown_question(self, l1, l1_questions):
        quiz = QuizSession(l1, l1_questions)
        with pytest.raises(KeyError):
            quiz.answer(42, "A")

    def test_double_submit_guard(self, l1, l1_questions):
        quiz = QuizSession(l1, l1_questions)
        assert quiz.begin_submit()
        assert not quiz.begin_submit()
        # Answers are frozen once submission started
        quiz.answer(1, "B")
        assert 1 not in quiz.answers

    def test_tick_counts_down(self, l1, l1_questions):
        quiz = QuizSession(l1.model_copy(update={"timeout_minutes": None}), l1_questions)
        assert quiz.remaining_seconds == 120
        for _ in range(119):
            assert not quiz.tick()
        assert quiz.tick()
        assert quiz.remaining_seconds == 0


class TestQuizTimer:
    def test_expiry_calls_submit_once(self, l1, l1_questions):
        quiz = QuizSession(l1.model_copy(update={"timeout_minutes": 0.05}), l1_questions)
        calls = []

        async def on_expire():
            calls.append(quiz.remaining_seconds)

        async def run():
            timer = QuizTimer(quiz, on_expire, interval=0)
            timer.start()
            await timer._task

        asyncio.run(run())
        assert calls == [0]

    def test_cancel(self, l1, l1_questions):
        quiz = QuizSession(l1, l1_questions)
        calls = []

        async def on_expire():
            calls.append(True)

        async def run():
            timer = QuizTimer(quiz, on_expire, interval=0.01)
            timer.start()
            await asyncio.sleep(0.05)
            timer.cancel()
            await asyncio.sleep(0.02)
            return timer._task

        task = asyncio.run(run())
        assert task.cancelled()
        assert calls == []
