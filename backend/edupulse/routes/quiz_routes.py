"""
Student dashboard and quiz routes.

Endpoints:
- GET /api/student/subjects
- GET /api/student/subjects/{subject_id}/lessons
- POST /api/quiz/start/{lesson_id}
- GET /api/quiz
- PUT /api/quiz/answers/{question_id}
- POST /api/quiz/submit
- GET /api/quiz/review
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ..config.settings import settings
from ..models import AnswerUpdate, LessonGate, Question, User
from ..services import (
    QuizSession,
    QuizTimer,
    SubmissionService,
    build_review,
    evaluate_lesson_gate,
    lesson_cards,
    select_quiz_questions,
    student_subjects,
)
from ..session import EduPulseSession
from .deps import get_active_session, get_current_user

logger = logging.getLogger(__name__)

LESSON_LOCKED = "Bài học đang bị khóa"
NO_QUESTIONS = "Bài học chưa có câu hỏi nào"


def public_question(question: Question) -> Dict[str, Any]:
    """Question as shown while the quiz runs: no answer key, no explanation."""
    data = question.model_dump(exclude={"answer_key", "explanation"})
    data["options"] = question.options
    return data


def quiz_state(session: EduPulseSession) -> Dict[str, Any]:
    quiz = session.quiz
    return {
        "lesson": quiz.lesson,
        "questions": [public_question(q) for q in quiz.questions],
        "answers": quiz.answers,
        "remaining_seconds": quiz.remaining_seconds,
        "submitting": quiz.submitting,
    }


def create_quiz_routes() -> APIRouter:
    """Create student dashboard and quiz routes."""

    router = APIRouter(prefix="/api", tags=["quiz"])

    @router.get("/student/subjects")
    async def get_subjects(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Subjects of the user's grade; the first one is preselected."""
        subjects = student_subjects(user, session.snapshot.subjects)
        return {
            "subjects": subjects,
            "selected": subjects[0].id if subjects else None,
        }

    @router.get("/student/subjects/{subject_id}/lessons")
    async def get_lessons(
        subject_id: int,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        subject = session.snapshot.subject_by_id(subject_id)
        if not subject:
            raise HTTPException(status_code=404, detail="Subject not found")
        return {
            "subject": subject,
            "lessons": lesson_cards(user, subject, session.snapshot.lessons, session.snapshot.results),
        }

    @router.post("/quiz/start/{lesson_id}")
    async def start_quiz(
        lesson_id: int,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Start a timed attempt at an unlocked lesson."""
        snapshot = session.snapshot
        lesson = snapshot.lesson_by_id(lesson_id)
        if not lesson:
            raise HTTPException(status_code=404, detail="Lesson not found")

        if not user.is_staff:
            gate = evaluate_lesson_gate(
                user, lesson, snapshot.lessons_of_subject(lesson.subject_id), snapshot.results
            )
            if gate == LessonGate.LOCKED:
                raise HTTPException(status_code=403, detail=LESSON_LOCKED)

        questions = select_quiz_questions(lesson, snapshot.questions_of_lesson(lesson.id))
        if not questions:
            raise HTTPException(status_code=409, detail=NO_QUESTIONS)

        session.stop_quiz()
        session.last_attempt = None
        session.quiz = QuizSession(lesson, questions)

        if settings.QUIZ_AUTO_SUBMIT:
            session.timer = QuizTimer(session.quiz, SubmissionService(session).submit)
            session.timer.start()

        logger.info(f"Quiz started: {user.account} on '{lesson.name}' ({len(questions)} questions)")
        return quiz_state(session)

    @router.get("/quiz")
    async def get_quiz(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        if session.quiz is None:
            raise HTTPException(status_code=404, detail="No active quiz")
        return quiz_state(session)

    @router.put("/quiz/answers/{question_id}")
    async def update_answer(
        question_id: int,
        update: AnswerUpdate,
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Record an answer, or toggle one option letter."""
        quiz = session.quiz
        if quiz is None:
            raise HTTPException(status_code=404, detail="No active quiz")
        if update.option is None and update.value is None:
            raise HTTPException(status_code=400, detail="Provide either value or option")

        try:
            if update.option is not None:
                answer = quiz.toggle_option(question_id, update.option)
            else:
                answer = quiz.answer(question_id, update.value)
        except KeyError:
            raise HTTPException(status_code=404, detail="Question not in this quiz")

        return {"question_id": question_id, "answer": answer}

    @router.post("/quiz/submit")
    async def submit_quiz(
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Grade and record the active quiz."""
        try:
            review = await SubmissionService(session).submit()
            if review is None:
                raise HTTPException(status_code=409, detail="No quiz to submit")
            return review
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error submitting quiz: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/quiz/review")
    async def get_review(
        tab: str = "ALL",
        user: User = Depends(get_current_user),
        session: EduPulseSession = Depends(get_active_session)
    ):
        """Review of the last submitted attempt, all questions or only the wrong ones."""
        attempt = session.last_attempt
        if attempt is None:
            raise HTTPException(status_code=404, detail="No submitted quiz")
        lesson = session.snapshot.lesson_by_id(attempt.lesson_id)
        if not lesson:
            raise HTTPException(status_code=404, detail="Lesson not found")

        review = build_review(attempt.questions, attempt.outcome.answers, lesson, attempt.outcome, tab)
        review.persisted = attempt.persisted
        return review

    return router
