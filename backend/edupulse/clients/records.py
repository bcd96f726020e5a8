"""
Translation between raw store rows and EduPulse models.

The store is a spreadsheet: column names vary between sheets and over time,
numbers can arrive as strings or as {"value": ...} cells, and results point at
students, subjects and lessons by name. Everything is normalised here so the
services only ever see typed models.
"""

import json
import math
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..models import (
    Lesson,
    Question,
    QuestionType,
    Result,
    Snapshot,
    Subject,
    User,
)
from ..utils import extract_grade_number

logger = logging.getLogger(__name__)


def safe_string(value: Any) -> str:
    """Cell -> string; None becomes "", {"value": x} unwraps to x."""
    if value is None:
        return ""
    if isinstance(value, dict):
        inner = value.get("value")
        return str(inner) if inner is not None else json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def safe_number(value: Any, default: float = 0.0) -> float:
    """Cell -> float, falling back to ``default`` when unparseable or not finite ("NaN", "inf")."""
    if value is None:
        return default
    if isinstance(value, dict):
        value = value.get("value", value)
    if isinstance(value, (bool, int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", "."))
        except ValueError:
            return default
    return number if math.isfinite(number) else default


def _pick(row: Dict[str, Any], *keys: str) -> Any:
    """First truthy value among aliased column names."""
    for key in keys:
        value = row.get(key)
        if value:
            return value
    return row.get(keys[-1])


def map_question_type(value: Any) -> QuestionType:
    """Free-text question type -> QuestionType."""
    text = safe_string(value).upper()
    if "CHOOSE MULTIPLE" in text or "MULTIPLE" in text:
        return QuestionType.CHOOSE_MULTIPLE
    if "CHOOSE ONE" in text or "MCQ" in text:
        return QuestionType.CHOOSE_ONE
    if "TRUE" in text or "ĐÚNG" in text:
        return QuestionType.TRUE_FALSE
    return QuestionType.SHORT_ANSWER


def _optional_positive(value: Any) -> Optional[float]:
    number = safe_number(value)
    return number if number > 0 else None


# ============ INBOUND ============

def user_from_row(row: Dict[str, Any]) -> User:
    """Users sheet row (Account, Name, Class, ...)."""
    return User(
        account=safe_string(row.get("Account")),
        name=safe_string(row.get("Name")),
        class_name=safe_string(row.get("Class")).strip(),
        email=safe_string(row.get("Email")),
        progress=safe_string(row.get("Progress") or "OFF"),
        active=safe_string(row.get("Active") or "ON"),
        role=safe_string(row.get("Role")),
        subject_teacher=safe_string(row.get("Subject Teacher")) or None,
    )


def user_from_login(payload: Dict[str, Any]) -> User:
    """User object returned by the login action (camelCase keys)."""
    return User(
        account=safe_string(payload.get("account")),
        name=safe_string(payload.get("name")),
        class_name=safe_string(payload.get("className")).strip(),
        email=safe_string(payload.get("email")),
        progress=safe_string(payload.get("progress")) or "OFF",
        active=safe_string(payload.get("active") or "ON"),
        role=safe_string(payload.get("role")),
        subject_teacher=safe_string(payload.get("subjectTeacher")) or None,
    )


def student_from_row(row: Dict[str, Any]) -> User:
    return User(
        account=safe_string(row.get("account")),
        name=safe_string(row.get("name")),
        class_name=safe_string(row.get("className")).strip(),
        email=safe_string(row.get("email")),
        role=safe_string(row.get("role")) or "Student",
    )


def subject_from_row(row: Dict[str, Any]) -> Subject:
    return Subject(
        id=int(safe_number(_pick(row, "Stt", "stt"))),
        name=safe_string(_pick(row, "Name", "name")),
        grade=int(safe_number(_pick(row, "Grade", "grade"))),
    )


def lesson_from_row(row: Dict[str, Any]) -> Lesson:
    count = _optional_positive(_pick(row, "Count", "Question_count"))
    return Lesson(
        id=int(safe_number(_pick(row, "Stt", "stt"))),
        subject_id=int(safe_number(_pick(row, "Subject_id", "SubjectID"))),
        name=safe_string(_pick(row, "Name", "name")),
        title=safe_string(_pick(row, "Title", "title")),
        timeout_minutes=_optional_positive(_pick(row, "Timeout (minute)", "Timeout")),
        count=int(count) if count else None,
        target_score=safe_number(_pick(row, "Target score", "TargetScore"), 8),
    )


def question_from_row(row: Dict[str, Any]) -> Question:
    return Question(
        id=int(safe_number(_pick(row, "stt", "Stt"))),
        lesson_id=int(safe_number(_pick(row, "lesson_id", "LessonID"))),
        type=map_question_type(_pick(row, "question_type", "Type")),
        level=safe_string(_pick(row, "quiz_level", "Level")),
        point=safe_number(row.get("point")),
        text=safe_string(_pick(row, "question_text", "QuestionText")),
        image_id=safe_string(_pick(row, "image_id", "Image")) or None,
        option_a=safe_string(_pick(row, "option_A", "OptionA")) or None,
        option_b=safe_string(_pick(row, "option_B", "OptionB")) or None,
        option_c=safe_string(_pick(row, "option_C", "OptionC")) or None,
        option_d=safe_string(_pick(row, "option_D", "OptionD")) or None,
        answer_key=safe_string(_pick(row, "answer_key", "Answer")),
        explanation=safe_string(_pick(row, "solution", "Explanation")),
    )


def result_from_row(row: Dict[str, Any]) -> Result:
    return Result(
        result_id=safe_string(_pick(row, "result_id", "Result_id")),
        name=safe_string(_pick(row, "name", "Name")),
        class_name=safe_string(_pick(row, "grade", "Grade")).strip(),
        subject_name=safe_string(_pick(row, "subject_name", "Subject_name")),
        lesson_name=safe_string(_pick(row, "lesson_name", "Lesson_name")),
        score=safe_number(_pick(row, "score", "Score")),
        total_questions=int(safe_number(_pick(row, "total_questions", "Total_questions"))),
        status=safe_string(_pick(row, "status", "Status")),
        time_spent=safe_string(_pick(row, "time_spent", "Time_spent")),
        answers=safe_string(_pick(row, "answers", "Answers")),
        created_date=safe_string(_pick(row, "created_date", "Created_date")),
        role=safe_string(_pick(row, "role", "Role")),
    )


def resolve_result_keys(
    results: Iterable[Result],
    subjects: List[Subject],
    lessons: List[Lesson]
) -> List[Result]:
    """
    Attach subject_id/lesson_id to name-keyed results.

    Candidates are lessons with the result's lesson name, narrowed by subject
    name and then by the grade of the result's class label. Only a single
    surviving candidate is attached; otherwise the ids stay None and callers
    fall back to name matching.
    """
    subjects_by_id = {s.id: s for s in subjects}
    resolved = []

    for result in results:
        candidates = [l for l in lessons if l.name == result.lesson_name]

        if result.subject_name:
            candidates = [
                l for l in candidates
                if l.subject_id in subjects_by_id and subjects_by_id[l.subject_id].name == result.subject_name
            ]

        if len(candidates) > 1:
            grade = extract_grade_number(result.class_name)
            by_grade = [
                l for l in candidates
                if l.subject_id in subjects_by_id and subjects_by_id[l.subject_id].grade == grade
            ]
            if by_grade:
                candidates = by_grade

        if len(candidates) == 1:
            lesson = candidates[0]
            result = result.model_copy(update={"lesson_id": lesson.id, "subject_id": lesson.subject_id})
        resolved.append(result)

    return resolved


def snapshot_from_payload(data: Dict[str, Any]) -> Snapshot:
    """Bulk ``init`` payload -> Snapshot."""
    subjects = [subject_from_row(row) for row in data.get("subjects") or []]
    lessons = [lesson_from_row(row) for row in data.get("lessons") or []]
    results = [result_from_row(row) for row in data.get("results") or []]

    maintenance_rows = data.get("maintenance") or []
    maintenance = bool(maintenance_rows) and safe_string(maintenance_rows[0].get("Maintenance")) == "ON"

    snapshot = Snapshot(
        users=[user_from_row(row) for row in data.get("users") or []],
        subjects=subjects,
        lessons=lessons,
        questions=[question_from_row(row) for row in data.get("questions") or []],
        results=resolve_result_keys(results, subjects, lessons),
        maintenance=maintenance,
        all_classes=[safe_string(c).strip() for c in data.get("allClasses") or []],
        students=[student_from_row(row) for row in data.get("students") or []],
    )
    logger.info(
        f"Snapshot loaded: {len(snapshot.users)} users, {len(snapshot.subjects)} subjects, "
        f"{len(snapshot.lessons)} lessons, {len(snapshot.questions)} questions, {len(snapshot.results)} results"
    )
    return snapshot


# ============ OUTBOUND ============

def result_to_store(result: Result) -> Dict[str, Any]:
    """Result -> submitResult payload."""
    return {
        "resultId": result.result_id,
        "name": result.name,
        "subjectName": result.subject_name,
        "lessonName": result.lesson_name,
        "grade": result.class_name,
        "score": result.score,
        "totalQuestions": result.total_questions,
        "status": result.status,
        "timeSpent": result.time_spent,
        "answers": result.answers,
        "createdDate": result.created_date,
        "role": result.role,
    }


# Model field -> sheet column, per sheet
SHEET_COLUMNS: Dict[str, Dict[str, str]] = {
    "Users": {
        "account": "Account",
        "name": "Name",
        "class_name": "Class",
        "email": "Email",
        "role": "Role",
        "active": "Active",
        "progress": "Progress",
        "password": "Password",
        "subject_teacher": "Subject Teacher",
    },
    "Subjects": {
        "id": "Stt",
        "name": "Name",
        "grade": "Grade",
    },
    "Lessons": {
        "id": "Stt",
        "subject_id": "Subject_id",
        "name": "Name",
        "title": "Title",
        "timeout_minutes": "Timeout (minute)",
        "count": "Count",
        "target_score": "Target score",
    },
    "Questions": {
        "id": "stt",
        "lesson_id": "lesson_id",
        "type": "question_type",
        "level": "quiz_level",
        "point": "point",
        "text": "question_text",
        "image_id": "image_id",
        "option_a": "option_A",
        "option_b": "option_B",
        "option_c": "option_C",
        "option_d": "option_D",
        "answer_key": "answer_key",
        "explanation": "solution",
    },
}

# Columns that must never be blank in the Users sheet
USER_DEFAULTS = {"Email": "", "Active": "ON", "Progress": "OFF", "Password": "", "Subject Teacher": ""}


def item_to_sheet_row(sheet_name: str, item: Dict[str, Any]) -> Dict[str, Any]:
    """Map an item expressed in model field names to the sheet's column names."""
    columns = SHEET_COLUMNS.get(sheet_name)
    if columns is None:
        raise ValueError(f"Unknown sheet: {sheet_name}")

    row = {}
    for field, column in columns.items():
        value = item.get(field)
        if isinstance(value, QuestionType):
            value = value.value
        row[column] = value

    if sheet_name == "Users":
        for column, default in USER_DEFAULTS.items():
            if not row.get(column):
                row[column] = default
    return row
