"""Entity models mirrored from the remote store sheets."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..config.settings import settings


PASS = "Pass"
FAIL = "Fail"
NOT_ATTEMPTED = "Chưa thi"

ROLE_STUDENT = "student"
ROLE_TEACHER = "teacher"
ROLE_ADMIN = "admin"
STAFF_ROLES = (ROLE_TEACHER, ROLE_ADMIN)


class QuestionType(str, Enum):
    CHOOSE_ONE = "CHOOSE_ONE"
    CHOOSE_MULTIPLE = "CHOOSE_MULTIPLE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"


class Subject(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    name: str
    grade: int  # 9, 10, 11, 12


class Lesson(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    subject_id: int
    name: str
    title: str = ""
    count: Optional[int] = None  # Question cap, 0/None = whole pool
    timeout_minutes: Optional[float] = None
    target_score: Optional[float] = None

    @property
    def effective_target(self) -> float:
        """Pass threshold on the 0-10 scale; unset or zero falls back to the default."""
        return self.target_score or settings.DEFAULT_TARGET_SCORE


class Question(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: int
    lesson_id: int
    type: QuestionType = QuestionType.SHORT_ANSWER
    level: str = ""
    point: float = 0  # Stored but not used for scoring
    text: str = ""
    image_id: Optional[str] = None
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    answer_key: str = ""
    explanation: str = ""

    @property
    def options(self) -> Dict[str, str]:
        """Non-empty options keyed by letter."""
        raw = {"A": self.option_a, "B": self.option_b, "C": self.option_c, "D": self.option_d}
        return {letter: text for letter, text in raw.items() if text}


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")
    account: str
    name: str
    class_name: str = ""
    email: str = ""
    role: str = "Student"
    subject_teacher: Optional[str] = None
    progress: str = "OFF"
    active: str = "ON"

    @property
    def role_key(self) -> str:
        return (self.role or "").strip().lower()

    @property
    def is_admin(self) -> bool:
        return self.role_key == ROLE_ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role_key == ROLE_TEACHER

    @property
    def is_staff(self) -> bool:
        return self.role_key in STAFF_ROLES


class Result(BaseModel):
    model_config = ConfigDict(extra="ignore")
    result_id: str
    name: str  # Student display name
    class_name: str = ""  # Student class label at submission time
    subject_name: str = ""
    lesson_name: str = ""
    score: float = 0  # 0-10 scale
    total_questions: int = 0
    status: str = FAIL
    time_spent: str = ""
    answers: str = ""  # JSON encoded {question_id: answer}
    created_date: str = ""
    role: str = ""
    # Resolved at the store boundary, None when names are ambiguous
    subject_id: Optional[int] = None
    lesson_id: Optional[int] = None

    @property
    def is_staff_submission(self) -> bool:
        return (self.role or "Student").strip().lower() in STAFF_ROLES

    @property
    def passed(self) -> bool:
        return self.status == PASS


class Snapshot(BaseModel):
    """Everything the store returns from a bulk fetch."""
    users: List[User] = Field(default_factory=list)
    subjects: List[Subject] = Field(default_factory=list)
    lessons: List[Lesson] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    results: List[Result] = Field(default_factory=list)
    maintenance: bool = False
    all_classes: List[str] = Field(default_factory=list)
    students: List[User] = Field(default_factory=list)

    def subject_by_id(self, subject_id: int) -> Optional[Subject]:
        return next((s for s in self.subjects if s.id == subject_id), None)

    def lesson_by_id(self, lesson_id: int) -> Optional[Lesson]:
        return next((l for l in self.lessons if l.id == lesson_id), None)

    def lessons_of_subject(self, subject_id: int) -> List[Lesson]:
        """Lessons of a subject in prerequisite order (id ascending)."""
        return sorted((l for l in self.lessons if l.subject_id == subject_id), key=lambda l: l.id)

    def questions_of_lesson(self, lesson_id: int) -> List[Question]:
        return [q for q in self.questions if q.lesson_id == lesson_id]


class LoginResponse(BaseModel):
    success: bool
    user: Optional[User] = None
    message: Optional[str] = None
