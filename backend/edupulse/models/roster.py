"""Roster (student x lesson) models."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .entities import FAIL, NOT_ATTEMPTED

NO_SCORE = -1.0  # Below the valid 0-10 range

SortKey = Literal["class_name", "name", "subject_name", "lesson_name", "score", "status"]
SortOrder = Literal["asc", "desc"]


class RosterRow(BaseModel):
    class_name: str
    name: str
    account: str = ""
    email: str = ""
    subject_name: str
    lesson_id: int
    lesson_name: str
    score: float = NO_SCORE
    status: str = NOT_ATTEMPTED
    target: float
    result_id: Optional[str] = None  # Best attempt

    @property
    def attempted(self) -> bool:
        return self.score != NO_SCORE

    @property
    def can_remind(self) -> bool:
        return self.status in (FAIL, NOT_ATTEMPTED)


class RosterFilters(BaseModel):
    """None means "ALL"."""
    class_name: Optional[str] = None
    subject: Optional[str] = None
    lesson: Optional[str] = None
    status: Optional[str] = None


class SortConfig(BaseModel):
    key: SortKey = "class_name"
    order: SortOrder = "asc"


class ReminderMail(BaseModel):
    to: str
    subject: str
    body: str
    url: str


class RosterView(BaseModel):
    rows: List[RosterRow] = Field(default_factory=list)
    sort: SortConfig = Field(default_factory=SortConfig)
    classes: List[str] = Field(default_factory=list)
    lessons: List[str] = Field(default_factory=list)
    student_count: int = 0
    result_count: int = 0
    empty_message: Optional[str] = None
