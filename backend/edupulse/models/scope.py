"""Role-scoped view of a snapshot."""

from typing import List

from pydantic import BaseModel, Field

from .entities import Lesson, Question, Result, Subject, User


class ScopedEntities(BaseModel):
    grade: int = 0  # Acting user's extracted grade
    class_level: bool = False  # True for "9/1"-style teacher labels
    students: List[User] = Field(default_factory=list)
    results: List[Result] = Field(default_factory=list)
    subjects: List[Subject] = Field(default_factory=list)
    lessons: List[Lesson] = Field(default_factory=list)
    questions: List[Question] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
