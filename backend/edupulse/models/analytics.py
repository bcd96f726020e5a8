"""Analytics filter and report models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class AnalyticsFilters(BaseModel):
    """Structural filters (grade -> class -> subject -> lesson) plus chart filters.

    None means "ALL" for every field.
    """
    grade: Optional[int] = None
    class_name: Optional[str] = None
    subject: Optional[str] = None
    lesson: Optional[str] = None
    # Chart-driven
    status: Optional[str] = None  # Pass / Fail
    student: Optional[str] = None


class AnalyticsOptions(BaseModel):
    title: str
    grades: List[int] = Field(default_factory=list)
    classes: List[str] = Field(default_factory=list)
    subjects: List[str] = Field(default_factory=list)
    lessons: List[str] = Field(default_factory=list)
    grade_locked: bool = False
    subject_locked: bool = False


class LeaderboardEntry(BaseModel):
    name: str
    score: float
    score_display: str


class AnalyticsRow(BaseModel):
    result_id: str
    name: str
    class_name: str
    subject_name: str
    lesson_name: str
    created_date: str
    score: float
    score_display: str
    status: str


class AnalyticsReport(BaseModel):
    filters: AnalyticsFilters
    pass_count: int = 0
    fail_count: int = 0
    total: int = 0
    pass_rate: Optional[float] = None  # None when there is nothing to chart
    pass_rate_display: Optional[int] = None
    leaderboard: List[LeaderboardEntry] = Field(default_factory=list)
    rows: List[AnalyticsRow] = Field(default_factory=list)
    chart_filtered: bool = False
    empty_message: Optional[str] = None
