"""Request bodies accepted by the API."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    account: str = ""
    password: str = ""


class AnswerUpdate(BaseModel):
    """Either a full answer (``value``) or one option letter to toggle (``option``)."""
    value: Optional[str] = None
    option: Optional[str] = None


class FilterChange(BaseModel):
    field: Literal["grade", "class_name", "subject", "lesson"]
    value: Optional[str] = None  # None or "ALL" clears the filter


class ItemSave(BaseModel):
    item: Dict[str, Any] = Field(default_factory=dict)
    id_key: str
