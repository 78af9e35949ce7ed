# screens/classes/forms.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from core.validation import Schema


class ClassForm(BaseModel):
    name: str = Field(min_length=1, max_length=50, title="Class name")
    grade: Optional[int] = Field(default=None, ge=1, le=12)
    display_order: int = Field(default=0, ge=0, title="Display order")
    is_active: bool = True
    description: Optional[str] = Field(default=None, max_length=500)


class SectionForm(BaseModel):
    name: str = Field(min_length=1, max_length=20, title="Section name")
    capacity: int = Field(default=30, ge=1)
    teacher_id: Optional[int] = Field(default=None, title="Class teacher")
    display_order: int = Field(default=0, ge=0, title="Display order")
    is_active: bool = True


CLASS_SCHEMA = Schema(
    ClassForm,
    messages={
        "grade": "Grade must be between 1 and 12",
        "display_order": "Display order cannot be negative",
        "description": "Description is limited to 500 characters",
    },
)

SECTION_SCHEMA = Schema(
    SectionForm,
    messages={
        "capacity": "Capacity must be at least 1",
        "name": "Section name is limited to 20 characters",
    },
)
