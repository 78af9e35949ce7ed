# screens/subjects/forms.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from core.validation import Schema
from screens.subjects.db import SubjectType

SUBJECT_TYPES = {"CORE": "Core", "ELECTIVE": "Elective", "CO_CURRICULAR": "Co-curricular"}


class SubjectForm(BaseModel):
    name: str = Field(min_length=2, max_length=80, title="Subject name")
    code: str = Field(min_length=2, max_length=12, pattern=r"^[A-Za-z0-9_-]+$", title="Subject code")
    subject_type: SubjectType = "CORE"
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()


SUBJECT_SCHEMA = Schema(
    SubjectForm,
    labels={"subject_type": "Subject type"},
    messages={
        "code": "Code must be 2 to 12 letters, digits, '-' or '_'",
        "subject_type": "Pick a subject type",
    },
)
