# screens/examinations/forms.py
from __future__ import annotations

import datetime

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from core.validation import Schema


class ExamTermForm(BaseModel):
    name: str = Field(min_length=2, max_length=60, title="Term name")
    start_date: datetime.date = Field(title="Start date")
    end_date: datetime.date = Field(title="End date")
    display_order: int = Field(default=0, ge=0)
    is_current: bool = False

    @field_validator("end_date")
    @classmethod
    def _after_start(cls, v: datetime.date, info: ValidationInfo) -> datetime.date:
        start = info.data.get("start_date")
        if start is not None and v <= start:
            raise ValueError("End date must be after start date")
        return v


EXAM_TERM_SCHEMA = Schema(ExamTermForm, messages={"display_order": "Display order cannot be negative"})
