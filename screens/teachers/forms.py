# screens/teachers/forms.py
from __future__ import annotations

import datetime
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from core.validation import Schema

DESIGNATIONS = [
    "PRT",
    "TGT",
    "PGT",
    "Head of Department",
    "Coordinator",
    "Librarian",
    "Physical Education",
]

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[0-9][0-9 \-]{6,14}$")


class TeacherForm(BaseModel):
    first_name: str = Field(min_length=1, max_length=60, title="First name")
    last_name: Optional[str] = Field(default=None, max_length=60)
    employee_code: str = Field(min_length=2, max_length=20, title="Employee code")
    email: Optional[str] = None
    phone: Optional[str] = None
    designation: Optional[str] = None
    joining_date: Optional[datetime.date] = None
    is_active: bool = True

    @field_validator("employee_code")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return v.upper()

    @field_validator("email")
    @classmethod
    def _email(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _EMAIL_RE.match(v):
            raise ValueError("Enter a valid email address")
        return v.lower() if v else v

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _PHONE_RE.match(v):
            raise ValueError("Enter a valid phone number")
        return v

    @field_validator("designation")
    @classmethod
    def _designation(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DESIGNATIONS:
            raise ValueError("Pick a designation from the list")
        return v

    @field_validator("joining_date")
    @classmethod
    def _not_future(cls, v: Optional[datetime.date]) -> Optional[datetime.date]:
        if v is not None and v > datetime.date.today():
            raise ValueError("Joining date cannot be in the future")
        return v


TEACHER_SCHEMA = Schema(
    TeacherForm,
    messages={"employee_code": "Employee code must be 2 to 20 characters"},
)
