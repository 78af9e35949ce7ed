# screens/teachers/db.py
from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel

from core.api import ConflictError, ResourceApi


class TeacherRecord(BaseModel):
    id: int
    branch_id: int
    first_name: str
    last_name: Optional[str] = None
    employee_code: str
    email: Optional[str] = None
    phone: Optional[str] = None
    designation: Optional[str] = None
    joining_date: Optional[datetime.date] = None
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class TeacherApi(ResourceApi):
    table = "teachers"
    label = "Teacher"
    record = TeacherRecord
    columns = (
        "branch_id", "first_name", "last_name", "employee_code", "email",
        "phone", "designation", "joining_date", "is_active",
    )
    search_columns = ("first_name", "last_name", "employee_code", "email")
    filter_columns = ("branch_id", "is_active", "designation")
    status_column = "is_active"

    def _conflict(self, error):
        if "unique" in str(error.orig).lower():
            return ConflictError("Employee code is already used by another teacher in this branch")
        return super()._conflict(error)

    def name_lookup(self, branch_id: int) -> dict:
        """{id: "First Last (CODE)"} for select boxes."""
        return {
            t.id: f"{t.full_name} ({t.employee_code})"
            for t in self.list_all(filters={"branch_id": branch_id})
        }
