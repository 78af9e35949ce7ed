# screens/subjects/db.py
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from core.api import ResourceApi

SubjectType = Literal["CORE", "ELECTIVE", "CO_CURRICULAR"]


class SubjectRecord(BaseModel):
    id: int
    branch_id: int
    name: str
    code: str
    subject_type: SubjectType = "CORE"
    description: Optional[str] = None
    is_active: bool = True


class SubjectApi(ResourceApi):
    table = "subjects"
    label = "Subject"
    record = SubjectRecord
    columns = ("branch_id", "name", "code", "subject_type", "description", "is_active")
    search_columns = ("name", "code")
    filter_columns = ("branch_id", "subject_type", "is_active")
    status_column = "is_active"
