# screens/finance/db.py
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from core.api import ResourceApi

Frequency = Literal["MONTHLY", "QUARTERLY", "HALF_YEARLY", "ANNUAL"]


class FeeStructureRecord(BaseModel):
    id: int
    branch_id: int
    session_id: int
    class_id: int
    fee_head: str
    amount: float
    frequency: Frequency = "ANNUAL"
    due_day: int = 10
    is_active: bool = True


class FeeStructureApi(ResourceApi):
    table = "fee_structures"
    label = "Fee structure"
    record = FeeStructureRecord
    columns = ("branch_id", "session_id", "class_id", "fee_head", "amount", "frequency", "due_day", "is_active")
    search_columns = ("fee_head",)
    filter_columns = ("branch_id", "session_id", "class_id", "frequency", "is_active")
    status_column = "is_active"
