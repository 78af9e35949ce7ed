# screens/finance/forms.py
from __future__ import annotations

from pydantic import BaseModel, Field

from core.validation import Schema
from screens.finance.db import Frequency

FREQUENCIES = {
    "MONTHLY": "Monthly",
    "QUARTERLY": "Quarterly",
    "HALF_YEARLY": "Half yearly",
    "ANNUAL": "Annual",
}

FEE_HEADS = ["Tuition Fee", "Admission Fee", "Annual Charges", "Lab Fee", "Library Fee", "Sports Fee", "Exam Fee"]


class FeeStructureForm(BaseModel):
    class_id: int = Field(title="Class")
    fee_head: str = Field(min_length=2, max_length=60, title="Fee head")
    amount: float = Field(gt=0)
    frequency: Frequency = "ANNUAL"
    due_day: int = Field(default=10, ge=1, le=28, title="Due day")
    is_active: bool = True


FEE_STRUCTURE_SCHEMA = Schema(
    FeeStructureForm,
    messages={
        "amount": "Amount must be greater than zero",
        "due_day": "Due day must be between 1 and 28",
    },
)
