# screens/approval_settings/forms.py
from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from core.validation import Schema
from screens.approval_settings.db import ApprovalType

APPROVAL_TYPES = {"ONE_PERSON": "Single approver", "TWO_PERSON": "Two approvers"}


class ApprovalSettingsForm(BaseModel):
    approval_type: ApprovalType = "ONE_PERSON"
    max_approval_amount: float = Field(default=50000, gt=0, title="Maximum approval amount")
    auto_approve_below: float = Field(default=1000, ge=0, title="Auto-approve below")
    escalation_threshold: float = Field(default=25000, ge=0, title="Escalation threshold")
    approval_timeout_days: int = Field(default=7, ge=1, le=90, title="Approval timeout (days)")
    require_reason: bool = True
    allow_self_approval: bool = False
    approval_roles: List[str] = Field(default_factory=list, validate_default=True, title="Approver roles")

    @field_validator("auto_approve_below", "escalation_threshold")
    @classmethod
    def _within_max(cls, v: float, info: ValidationInfo) -> float:
        ceiling = info.data.get("max_approval_amount")
        if ceiling is not None and v > ceiling:
            label = "Auto-approve limit" if info.field_name == "auto_approve_below" else "Escalation threshold"
            raise ValueError(f"{label} cannot exceed the maximum approval amount")
        return v

    @field_validator("approval_roles")
    @classmethod
    def _enough_roles(cls, v: List[str], info: ValidationInfo) -> List[str]:
        needed = 2 if info.data.get("approval_type") == "TWO_PERSON" else 1
        if len(set(v)) < needed:
            raise ValueError(
                "Two-person approval needs at least two approver roles"
                if needed == 2 else "Pick at least one approver role"
            )
        return sorted(set(v))


APPROVAL_SETTINGS_SCHEMA = Schema(
    ApprovalSettingsForm,
    messages={
        "max_approval_amount": "Maximum approval amount must be greater than zero",
        "auto_approve_below": "Auto-approve limit cannot be negative",
        "escalation_threshold": "Escalation threshold cannot be negative",
        "approval_timeout_days": "Timeout must be between 1 and 90 days",
    },
)
