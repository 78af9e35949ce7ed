# screens/approval_settings/db.py
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from core.api import ResourceApi

ApprovalType = Literal["ONE_PERSON", "TWO_PERSON"]


class ApprovalSettingsRecord(BaseModel):
    id: int
    branch_id: int
    session_id: int
    approval_type: ApprovalType = "ONE_PERSON"
    auto_approve_below: float = 1000
    max_approval_amount: float = 50000
    escalation_threshold: float = 25000
    approval_timeout_days: int = 7
    require_reason: bool = True
    allow_self_approval: bool = False
    approval_roles: List[str] = Field(default_factory=list)


class ApprovalSettingsApi(ResourceApi):
    table = "approval_settings"
    label = "Approval settings"
    record = ApprovalSettingsRecord
    columns = (
        "branch_id", "session_id", "approval_type", "auto_approve_below", "max_approval_amount",
        "escalation_threshold", "approval_timeout_days", "require_reason", "allow_self_approval",
        "approval_roles",
    )
    filter_columns = ("branch_id", "session_id")
    json_columns = ("approval_roles",)

    def for_scope(self, branch_id: int, session_id: int) -> Optional[ApprovalSettingsRecord]:
        found = self.list_all(filters={"branch_id": branch_id, "session_id": session_id})
        return found[0] if found else None
