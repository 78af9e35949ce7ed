# core/context.py
"""Branch / academic-session scope shared by every write in the console."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine

SCOPE_KEYS = ("branch_id", "session_id")


class MissingContextError(Exception):
    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__("Select a branch and academic session before saving")


@dataclass(frozen=True)
class TenantContext:
    branch_id: Optional[int] = None
    session_id: Optional[int] = None

    def missing(self) -> List[str]:
        return [k for k in SCOPE_KEYS if getattr(self, k) in (None, "")]

    @property
    def is_complete(self) -> bool:
        return not self.missing()

    def scope(self) -> Dict[str, Any]:
        missing = self.missing()
        if missing:
            raise MissingContextError(missing)
        return {"branch_id": self.branch_id, "session_id": self.session_id}

    def errors(self) -> Dict[str, str]:
        """Field-keyed messages for the unset identifiers."""
        labels = {"branch_id": "Branch", "session_id": "Academic session"}
        return {k: f"{labels[k]} is not selected" for k in self.missing()}


def list_branches(engine: Engine) -> List[Dict[str, Any]]:
    with engine.connect() as conn:
        rows = conn.execute(sa_text(
            "SELECT id, name, code FROM branches ORDER BY name"
        )).fetchall()
    return [dict(r._mapping) for r in rows]


def list_sessions(engine: Engine) -> List[Dict[str, Any]]:
    with engine.connect() as conn:
        rows = conn.execute(sa_text(
            "SELECT id, name, start_date, end_date, is_active FROM academic_sessions ORDER BY start_date DESC"
        )).fetchall()
    return [dict(r._mapping) for r in rows]
