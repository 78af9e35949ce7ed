# screens/examinations/db.py
from __future__ import annotations

import datetime

from pydantic import BaseModel
from sqlalchemy import text as sa_text

from core.api import NotFoundError, ResourceApi


class ExamTermRecord(BaseModel):
    id: int
    branch_id: int
    session_id: int
    name: str
    start_date: datetime.date
    end_date: datetime.date
    display_order: int = 0
    is_current: bool = False

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


class ExamTermApi(ResourceApi):
    table = "exam_terms"
    label = "Examination term"
    record = ExamTermRecord
    columns = ("branch_id", "session_id", "name", "start_date", "end_date", "display_order", "is_current")
    search_columns = ("name",)
    filter_columns = ("branch_id", "session_id", "is_current")
    order_column = "display_order"

    def set_current(self, term_id: int) -> ExamTermRecord:
        """Mark one term current; every other term in its scope is cleared."""
        term = self.get(term_id)
        with self._connection("saved", transaction=True) as conn:
            conn.execute(sa_text("""
                UPDATE exam_terms SET is_current = 0, updated_at = CURRENT_TIMESTAMP
                WHERE branch_id = :b AND session_id = :s AND is_current = 1
            """), {"b": term.branch_id, "s": term.session_id})
            result = conn.execute(sa_text(
                "UPDATE exam_terms SET is_current = 1, updated_at = CURRENT_TIMESTAMP WHERE id = :id"
            ), {"id": term_id})
            if result.rowcount == 0:
                raise NotFoundError(f"{self.label} not found")
        return self.get(term_id)
