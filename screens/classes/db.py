# screens/classes/db.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field
from sqlalchemy import bindparam
from sqlalchemy import text as sa_text

from core.api import ResourceApi, ids_of


class SectionRecord(BaseModel):
    id: int
    class_id: int
    name: str
    capacity: int
    teacher_id: Optional[int] = None
    display_order: int = 0
    is_active: bool = True


class ClassRecord(BaseModel):
    id: int
    branch_id: int
    session_id: int
    name: str
    grade: Optional[int] = None
    display_order: int = 0
    is_active: bool = True
    description: Optional[str] = None
    sections: List[SectionRecord] = Field(default_factory=list)

    @property
    def capacity(self) -> int:
        return sum(s.capacity for s in self.sections)


class SectionApi(ResourceApi):
    table = "sections"
    label = "Section"
    record = SectionRecord
    columns = ("class_id", "name", "capacity", "teacher_id", "display_order", "is_active")
    search_columns = ("name",)
    filter_columns = ("class_id", "teacher_id", "is_active")
    status_column = "is_active"
    order_column = "display_order"

    def for_classes(self, class_ids: Iterable[int]) -> List[SectionRecord]:
        ids = list(class_ids)
        if not ids:
            return []
        stmt = sa_text(
            "SELECT * FROM sections WHERE class_id IN :ids ORDER BY class_id, display_order, id"
        ).bindparams(bindparam("ids", expanding=True))
        with self._connection("loaded") as conn:
            rows = conn.execute(stmt, {"ids": ids}).fetchall()
        return [self._to_record(r) for r in rows]


class ClassApi(ResourceApi):
    table = "classes"
    label = "Class"
    record = ClassRecord
    columns = ("branch_id", "session_id", "name", "grade", "display_order", "is_active", "description")
    search_columns = ("name", "description")
    filter_columns = ("branch_id", "session_id", "is_active", "grade")
    status_column = "is_active"
    order_column = "display_order"

    def get_with_sections(self, class_id: int) -> ClassRecord:
        klass = self.get(class_id)
        sections = SectionApi(self.engine).for_classes([class_id])
        return klass.model_copy(update={"sections": sections})

    def list_with_sections(
        self, filters: Optional[Mapping[str, Any]] = None, search: Optional[str] = None
    ) -> List[ClassRecord]:
        classes = self.list_all(filters, search)
        by_class: Dict[int, List[SectionRecord]] = {}
        for s in SectionApi(self.engine).for_classes(ids_of(classes)):
            by_class.setdefault(s.class_id, []).append(s)
        return [c.model_copy(update={"sections": by_class.get(c.id, [])}) for c in classes]

    def next_display_order(self, branch_id: int, session_id: int) -> int:
        return self.count(filters={"branch_id": branch_id, "session_id": session_id})
