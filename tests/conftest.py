from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import pytest

from core.api import ApiError
from core.context import TenantContext
from core.db import get_engine, init_db
from core.forms import RecordingNotifier


class Rec:
    """Stand-in record: attribute access plus model_dump, like the pydantic records."""

    def __init__(self, **data):
        self.__dict__.update(data)

    def model_dump(self) -> Dict[str, Any]:
        return dict(self.__dict__)


class FakeApi:
    """Records every write; ``fail_when(action, arg)`` returning True raises ApiError."""

    def __init__(self, label: str = "Record", first_id: int = 1):
        self.label = label
        self.calls: List[tuple] = []
        self.store: Dict[Any, Rec] = {}
        self._next_id = first_id
        self.fail_when: Optional[Callable[[str, Any], bool]] = None

    def _check(self, action: str, arg: Any) -> None:
        if self.fail_when is not None and self.fail_when(action, arg):
            raise ApiError(f"{self.label} {action} failed")

    def create(self, fields):
        self.calls.append(("create", dict(fields)))
        self._check("create", fields)
        rec = Rec(**{**fields, "id": self._next_id})
        self.store[rec.id] = rec
        self._next_id += 1
        return rec

    def update(self, record_id, fields):
        self.calls.append(("update", record_id, dict(fields)))
        self._check("update", (record_id, fields))
        base = self.store[record_id].model_dump() if record_id in self.store else {}
        rec = Rec(**{**base, **fields, "id": record_id})
        self.store[record_id] = rec
        return rec

    def delete(self, record_id):
        self.calls.append(("delete", record_id))
        self._check("delete", record_id)
        self.store.pop(record_id, None)

    def actions(self) -> List[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def context():
    return TenantContext(branch_id=1, session_id=2)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fake_api_factory():
    return FakeApi


@pytest.fixture
def engine(tmp_path):
    eng = get_engine(f"sqlite:///{tmp_path / 'school.db'}")
    init_db(eng)
    yield eng
    eng.dispose()
