import pytest
from sqlalchemy import text as sa_text

from core import schema_registry
from core.schema_registry import register, registered_names, run_all


@pytest.fixture
def registry(monkeypatch):
    monkeypatch.setattr(schema_registry, "_REGISTRY", [])
    return schema_registry


def test_register_forms_and_order(registry):
    calls = []

    @register
    def ensure_a(engine):
        calls.append("a")

    @register("b")
    def ensure_b(engine):
        calls.append("b")

    register("c", lambda engine: calls.append("c"))
    assert registered_names() == [f"{__name__}.ensure_a", "b", "c"]
    run_all(engine=None)
    assert calls == ["a", "b", "c"]


def test_reregistering_replaces_entry(registry):
    register("x", lambda engine: None)
    register("x", lambda engine: None)
    assert registered_names() == ["x"]


def test_failing_installer_aborts(registry):
    register("boom", lambda engine: 1 / 0)
    register("after", lambda engine: pytest.fail("should not run"))
    with pytest.raises(ZeroDivisionError):
        run_all(engine=None)


def test_invalid_usage():
    with pytest.raises(TypeError):
        register(42)


def test_init_db_is_idempotent(engine):
    from core.db import init_db

    init_db(engine)
    with engine.connect() as conn:
        assert conn.execute(sa_text("SELECT COUNT(*) FROM branches")).scalar() == 2
        assert conn.execute(sa_text("PRAGMA foreign_keys")).scalar() == 1
