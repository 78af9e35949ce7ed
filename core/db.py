# app/core/db.py
from __future__ import annotations
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from core.schema_registry import auto_discover, run_all

SCHEMAS_DIR = Path(__file__).resolve().parents[1] / "schemas"

def _enable_sqlite_fks(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()

def get_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite:///"):
        db_file = db_url.replace("sqlite:///", "")
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(db_url, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_fks)
    return engine

def init_db(engine: Engine) -> None:
    # 1) auto-discover schema modules (schemas/*.py) so their @register runs
    auto_discover(SCHEMAS_DIR, root_package=None)

    # 2) run all registered ensure_*_schema(engine) functions
    run_all(engine)
