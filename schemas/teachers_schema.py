# app/schemas/teachers_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_teachers_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS teachers (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id       INTEGER NOT NULL,
                first_name      TEXT NOT NULL,
                last_name       TEXT,
                employee_code   TEXT NOT NULL,
                email           TEXT,
                phone           TEXT,
                designation     TEXT,
                joining_date    DATE,
                is_active       INTEGER NOT NULL DEFAULT 1,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(branch_id, employee_code),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE
            )
        """))
        conn.execute(sa_text("CREATE INDEX IF NOT EXISTS ix_teachers_branch ON teachers(branch_id)"))
