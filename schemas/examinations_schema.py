# app/schemas/examinations_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_examinations_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS exam_terms (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id       INTEGER NOT NULL,
                session_id      INTEGER NOT NULL,
                name            TEXT NOT NULL,
                start_date      DATE NOT NULL,
                end_date        DATE NOT NULL,
                display_order   INTEGER NOT NULL DEFAULT 0,
                is_current      INTEGER NOT NULL DEFAULT 0,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(branch_id, session_id, name),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE,
                FOREIGN KEY(session_id) REFERENCES academic_sessions(id) ON DELETE CASCADE
            )
        """))
