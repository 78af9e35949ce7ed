# app/schemas/subjects_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_subjects_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS subjects (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id       INTEGER NOT NULL,
                name            TEXT NOT NULL,
                code            TEXT NOT NULL,
                subject_type    TEXT NOT NULL DEFAULT 'CORE'
                                CHECK (subject_type IN ('CORE','ELECTIVE','CO_CURRICULAR')),
                description     TEXT,
                is_active       INTEGER NOT NULL DEFAULT 1,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(branch_id, code),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE
            )
        """))
