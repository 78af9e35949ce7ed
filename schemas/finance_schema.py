# app/schemas/finance_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_finance_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS fee_structures (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id       INTEGER NOT NULL,
                session_id      INTEGER NOT NULL,
                class_id        INTEGER NOT NULL,
                fee_head        TEXT NOT NULL,
                amount          REAL NOT NULL CHECK (amount > 0),
                frequency       TEXT NOT NULL DEFAULT 'ANNUAL'
                                CHECK (frequency IN ('MONTHLY','QUARTERLY','HALF_YEARLY','ANNUAL')),
                due_day         INTEGER NOT NULL DEFAULT 10 CHECK (due_day BETWEEN 1 AND 28),
                is_active       INTEGER NOT NULL DEFAULT 1,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(branch_id, session_id, class_id, fee_head),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE,
                FOREIGN KEY(session_id) REFERENCES academic_sessions(id) ON DELETE CASCADE,
                FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE RESTRICT
            )
        """))
