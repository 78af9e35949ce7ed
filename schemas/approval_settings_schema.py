# app/schemas/approval_settings_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_approval_settings_schema(engine: Engine):
    """Concession approval workflow settings, one row per branch + session."""
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS approval_settings (
                id                      INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id               INTEGER NOT NULL,
                session_id              INTEGER NOT NULL,
                approval_type           TEXT NOT NULL DEFAULT 'ONE_PERSON'
                                        CHECK (approval_type IN ('ONE_PERSON','TWO_PERSON')),
                auto_approve_below      REAL NOT NULL DEFAULT 1000,
                max_approval_amount     REAL NOT NULL DEFAULT 50000,
                escalation_threshold    REAL NOT NULL DEFAULT 25000,
                approval_timeout_days   INTEGER NOT NULL DEFAULT 7,
                require_reason          INTEGER NOT NULL DEFAULT 1,
                allow_self_approval     INTEGER NOT NULL DEFAULT 0,
                approval_roles          TEXT NOT NULL DEFAULT '[]',  -- JSON list of role names
                created_at              DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at              DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(branch_id, session_id),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE,
                FOREIGN KEY(session_id) REFERENCES academic_sessions(id) ON DELETE CASCADE
            )
        """))
