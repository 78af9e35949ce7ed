# app/schemas/classes_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_classes_schema(engine: Engine):
    """Classes per branch/session and the sections that belong to them."""
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS classes (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id       INTEGER NOT NULL,
                session_id      INTEGER NOT NULL,
                name            TEXT NOT NULL,
                grade           INTEGER CHECK (grade IS NULL OR grade BETWEEN 1 AND 12),
                display_order   INTEGER NOT NULL DEFAULT 0,
                is_active       INTEGER NOT NULL DEFAULT 1,
                description     TEXT,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(branch_id, session_id, name),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE,
                FOREIGN KEY(session_id) REFERENCES academic_sessions(id) ON DELETE CASCADE
            )
        """))

        # section names are not unique per class: a reconciliation may create
        # a new "B" before the old "B" is deleted
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS sections (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                class_id        INTEGER NOT NULL,
                name            TEXT NOT NULL,
                capacity        INTEGER NOT NULL DEFAULT 30 CHECK (capacity >= 1),
                teacher_id      INTEGER,
                display_order   INTEGER NOT NULL DEFAULT 0,
                is_active       INTEGER NOT NULL DEFAULT 1,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY(class_id) REFERENCES classes(id) ON DELETE CASCADE,
                FOREIGN KEY(teacher_id) REFERENCES teachers(id) ON DELETE SET NULL
            )
        """))
        conn.execute(sa_text("CREATE INDEX IF NOT EXISTS ix_sections_class ON sections(class_id)"))
