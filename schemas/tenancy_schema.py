# app/schemas/tenancy_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

DEFAULT_BRANCHES = [
    ("Main Campus", "MAIN"),
    ("North Campus", "NORTH"),
]

DEFAULT_SESSIONS = [
    ("2024-25", "2024-04-01", "2025-03-31", 0),
    ("2025-26", "2025-04-01", "2026-03-31", 1),
]

@register
def ensure_tenancy_schema(engine: Engine):
    """Branches and academic sessions: the scope every record belongs to."""
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS branches (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT NOT NULL,
                code        TEXT NOT NULL UNIQUE,
                created_at  DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at  DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """))
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS academic_sessions (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                name        TEXT NOT NULL UNIQUE,
                start_date  DATE NOT NULL,
                end_date    DATE NOT NULL,
                is_active   INTEGER NOT NULL DEFAULT 0,
                created_at  DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at  DATETIME DEFAULT CURRENT_TIMESTAMP
            )
        """))

        for name, code in DEFAULT_BRANCHES:
            conn.execute(sa_text(
                "INSERT OR IGNORE INTO branches(name, code) VALUES(:n, :c)"
            ), {"n": name, "c": code})
        for name, start, end, active in DEFAULT_SESSIONS:
            conn.execute(sa_text("""
                INSERT OR IGNORE INTO academic_sessions(name, start_date, end_date, is_active)
                VALUES(:n, :s, :e, :a)
            """), {"n": name, "s": start, "e": end, "a": active})
