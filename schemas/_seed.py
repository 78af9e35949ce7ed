# app/schemas/_seed.py
from __future__ import annotations

import os
from sqlalchemy import text as sa_text
from core.schema_registry import register

# ──────────────────────────────────────────────────────────────────────────────
# RBAC seeds (roles + a few demo users)
# ──────────────────────────────────────────────────────────────────────────────

ROLE_NAMES = [
    "superadmin",
    "principal",
    "academic_admin",
    "accountant",
    "transport_manager",
    "teacher",
]

DEFAULT_USERS = {
    os.getenv("SEED_SUPERADMIN_EMAIL", "admin@example.com").lower(): (
        os.getenv("SEED_SUPERADMIN_NAME", "Super Admin"),
        ["superadmin"],
    ),
    os.getenv("SEED_PRINCIPAL_EMAIL", "principal@example.com").lower(): (
        os.getenv("SEED_PRINCIPAL_NAME", "Principal"),
        ["principal"],
    ),
    "academics@example.com": ("Academic Coordinator", ["academic_admin"]),
    "accounts@example.com": ("Accounts Office", ["accountant"]),
    "transport@example.com": ("Transport Desk", ["transport_manager"]),
}

SEED_SHOULD_RUN = os.getenv("SEED_RUN", "1").lower() not in ("0", "false")

def _ensure_rbac_tables(conn):
    """Idempotent: create core RBAC tables if missing."""
    conn.execute(sa_text("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            full_name TEXT,
            active INTEGER NOT NULL DEFAULT 1,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """))
    conn.execute(sa_text("""
        CREATE TABLE IF NOT EXISTS roles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE
        )
    """))
    conn.execute(sa_text("""
        CREATE TABLE IF NOT EXISTS user_roles (
            user_id INTEGER NOT NULL,
            role_id INTEGER NOT NULL,
            PRIMARY KEY (user_id, role_id),
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(role_id) REFERENCES roles(id) ON DELETE CASCADE
        )
    """))
    conn.execute(sa_text("CREATE INDEX IF NOT EXISTS ix_user_roles_user ON user_roles(user_id)"))
    conn.execute(sa_text("CREATE INDEX IF NOT EXISTS ix_user_roles_role ON user_roles(role_id)"))

def _get_role_id(conn, role_name: str):
    row = conn.execute(sa_text("SELECT id FROM roles WHERE name=:n"), {"n": role_name}).fetchone()
    return row[0] if row else None

def _ensure_role(conn, role_name: str) -> int:
    conn.execute(sa_text("INSERT OR IGNORE INTO roles(name) VALUES(:n)"), {"n": role_name})
    return _get_role_id(conn, role_name)

def _get_user_id(conn, email: str):
    row = conn.execute(sa_text("SELECT id FROM users WHERE email=:e"), {"e": email}).fetchone()
    return row[0] if row else None

def _ensure_user(conn, email: str, full_name: str) -> int:
    conn.execute(
        sa_text("INSERT OR IGNORE INTO users(email, full_name, active) VALUES(:e, :n, 1)"),
        {"e": email.lower(), "n": full_name},
    )
    return _get_user_id(conn, email.lower())

def _grant_role(conn, user_id: int, role_id: int):
    conn.execute(
        sa_text("INSERT OR IGNORE INTO user_roles(user_id, role_id) VALUES(:u, :r)"),
        {"u": user_id, "r": role_id},
    )

@register
def seed_rbac(engine):
    """
    Seed base RBAC: roles and a few default users with their roles.
    Tables are always created; SEED_RUN=0/false skips the demo rows.
    """
    with engine.begin() as conn:
        _ensure_rbac_tables(conn)
        if not SEED_SHOULD_RUN:
            return
        for rn in ROLE_NAMES:
            _ensure_role(conn, rn)
        for email, (full_name, roles) in DEFAULT_USERS.items():
            uid = _ensure_user(conn, email, full_name)
            for rn in roles:
                rid = _get_role_id(conn, rn)
                if rid:
                    _grant_role(conn, uid, rid)
