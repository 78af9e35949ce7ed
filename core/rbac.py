# app/core/rbac.py
from __future__ import annotations
from typing import Set
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine

__all__ = ["user_roles", "role_names"]

def user_roles(engine: Engine, email: str | None) -> Set[str]:
    """Roles granted to an active user; anonymous visitors only get 'public'."""
    if not email:
        return {"public"}
    with engine.connect() as conn:
        u = conn.execute(sa_text("SELECT id FROM users WHERE LOWER(email)=LOWER(:e) AND active=1"), {"e": email}).fetchone()
        if not u:
            return set()
        rows = conn.execute(sa_text(
            "SELECT r.name FROM user_roles ur JOIN roles r ON r.id = ur.role_id WHERE ur.user_id=:uid"
        ), {"uid": int(u[0])}).fetchall()
    return {r[0] for r in rows}

def role_names(engine: Engine) -> list[str]:
    with engine.connect() as conn:
        rows = conn.execute(sa_text("SELECT name FROM roles ORDER BY name")).fetchall()
    return [r[0] for r in rows]
