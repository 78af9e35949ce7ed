from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine

from core.schema_registry import register

# Page names must match Route.policy_page_key in core/nav_registry.py.
# superadmin is implicit everywhere (core/policy.SUPERUSER_ROLES).
DEFAULT_PAGE_ACCESS = {
    "Dashboard": {
        "view": {"principal", "academic_admin", "accountant", "transport_manager", "teacher"},
        "edit": set(),
    },
    "Classes": {
        "view": {"principal", "academic_admin", "teacher"},
        "edit": {"academic_admin"},
    },
    "Subjects": {
        "view": {"principal", "academic_admin", "teacher"},
        "edit": {"academic_admin"},
    },
    "Examinations": {
        "view": {"principal", "academic_admin", "teacher"},
        "edit": {"principal", "academic_admin"},
    },
    "Teachers": {
        "view": {"principal", "academic_admin"},
        "edit": {"principal"},
    },
    "Transportation": {
        "view": {"principal", "transport_manager"},
        "edit": {"transport_manager"},
    },
    "Finance": {
        "view": {"principal", "accountant"},
        "edit": {"accountant"},
    },
    "Approval Settings": {
        "view": {"principal", "accountant"},
        "edit": {"principal"},
    },
}


@register
def ensure_page_access_schema(engine: Engine):
    """
    Creates a table 'page_access_rules' to store View/Edit permissions
    and ensures DEFAULT_PAGE_ACCESS is present (INSERT OR IGNORE),
    so newly added pages get rules even on existing DBs.
    """
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS page_access_rules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                page_name TEXT NOT NULL,
                permission_type TEXT NOT NULL, -- 'view' or 'edit'
                role_name TEXT NOT NULL,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                created_by TEXT,
                UNIQUE(page_name, permission_type, role_name)
            )
        """))

        for page, permissions in DEFAULT_PAGE_ACCESS.items():
            for perm_type, roles in permissions.items():
                for role in sorted(roles):
                    conn.execute(
                        sa_text("""
                            INSERT OR IGNORE INTO page_access_rules
                                (page_name, permission_type, role_name, created_by)
                            VALUES (:page, :perm, :role, 'system_migration')
                        """),
                        {"page": page, "perm": perm_type, "role": role},
                    )
