# app/core/policy.py
from __future__ import annotations
from typing import Dict, Iterable, Set
import logging
import streamlit as st
from sqlalchemy.engine import Engine
from sqlalchemy import text as sa_text

logger = logging.getLogger(__name__)

SUPERUSER_ROLES = {"superadmin"}

# ============================================================================
# PAGE ACCESS RULES (page_access_rules table)
# ============================================================================

def load_page_access_rules(engine: Engine) -> Dict[str, Set[str]]:
    """
    Returns a lookup like
    {'view_Classes': {'principal', 'academic_admin'}, 'edit_Classes': {'academic_admin'}}
    """
    lookup: Dict[str, Set[str]] = {}
    with engine.connect() as conn:
        rules = conn.execute(sa_text(
            "SELECT page_name, permission_type, role_name FROM page_access_rules"
        )).fetchall()
    for page, perm_type, role in rules:
        lookup.setdefault(f"{perm_type}_{page}", set()).add(role)
    return lookup

@st.cache_data(ttl=300)  # rules change rarely; 5 minutes
def cached_page_access_rules(_engine: Engine) -> Dict[str, Set[str]]:
    return load_page_access_rules(_engine)

def can_view_page(page_name: str, roles: Iterable[str], rules: Dict[str, Set[str]]) -> bool:
    """Checks if any of the user's roles can view the page."""
    roles = set(roles)
    if roles & SUPERUSER_ROLES:
        return True
    allowed_roles = rules.get(f"view_{page_name}", set())
    # 'public' opens a page to everyone
    if "public" in allowed_roles:
        return True
    return bool(roles & allowed_roles)

def can_edit_page(page_name: str, roles: Iterable[str], rules: Dict[str, Set[str]]) -> bool:
    """Checks if any of the user's roles can edit the page."""
    roles = set(roles)
    if roles & SUPERUSER_ROLES:
        return True
    return bool(roles & rules.get(f"edit_{page_name}", set()))

def visible_pages_for(roles: Iterable[str], rules: Dict[str, Set[str]]) -> list[str]:
    """Gets all pages the user's roles have view access to."""
    all_pages = {key.split("_", 1)[1] for key in rules}
    return sorted(p for p in all_pages if can_view_page(p, roles, rules))
