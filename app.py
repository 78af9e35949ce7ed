# app.py
from __future__ import annotations
import logging
import streamlit as st
from sqlalchemy import text as sa_text

from core.settings import Settings, load_settings, configure_logging
from core.db import get_engine, init_db
from core.rbac import user_roles as fetch_roles_for
from core.policy import cached_page_access_rules
from core.context import TenantContext, list_branches, list_sessions
from core.forms import RecordingNotifier
from core.nav_registry import SECTIONS, DEFAULT_ROUTE_KEY, Route, resolve_render, visible_sections
from core.ui import AppContext, session_object

logger = logging.getLogger(__name__)


def _ensure_engine(settings: Settings):
    if "engine" not in st.session_state:
        st.session_state["engine"] = get_engine(settings.db.url)
    return st.session_state["engine"]


def _ensure_schema(engine) -> None:
    """Run every registered schema installer once per session."""
    if st.session_state.get("db_initialized"):
        return
    try:
        init_db(engine)
    except Exception as e:
        logger.error("Database initialisation failed", exc_info=True)
        st.error("Database schema initialization failed. See details below.")
        with st.expander("Diagnostics"):
            st.exception(e)
        st.stop()
    st.session_state["db_initialized"] = True


def _active_users(engine) -> dict[str, str]:
    with engine.connect() as conn:
        rows = conn.execute(sa_text(
            "SELECT email, COALESCE(full_name, email) FROM users WHERE active=1 ORDER BY full_name"
        )).fetchall()
    return {r[0]: r[1] for r in rows}


def _session_user(engine, settings: Settings) -> str:
    """Demo sign-in: pick any seeded user; the configured demo user is the default."""
    users = _active_users(engine)
    default_email = settings.auth.demo_user_email.lower()
    if default_email not in users:
        users = {default_email: settings.auth.demo_user_name, **users}
    emails = list(users)
    current = (st.session_state.get("user") or {}).get("email", default_email)
    email = st.sidebar.selectbox(
        "Signed in as", emails,
        index=emails.index(current) if current in emails else 0,
        format_func=lambda e: f"{users[e]} ({e})",
        key="session_user_email",
    )
    st.session_state["user"] = {"email": email, "name": users[email]}
    return email


def _tenant_picker(engine) -> TenantContext:
    branches = {b["id"]: b["name"] for b in list_branches(engine)}
    sessions = list_sessions(engine)
    session_names = {s["id"]: s["name"] for s in sessions}
    active = next((s["id"] for s in sessions if s["is_active"]), None)
    session_ids = list(session_names)

    st.sidebar.markdown("### Scope")
    branch_id = st.sidebar.selectbox(
        "Branch", list(branches), format_func=branches.get, index=0 if branches else None,
        placeholder="Select a branch", key="tenant_branch",
    )
    session_id = st.sidebar.selectbox(
        "Academic session", session_ids, format_func=session_names.get,
        index=session_ids.index(active) if active in session_ids else (0 if session_ids else None),
        placeholder="Select a session", key="tenant_session",
    )
    return TenantContext(branch_id=branch_id, session_id=session_id)


def _page_callable(route: Route, app: AppContext):
    render = resolve_render(route)

    def _run():
        render(app)

    _run.__name__ = f"page_{route.key}"
    return _run


def main():
    settings = load_settings()
    configure_logging(settings)
    st.set_page_config(page_title=settings.app.name, layout="wide", page_icon="🏫")

    engine = _ensure_engine(settings)
    _ensure_schema(engine)

    st.sidebar.title(settings.app.name)
    email = _session_user(engine, settings)
    roles = fetch_roles_for(engine, email)
    rules = cached_page_access_rules(engine)
    tenant = _tenant_picker(engine)
    notifier = session_object("notifier", RecordingNotifier)

    app = AppContext(
        engine=engine,
        settings=settings,
        tenant=tenant,
        roles=roles,
        email=email,
        rules=rules,
        notifier=notifier,
    )

    sections = visible_sections(SECTIONS, roles, rules)
    if not sections:
        st.warning("Your account has no pages assigned. Ask an administrator to grant a role.")
        st.stop()

    has_default = any(r.key == DEFAULT_ROUTE_KEY for s in sections for r in s.routes)
    nav = {
        section.title: [
            st.Page(
                _page_callable(route, app),
                title=route.label,
                icon=route.icon,
                url_path=route.key,
                default=has_default and route.key == DEFAULT_ROUTE_KEY,
            )
            for route in section.routes
        ]
        for section in sections
    }
    if settings.debug:
        st.sidebar.caption(f"Roles: {', '.join(sorted(roles)) or 'none'}")
    st.navigation(nav).run()


if __name__ == "__main__":
    main()
