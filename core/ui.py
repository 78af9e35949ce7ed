# app/core/ui.py
"""Streamlit widgets shared by every screen: field rendering, list tables, messages."""
from __future__ import annotations

import datetime
import logging
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

import pandas as pd
import streamlit as st
from sqlalchemy.engine import Engine

from core.api import ResourceApi
from core.context import TenantContext
from core.forms import EntityForm, Notifier, RecordingNotifier, StreamlitNotifier
from core.listing import ListViewState, SelectionMode, notify_bulk, run_bulk
from core.policy import can_edit_page
from core.settings import Settings

logger = logging.getLogger(__name__)

_REPLAY = {"success": "success", "error": "error", "warning": "warn", "info": "info"}


@dataclass
class AppContext:
    """Everything a screen needs, handed over explicitly by app.py."""
    engine: Engine
    settings: Settings
    tenant: TenantContext
    roles: Set[str]
    email: str
    rules: Dict[str, Set[str]]
    notifier: RecordingNotifier

    def can_edit(self, page_name: str) -> bool:
        return can_edit_page(page_name, self.roles, self.rules)


@dataclass
class FieldSpec:
    name: str
    label: str
    kind: str = "text"        # text | textarea | int | float | bool | select | multiselect | date
    options: Sequence[Any] = ()
    format: Optional[Callable[[Any], str]] = None
    help: Optional[str] = None
    min_value: Any = None
    max_value: Any = None


# ============================================================================
# MESSAGES & ERRORS
# ============================================================================

def flush_messages(notifier: RecordingNotifier, target: Optional[Notifier] = None) -> None:
    """Replay queued notifications; they survive one st.rerun()."""
    target = target or StreamlitNotifier()
    for level, msg in notifier.drain():
        getattr(target, _REPLAY.get(level, "info"))(msg)


def handle_error(app: AppContext, e: Exception, user_message: str = "An error occurred.") -> None:
    """
    Log the full exception server-side and show a friendly or
    detailed error in Streamlit based on the debug setting.
    """
    logger.error("%s: %s", user_message, e, exc_info=True)
    st.error(user_message)
    if app.settings.debug:
        st.code(traceback.format_exc())


def session_object(key: str, factory: Callable[[], Any]) -> Any:
    """Controller objects live in st.session_state so they survive reruns."""
    if key not in st.session_state:
        st.session_state[key] = factory()
    return st.session_state[key]


def require_context(app: AppContext) -> bool:
    if app.tenant.is_complete:
        return True
    st.warning("Select a branch and an academic session in the sidebar to use this page.")
    return False


# ============================================================================
# FORM FIELDS
# ============================================================================

def _widget(spec: FieldSpec, value: Any, key: str, disabled: bool) -> Any:
    if spec.kind == "textarea":
        return st.text_area(spec.label, value=value or "", key=key, help=spec.help, disabled=disabled)
    if spec.kind == "int":
        return st.number_input(
            spec.label, value=None if value is None else int(value), step=1, key=key, help=spec.help,
            min_value=spec.min_value, max_value=spec.max_value, disabled=disabled,
        )
    if spec.kind == "float":
        return st.number_input(
            spec.label, value=None if value is None else float(value), step=1.0, key=key, help=spec.help,
            min_value=spec.min_value, max_value=spec.max_value, disabled=disabled,
        )
    if spec.kind == "bool":
        return st.checkbox(spec.label, value=bool(value), key=key, help=spec.help, disabled=disabled)
    if spec.kind == "select":
        options = list(spec.options)
        index = options.index(value) if value in options else None
        return st.selectbox(
            spec.label, options, index=index, key=key, help=spec.help, disabled=disabled,
            format_func=spec.format or str,
        )
    if spec.kind == "multiselect":
        options = list(spec.options)
        default = [v for v in (value or []) if v in options]
        return st.multiselect(
            spec.label, options, default=default, key=key, help=spec.help, disabled=disabled,
            format_func=spec.format or str,
        )
    if spec.kind == "date":
        if isinstance(value, str):
            value = datetime.date.fromisoformat(value)
        return st.date_input(spec.label, value=value, key=key, help=spec.help, disabled=disabled)
    return st.text_input(spec.label, value=value or "", key=key, help=spec.help, disabled=disabled)


def render_fields(
    fields: Sequence[FieldSpec],
    values: Dict[str, Any],
    errors: Dict[str, str],
    key: str,
    disabled: bool = False,
    columns: int = 2,
) -> Dict[str, Any]:
    """Lay the widgets out in a grid and return the values they currently hold."""
    out: Dict[str, Any] = {}
    cols = st.columns(columns)
    for i, spec in enumerate(fields):
        with cols[i % columns]:
            out[spec.name] = _widget(spec, values.get(spec.name), f"{key}_{spec.name}", disabled)
            if spec.name in errors:
                st.caption(f":red[{errors[spec.name]}]")
    return out


def render_entity_form(
    form: EntityForm,
    fields: Sequence[FieldSpec],
    key: str,
    can_edit: bool = True,
    submit_label: str = "Save",
) -> Any:
    """Render ``form`` inside st.form; returns the saved record on a successful submit."""
    form_key = f"{key}_{form.record_id or 'new'}_{form.generation}"
    with st.form(form_key):
        values = render_fields(fields, form.values, form.errors, form_key, disabled=not can_edit)
        for name, msg in form.errors.items():
            if name not in {f.name for f in fields}:
                st.caption(f":red[{msg}]")
        submitted = st.form_submit_button(submit_label, type="primary", disabled=form.pending or not can_edit)
    if not submitted:
        return None
    form.update_values(values)
    saved = form.submit()
    if saved is None:
        if form.errors:
            st.error("Please fix the highlighted fields.")
            for name, msg in form.errors.items():
                st.caption(f":red[{msg}]")
        if isinstance(form.notifier, RecordingNotifier):
            flush_messages(form.notifier)
    return saved


# ============================================================================
# LIST TABLE
# ============================================================================

def render_list_controls(state: ListViewState, key: str, page_size_options: Sequence[int]) -> None:
    c1, c2 = st.columns([3, 1])
    with c1:
        term = st.text_input("Search", value=state.search_term, key=f"{key}_search", placeholder="Type to filter…")
    with c2:
        size = st.selectbox(
            "Rows per page", list(page_size_options), key=f"{key}_size",
            index=list(page_size_options).index(state.pager.page_size) if state.pager.page_size in page_size_options else 0,
        )
    state.set_page_size(int(size))
    state.set_search(term)
    state.settle_search()


def render_list_table(
    state: ListViewState,
    api: ResourceApi,
    columns: Dict[str, str],
    key: str,
    row_format: Optional[Callable[[Any], Dict[str, Any]]] = None,
) -> List[Any]:
    """One page as a selectable table plus pager buttons. Returns the records on the page."""
    page = state.fetch(api)
    items = page.items
    rows = [row_format(r) if row_format else r.model_dump() for r in items]
    df = pd.DataFrame(rows, columns=list(columns)).rename(columns=columns) if rows else pd.DataFrame(columns=list(columns.values()))

    if not items:
        st.info("No records match the current filters.")
    else:
        event = st.dataframe(
            df, hide_index=True, use_container_width=True,
            on_select="rerun", selection_mode="multi-row", key=f"{key}_table_{state.current_page}",
        )
        picked = [items[i].id for i in event.selection.rows] if event and event.selection else []
        if state.selection.mode != SelectionMode.ALL_MATCHING:
            state.selection.set(picked)

    c1, c2, c3 = st.columns([1, 2, 1])
    with c1:
        if st.button("◀ Previous", key=f"{key}_prev", disabled=not state.pager.has_previous_page):
            state.pager.previous_page()
            state.selection.clear()
            st.rerun()
    with c2:
        st.caption(f"Page {state.current_page}")
    with c3:
        if st.button("Next ▶", key=f"{key}_next", disabled=not state.pager.has_next_page):
            state.pager.next_page()
            state.selection.clear()
            st.rerun()
    return items


def render_bulk_actions(
    app: AppContext,
    state: ListViewState,
    api: ResourceApi,
    key: str,
    can_edit: bool,
) -> None:
    sel = state.selection
    if sel.mode == SelectionMode.ALL_MATCHING:
        st.caption("All records matching the current filter are selected.")
    elif len(sel):
        st.caption(f"{len(sel)} selected on this page.")
    if not can_edit:
        return
    c1, c2, c3, c4, c5 = st.columns(5)
    with c1:
        if st.button("Select all matching", key=f"{key}_all"):
            sel.select_all_matching()
            st.rerun()
    with c2:
        if st.button("Clear selection", key=f"{key}_clear", disabled=sel.is_empty):
            sel.clear()
            st.rerun()
    actions = []
    if api.status_column:
        actions.append((c3, "Activate", lambda i: api.toggle_status(i, True), "activated"))
        actions.append((c4, "Deactivate", lambda i: api.toggle_status(i, False), "deactivated"))
    actions.append((c5, "Delete", api.delete, "deleted"))
    for col, label, fn, verb in actions:
        with col:
            if st.button(label, key=f"{key}_{verb}", disabled=sel.is_empty):
                ids = sel.resolve(lambda: state.matching_ids(api))
                notify_bulk(run_bulk(ids, fn, verb), app.notifier)
                sel.clear()
                st.rerun()
