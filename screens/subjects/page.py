# screens/subjects/page.py
from __future__ import annotations

import streamlit as st

from core.api import ApiError
from core.forms import EntityForm
from core.listing import ListViewState, SelectionMode
from core.ui import (
    AppContext,
    FieldSpec,
    flush_messages,
    handle_error,
    render_bulk_actions,
    render_entity_form,
    render_list_controls,
    render_list_table,
    require_context,
    session_object,
)
from screens.subjects.db import SubjectApi
from screens.subjects.forms import SUBJECT_SCHEMA, SUBJECT_TYPES

PAGE_TITLE = "📘 Subjects"
PAGE_NAME = "Subjects"

TABLE_COLUMNS = {"code": "Code", "name": "Subject", "type": "Type", "status": "Status"}

FIELDS = [
    FieldSpec("name", "Subject name *"),
    FieldSpec("code", "Subject code *"),
    FieldSpec("subject_type", "Type", kind="select", options=list(SUBJECT_TYPES), format=SUBJECT_TYPES.get),
    FieldSpec("is_active", "Active", kind="bool"),
    FieldSpec("description", "Description", kind="textarea"),
]


def _row(s) -> dict:
    return {
        "code": s.code,
        "name": s.name,
        "type": SUBJECT_TYPES.get(s.subject_type, s.subject_type),
        "status": "Active" if s.is_active else "Inactive",
    }


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    api = SubjectApi(app.engine)
    state = session_object("subjects_list", lambda: ListViewState(
        page_size=app.settings.ui.page_size,
        debounce=app.settings.ui.search_debounce_ms / 1000,
        branch_id=app.tenant.branch_id,
    ))
    form = session_object("subjects_form", lambda: EntityForm(
        SUBJECT_SCHEMA, api, app.tenant, notifier=app.notifier,
    ))
    form.context = app.tenant

    left, right = st.columns([3, 2])
    with left:
        try:
            state.set_branch(app.tenant.branch_id)
            kinds = {"All types": None, **{v: k for k, v in SUBJECT_TYPES.items()}}
            kind = st.selectbox("Type", list(kinds), key="subjects_type")
            state.set_filter("subject_type", kinds[kind])
            render_list_controls(state, "subjects", app.settings.ui.page_size_options)
            items = render_list_table(state, api, TABLE_COLUMNS, "subjects", row_format=_row)
            render_bulk_actions(app, state, api, "subjects", can_edit)
            if can_edit and state.selection.mode == SelectionMode.SINGLE:
                (picked_id,) = tuple(state.selection.ids)
                picked = next((s for s in items if s.id == picked_id), None)
                if picked and st.button(f"Edit {picked.code}", key="subjects_edit"):
                    form.reset(picked)
                    st.rerun()
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "Could not load subjects.")
    with right:
        try:
            st.subheader(f"Edit {form.values.get('code')}" if form.is_edit else "New subject")
            if form.is_edit and st.button("New subject instead", key="subjects_new"):
                form.reset(None)
                st.rerun()
            if render_entity_form(form, FIELDS, "subject_form", can_edit=can_edit) is not None:
                st.rerun()
        except Exception as e:
            handle_error(app, e, "Could not render the subject form.")
