# screens/teachers/page.py
from __future__ import annotations

import logging

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
from screens.teachers.db import TeacherApi
from screens.teachers.forms import DESIGNATIONS, TEACHER_SCHEMA

logger = logging.getLogger(__name__)

PAGE_TITLE = "👩‍🏫 Teachers"
PAGE_NAME = "Teachers"

STATUS_FILTERS = {"All": None, "Active": True, "Inactive": False}

TABLE_COLUMNS = {
    "employee_code": "Code",
    "name": "Name",
    "designation": "Designation",
    "email": "Email",
    "phone": "Phone",
    "status": "Status",
}

FIELDS = [
    FieldSpec("first_name", "First name *"),
    FieldSpec("last_name", "Last name"),
    FieldSpec("employee_code", "Employee code *"),
    FieldSpec("designation", "Designation", kind="select", options=DESIGNATIONS),
    FieldSpec("email", "Email"),
    FieldSpec("phone", "Phone"),
    FieldSpec("joining_date", "Joining date", kind="date"),
    FieldSpec("is_active", "Active", kind="bool"),
]


def _row(t) -> dict:
    return {
        "employee_code": t.employee_code,
        "name": t.full_name,
        "designation": t.designation or "-",
        "email": t.email or "",
        "phone": t.phone or "",
        "status": "Active" if t.is_active else "Inactive",
    }


def _render_directory(app: AppContext, api: TeacherApi, state: ListViewState, form: EntityForm, can_edit: bool):
    state.set_branch(app.tenant.branch_id)
    status = st.radio("Status", list(STATUS_FILTERS), horizontal=True, key="teachers_status")
    state.set_filter("is_active", STATUS_FILTERS[status])
    render_list_controls(state, "teachers", app.settings.ui.page_size_options)

    items = render_list_table(state, api, TABLE_COLUMNS, "teachers", row_format=_row)
    render_bulk_actions(app, state, api, "teachers", can_edit)

    if can_edit and state.selection.mode == SelectionMode.SINGLE:
        (selected_id,) = tuple(state.selection.ids)
        picked = next((t for t in items if t.id == selected_id), None)
        if picked and st.button(f"Edit {picked.full_name}", key="teachers_edit_selected"):
            form.reset(picked)
            app.notifier.info(f"{picked.full_name} loaded in the Add / Edit tab.")
            st.rerun()


def _render_editor(app: AppContext, form: EntityForm, can_edit: bool):
    if form.is_edit:
        st.subheader(f"Edit teacher #{form.record_id}")
        if st.button("Start a new teacher instead", key="teachers_new"):
            form.reset(None)
            st.rerun()
    else:
        st.subheader("New teacher")
    saved = render_entity_form(form, FIELDS, "teacher_form", can_edit=can_edit)
    if saved is not None:
        st.rerun()


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    api = TeacherApi(app.engine)
    state = session_object("teachers_list", lambda: ListViewState(
        page_size=app.settings.ui.page_size,
        debounce=app.settings.ui.search_debounce_ms / 1000,
        branch_id=app.tenant.branch_id,
    ))
    form = session_object("teachers_form", lambda: EntityForm(
        TEACHER_SCHEMA, api, app.tenant, notifier=app.notifier,
    ))
    form.context = app.tenant

    tab_list, tab_form = st.tabs(["Directory", "Add / Edit"])
    with tab_list:
        try:
            _render_directory(app, api, state, form, can_edit)
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "Could not load the teacher directory.")
    with tab_form:
        try:
            if not can_edit:
                st.info("You have read-only access to teachers.")
            _render_editor(app, form, can_edit)
        except Exception as e:
            handle_error(app, e, "Could not render the teacher form.")
