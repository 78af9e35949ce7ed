# screens/examinations/page.py
from __future__ import annotations

import pandas as pd
import streamlit as st

from core.api import ApiError
from core.forms import EntityForm
from core.ui import (
    AppContext,
    FieldSpec,
    flush_messages,
    handle_error,
    render_entity_form,
    require_context,
    session_object,
)
from screens.examinations.db import ExamTermApi
from screens.examinations.forms import EXAM_TERM_SCHEMA

PAGE_TITLE = "📝 Examination Terms"
PAGE_NAME = "Examinations"

FIELDS = [
    FieldSpec("name", "Term name *", help="For example: Term 1, Half Yearly, Annual"),
    FieldSpec("display_order", "Display order", kind="int", min_value=0),
    FieldSpec("start_date", "Start date *", kind="date"),
    FieldSpec("end_date", "End date *", kind="date"),
    FieldSpec("is_current", "Current term", kind="bool"),
]


def _render_terms(app: AppContext, api: ExamTermApi, form: EntityForm, can_edit: bool):
    terms = api.list_all(filters={"branch_id": app.tenant.branch_id, "session_id": app.tenant.session_id})
    if not terms:
        st.info("No examination terms defined for this session.")
        return
    st.dataframe(pd.DataFrame([
        {
            "Order": t.display_order,
            "Term": t.name,
            "Starts": t.start_date,
            "Ends": t.end_date,
            "Days": t.days,
            "Current": "✅" if t.is_current else "",
        }
        for t in terms
    ]), hide_index=True, use_container_width=True)
    if not can_edit:
        return

    labels = {t.id: t.name for t in terms}
    picked = st.selectbox("Term", list(labels), format_func=labels.get, key="exam_terms_pick")
    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("✏️ Edit", key="exam_terms_edit"):
            form.reset(api.get(picked))
            st.rerun()
    with c2:
        if st.button("Mark as current", key="exam_terms_current"):
            api.set_current(picked)
            app.notifier.success(f"{labels[picked]} is now the current term.")
            st.rerun()
    with c3:
        if st.button("🗑 Delete", key="exam_terms_delete"):
            api.delete(picked)
            app.notifier.success(f"{labels[picked]} deleted.")
            if form.record_id == picked:
                form.reset(None)
            st.rerun()


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    api = ExamTermApi(app.engine)
    form = session_object("exam_terms_form", lambda: EntityForm(
        EXAM_TERM_SCHEMA, api, app.tenant, notifier=app.notifier,
    ))
    form.context = app.tenant

    try:
        _render_terms(app, api, form, can_edit)
    except ApiError as e:
        st.error(e.message)
    except Exception as e:
        handle_error(app, e, "Could not load examination terms.")

    if not can_edit:
        return
    st.divider()
    try:
        st.subheader(f"Edit {form.values.get('name')}" if form.is_edit else "New term")
        if form.is_edit and st.button("New term instead", key="exam_terms_new"):
            form.reset(None)
            st.rerun()
        if render_entity_form(form, FIELDS, "exam_term_form") is not None:
            st.rerun()
    except Exception as e:
        handle_error(app, e, "Could not render the term form.")
