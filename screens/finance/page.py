# screens/finance/page.py
from __future__ import annotations

import pandas as pd
import streamlit as st

from core.aggregates import series, top
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
from screens.classes.db import ClassApi
from screens.dashboard.stats import annualised, finance_summary
from screens.finance.db import FeeStructureApi
from screens.finance.forms import FEE_HEADS, FEE_STRUCTURE_SCHEMA, FREQUENCIES

PAGE_TITLE = "💰 Fee Structures"
PAGE_NAME = "Finance"


def _fields(class_names: dict) -> list:
    return [
        FieldSpec("class_id", "Class *", kind="select", options=list(class_names), format=lambda i: class_names.get(i, "")),
        FieldSpec("fee_head", "Fee head *", kind="select", options=FEE_HEADS),
        FieldSpec("amount", "Amount *", kind="float", min_value=0.0),
        FieldSpec("frequency", "Frequency", kind="select", options=list(FREQUENCIES), format=FREQUENCIES.get),
        FieldSpec("due_day", "Due day of month", kind="int", min_value=1, max_value=28),
        FieldSpec("is_active", "Active", kind="bool"),
    ]


def _render_structures(app: AppContext, api: FeeStructureApi, fees, class_names: dict, form: EntityForm, can_edit: bool):
    class_filter = st.selectbox(
        "Class", [None] + list(class_names), format_func=lambda i: "All classes" if i is None else class_names[i],
        key="fees_class",
    )
    shown = [f for f in fees if class_filter is None or f.class_id == class_filter]
    if not shown:
        st.info("No fee structures defined yet.")
        return
    st.dataframe(pd.DataFrame([
        {
            "Class": class_names.get(f.class_id, f"#{f.class_id}"),
            "Fee head": f.fee_head,
            "Amount": f.amount,
            "Frequency": FREQUENCIES.get(f.frequency, f.frequency),
            "Annual": annualised(f.amount, f.frequency),
            "Due day": f.due_day,
            "Status": "Active" if f.is_active else "Inactive",
        }
        for f in shown
    ]), hide_index=True, use_container_width=True)
    if not can_edit:
        return

    labels = {f.id: f"{class_names.get(f.class_id, f.class_id)} · {f.fee_head}" for f in shown}
    picked = st.selectbox("Fee structure", list(labels), format_func=labels.get, key="fees_pick")
    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("✏️ Edit", key="fees_edit"):
            form.reset(api.get(picked))
            st.rerun()
    with c2:
        current = next(f for f in shown if f.id == picked)
        verb = "Deactivate" if current.is_active else "Activate"
        if st.button(verb, key="fees_toggle"):
            api.toggle_status(picked, not current.is_active)
            app.notifier.success(f"{labels[picked]} {verb.lower()}d.")
            st.rerun()
    with c3:
        if st.button("🗑 Delete", key="fees_delete"):
            api.delete(picked)
            app.notifier.success(f"{labels[picked]} deleted.")
            st.rerun()


def _render_report(fees, class_names: dict):
    summary = finance_summary(fees, class_names)
    c1, c2, c3 = st.columns(3)
    c1.metric("Active fee heads", summary["fee_heads"])
    c2.metric("Annual billing", f"₹{summary['annual_total']:,.0f}")
    c3.metric("Average per class", f"₹{summary['avg_per_class']:,.0f}")
    if not summary["by_class"]:
        st.info("Nothing to report yet.")
        return
    highest = top(summary["by_class"])
    if highest:
        st.caption(f"Highest annual billing: {highest[0]}")
    st.bar_chart(series(summary["by_class"], "Class", "Annual amount"))
    labelled = {FREQUENCIES.get(k, k): v for k, v in summary["by_frequency"].items()}
    st.bar_chart(series(labelled, "Frequency", "Annual amount"))


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    api = FeeStructureApi(app.engine)
    scope = {"branch_id": app.tenant.branch_id, "session_id": app.tenant.session_id}
    form = session_object("fees_form", lambda: EntityForm(
        FEE_STRUCTURE_SCHEMA, api, app.tenant, notifier=app.notifier,
    ))
    form.context = app.tenant

    try:
        class_names = {c.id: c.name for c in ClassApi(app.engine).list_all(filters=scope)}
        fees = api.list_all(filters=scope)
    except Exception as e:
        handle_error(app, e, "Could not load fee structures.")
        return

    tab_list, tab_form, tab_report = st.tabs(["Fee structures", "Add / Edit", "Finance report"])
    with tab_list:
        try:
            _render_structures(app, api, fees, class_names, form, can_edit)
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "Fee structure list failed.")
    with tab_form:
        try:
            if not class_names:
                st.warning("Create classes for this session before defining fees.")
            elif not can_edit:
                st.info("You have read-only access to fee structures.")
            else:
                if form.is_edit and st.button("New fee structure instead", key="fees_new"):
                    form.reset(None)
                    st.rerun()
                if render_entity_form(form, _fields(class_names), "fee_form") is not None:
                    st.rerun()
        except Exception as e:
            handle_error(app, e, "Could not render the fee form.")
    with tab_report:
        try:
            _render_report(fees, class_names)
        except Exception as e:
            handle_error(app, e, "Finance report failed.")
