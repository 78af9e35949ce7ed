# screens/dashboard/page.py
from __future__ import annotations

import streamlit as st

from core.aggregates import series
from core.ui import AppContext, flush_messages, handle_error, require_context
from screens.classes.db import ClassApi
from screens.dashboard.stats import class_summary, finance_summary, teacher_summary, transport_summary
from screens.finance.db import FeeStructureApi
from screens.teachers.db import TeacherApi
from screens.transportation.db import TripApi

PAGE_TITLE = "📊 Dashboard"


def _academics(app: AppContext, scope: dict):
    classes = ClassApi(app.engine).list_with_sections(filters=scope)
    teachers = TeacherApi(app.engine).list_all(filters={"branch_id": scope["branch_id"]})
    cs, ts = class_summary(classes), teacher_summary(teachers)

    st.subheader("Academics")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Classes", cs["classes"], help=f"{cs['active_classes']} active")
    c2.metric("Sections", cs["sections"])
    c3.metric("Seats", cs["capacity"], help=f"{cs['avg_section_capacity']} per section on average")
    c4.metric("Sections with a class teacher", f"{cs['teacher_coverage']}%")

    c1, c2, c3 = st.columns(3)
    c1.metric("Teachers", ts["teachers"])
    c2.metric("Active teachers", ts["active"])
    c3.metric("Active rate", f"{ts['active_rate']}%")

    left, right = st.columns(2)
    with left:
        if cs["capacity_by_class"]:
            st.caption("Seats per class")
            st.bar_chart(series(cs["capacity_by_class"], "Class", "Seats"))
    with right:
        if ts["by_designation"]:
            st.caption("Teachers by designation")
            st.bar_chart(series(ts["by_designation"], "Designation", "Teachers"))


def _operations(app: AppContext, scope: dict):
    trips = TripApi(app.engine).list_all(filters={"branch_id": scope["branch_id"]})
    fees = FeeStructureApi(app.engine).list_all(filters=scope)
    class_names = {c.id: c.name for c in ClassApi(app.engine).list_all(filters=scope)}
    tr, fs = transport_summary(trips), finance_summary(fees, class_names)

    st.subheader("Operations")
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Trips logged", tr["trips"])
    c2.metric("Distance", f"{tr['distance_km']:,} km")
    c3.metric("Fuel efficiency", f"{tr['km_per_litre']} km/l")
    c4.metric("Annual fee billing", f"₹{fs['annual_total']:,.0f}")


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return
    scope = {"branch_id": app.tenant.branch_id, "session_id": app.tenant.session_id}
    try:
        _academics(app, scope)
    except Exception as e:
        handle_error(app, e, "Academic summary failed.")
    st.divider()
    try:
        _operations(app, scope)
    except Exception as e:
        handle_error(app, e, "Operations summary failed.")
