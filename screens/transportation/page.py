# screens/transportation/page.py
from __future__ import annotations

import streamlit as st

from core.aggregates import series
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
from screens.dashboard.stats import transport_summary
from screens.transportation.db import TripApi
from screens.transportation.forms import TRIP_SCHEMA, TRIP_TYPES

PAGE_TITLE = "🚌 Transport Trips"
PAGE_NAME = "Transportation"

TABLE_COLUMNS = {
    "trip_date": "Date",
    "bus_number": "Bus",
    "trip_type": "Type",
    "distance": "Distance (km)",
    "students_count": "Students",
    "fuel_litres": "Fuel (l)",
}

FIELDS = [
    FieldSpec("bus_number", "Bus number *"),
    FieldSpec("trip_date", "Trip date *", kind="date"),
    FieldSpec("trip_type", "Trip type", kind="select", options=list(TRIP_TYPES), format=TRIP_TYPES.get),
    FieldSpec("students_count", "Students", kind="int", min_value=0),
    FieldSpec("start_km", "Start km *", kind="float", min_value=0.0),
    FieldSpec("end_km", "End km *", kind="float", min_value=0.0),
    FieldSpec("fuel_litres", "Fuel (litres)", kind="float", min_value=0.0),
    FieldSpec("notes", "Notes", kind="textarea"),
]


def _row(t) -> dict:
    return {
        "trip_date": t.trip_date,
        "bus_number": t.bus_number,
        "trip_type": TRIP_TYPES.get(t.trip_type, t.trip_type),
        "distance": round(t.distance, 1),
        "students_count": t.students_count,
        "fuel_litres": t.fuel_litres,
    }


def _render_log(app: AppContext, api: TripApi, state: ListViewState, form: EntityForm, can_edit: bool):
    state.set_branch(app.tenant.branch_id)
    kinds = {"All trips": None, **{v: k for k, v in TRIP_TYPES.items()}}
    kind = st.selectbox("Trip type", list(kinds), key="trips_type")
    state.set_filter("trip_type", kinds[kind])
    render_list_controls(state, "trips", app.settings.ui.page_size_options)
    items = render_list_table(state, api, TABLE_COLUMNS, "trips", row_format=_row)
    render_bulk_actions(app, state, api, "trips", can_edit)
    if can_edit and state.selection.mode == SelectionMode.SINGLE:
        (picked_id,) = tuple(state.selection.ids)
        picked = next((t for t in items if t.id == picked_id), None)
        if picked and st.button(f"Edit trip of {picked.trip_date}", key="trips_edit"):
            form.reset(picked)
            app.notifier.info("Trip loaded in the Log a trip tab.")
            st.rerun()


def _render_report(app: AppContext, api: TripApi):
    summary = transport_summary(api.list_all(filters={"branch_id": app.tenant.branch_id}))
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Trips", summary["trips"])
    c2.metric("Distance", f"{summary['distance_km']:,} km")
    c3.metric("Fuel", f"{summary['fuel_litres']:,} l")
    c4.metric("Efficiency", f"{summary['km_per_litre']} km/l")
    st.metric("Students carried", summary["students"])
    if summary["distance_by_type"]:
        st.caption("Distance by trip type")
        labelled = {TRIP_TYPES.get(k, k): v for k, v in summary["distance_by_type"].items()}
        st.bar_chart(series(labelled, "Trip type", "Distance (km)"))
    else:
        st.info("No trips logged for this branch yet.")


def render(app: AppContext):
    st.title(PAGE_TITLE)
    flush_messages(app.notifier)
    if not require_context(app):
        return

    can_edit = app.can_edit(PAGE_NAME)
    api = TripApi(app.engine)
    state = session_object("trips_list", lambda: ListViewState(
        page_size=app.settings.ui.page_size,
        debounce=app.settings.ui.search_debounce_ms / 1000,
        branch_id=app.tenant.branch_id,
    ))
    form = session_object("trips_form", lambda: EntityForm(TRIP_SCHEMA, api, app.tenant, notifier=app.notifier))
    form.context = app.tenant

    tab_log, tab_form, tab_report = st.tabs(["Trip log", "Log a trip", "Report"])
    with tab_log:
        try:
            _render_log(app, api, state, form, can_edit)
        except ApiError as e:
            st.error(e.message)
        except Exception as e:
            handle_error(app, e, "Could not load trips.")
    with tab_form:
        try:
            if not can_edit:
                st.info("You have read-only access to transport trips.")
            elif form.is_edit and st.button("Log a new trip instead", key="trips_new"):
                form.reset(None)
                st.rerun()
            if render_entity_form(form, FIELDS, "trip_form", can_edit=can_edit) is not None:
                st.rerun()
        except Exception as e:
            handle_error(app, e, "Could not render the trip form.")
    with tab_report:
        try:
            _render_report(app, api)
        except Exception as e:
            handle_error(app, e, "Transport report failed.")
