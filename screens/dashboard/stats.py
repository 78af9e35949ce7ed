# screens/dashboard/stats.py
"""
Summaries behind the dashboard and the report tabs.

Every function takes the lists returned by the resource APIs (or None while
nothing has been fetched) and returns plain dicts, so the figures can be
tested without Streamlit.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from core.aggregates import (
    count_where,
    grouped_count,
    grouped_sum,
    percentage,
    ratio,
    to_frame,
    total,
)

PERIODS_PER_YEAR = {"MONTHLY": 12, "QUARTERLY": 4, "HALF_YEARLY": 2, "ANNUAL": 1}


def class_summary(classes: Optional[Iterable[Any]]) -> Dict[str, Any]:
    classes = list(classes or [])
    sections = [s for c in classes for s in c.sections]
    staffed = sum(1 for s in sections if s.teacher_id is not None)
    capacity = sum(s.capacity for s in sections)
    return {
        "classes": len(classes),
        "active_classes": sum(1 for c in classes if c.is_active),
        "sections": len(sections),
        "capacity": capacity,
        "avg_section_capacity": round(ratio(capacity, len(sections)), 1),
        "teacher_coverage": percentage(staffed, len(sections)),
        "capacity_by_class": {c.name: sum(s.capacity for s in c.sections) for c in classes},
    }


def teacher_summary(teachers: Optional[Iterable[Any]]) -> Dict[str, Any]:
    teachers = list(teachers or [])
    active = count_where(teachers, lambda t: bool(t.get("is_active")))
    return {
        "teachers": len(teachers),
        "active": active,
        "inactive": len(teachers) - active,
        "active_rate": percentage(active, len(teachers)),
        "by_designation": grouped_count(teachers, "designation"),
    }


def transport_summary(trips: Optional[Iterable[Any]]) -> Dict[str, Any]:
    trips = list(trips or [])
    df = to_frame(trips, ["start_km", "end_km", "fuel_litres", "students_count", "trip_type"])
    if df.empty:
        distance = fuel = 0.0
        by_type: Dict[Any, float] = {}
    else:
        df["distance"] = (df["end_km"].astype(float) - df["start_km"].astype(float)).clip(lower=0)
        distance = float(df["distance"].sum())
        fuel = total(trips, "fuel_litres")
        by_type = {k: float(v) for k, v in df.groupby("trip_type", sort=False)["distance"].sum().items()}
    return {
        "trips": len(df),
        "distance_km": round(distance, 1),
        "fuel_litres": round(fuel, 1),
        "km_per_litre": round(ratio(distance, fuel), 2),
        "students": int(total(trips, "students_count")),
        "distance_by_type": by_type,
        "trips_by_type": grouped_count(trips, "trip_type"),
    }


def annualised(amount: float, frequency: str) -> float:
    return float(amount or 0) * PERIODS_PER_YEAR.get(frequency, 1)


def finance_summary(fees: Optional[Iterable[Any]], class_names: Mapping[int, str]) -> Dict[str, Any]:
    rows = [
        {
            "class": class_names.get(f.class_id, f"Class #{f.class_id}"),
            "frequency": f.frequency,
            "annual": annualised(f.amount, f.frequency),
        }
        for f in (fees or [])
        if f.is_active
    ]
    annual_total = total(rows, "annual")
    return {
        "fee_heads": len(rows),
        "annual_total": annual_total,
        "by_class": grouped_sum(rows, "class", "annual"),
        "by_frequency": grouped_sum(rows, "frequency", "annual"),
        "avg_per_class": round(ratio(annual_total, len({r["class"] for r in rows})), 2),
    }
