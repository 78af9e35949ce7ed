import datetime

import pytest

from screens.classes.db import ClassRecord, SectionRecord
from screens.dashboard.stats import (
    annualised,
    class_summary,
    finance_summary,
    teacher_summary,
    transport_summary,
)
from screens.finance.db import FeeStructureRecord
from screens.transportation.db import TripRecord


def klass(cid, name, sections, active=True):
    return ClassRecord(id=cid, branch_id=1, session_id=2, name=name, is_active=active, sections=[
        SectionRecord(id=cid * 10 + i, class_id=cid, name=n, capacity=cap, teacher_id=t)
        for i, (n, cap, t) in enumerate(sections)
    ])


def trip(tid, kind, start, end, fuel, students=0):
    return TripRecord(id=tid, branch_id=1, bus_number="KA01", trip_date=datetime.date(2025, 6, 1),
                      trip_type=kind, start_km=start, end_km=end, fuel_litres=fuel, students_count=students)


def fee(fid, class_id, amount, frequency, active=True):
    return FeeStructureRecord(id=fid, branch_id=1, session_id=2, class_id=class_id, fee_head="Tuition",
                              amount=amount, frequency=frequency, is_active=active)


def test_class_summary():
    classes = [
        klass(1, "Grade 1", [("A", 30, 7), ("B", 30, None)]),
        klass(2, "Grade 2", [("A", 40, 8)], active=False),
    ]
    s = class_summary(classes)
    assert (s["classes"], s["active_classes"], s["sections"], s["capacity"]) == (2, 1, 3, 100)
    assert s["avg_section_capacity"] == 33.3
    assert s["teacher_coverage"] == 66.7
    assert s["capacity_by_class"] == {"Grade 1": 60, "Grade 2": 40}


def test_class_summary_without_sections():
    s = class_summary([klass(1, "Grade 1", [])])
    assert s["sections"] == 0
    assert s["avg_section_capacity"] == 0.0
    assert s["teacher_coverage"] == 0.0


@pytest.mark.parametrize("empty", [None, []])
def test_summaries_of_nothing(empty):
    assert class_summary(empty)["classes"] == 0
    assert teacher_summary(empty) == {
        "teachers": 0, "active": 0, "inactive": 0, "active_rate": 0.0, "by_designation": {},
    }
    t = transport_summary(empty)
    assert (t["trips"], t["distance_km"], t["km_per_litre"], t["distance_by_type"]) == (0, 0.0, 0.0, {})
    f = finance_summary(empty, {})
    assert (f["fee_heads"], f["annual_total"], f["avg_per_class"]) == (0, 0.0, 0.0)


def test_teacher_summary():
    teachers = [
        {"is_active": True, "designation": "PGT"},
        {"is_active": False, "designation": "TGT"},
        {"is_active": True, "designation": "PGT"},
        {"is_active": True, "designation": None},
    ]
    s = teacher_summary(teachers)
    assert (s["teachers"], s["active"], s["inactive"]) == (4, 3, 1)
    assert s["active_rate"] == 75.0
    assert s["by_designation"] == {"PGT": 2, "TGT": 1, "Unassigned": 1}


def test_transport_summary():
    trips = [
        trip(1, "REGULAR", 100, 150, 10, students=30),
        trip(2, "REGULAR", 150, 170, 4, students=25),
        trip(3, "MAINTENANCE", 170, 175, 1),
    ]
    s = transport_summary(iter(trips))
    assert s["trips"] == 3
    assert s["distance_km"] == 75.0
    assert s["fuel_litres"] == 15.0
    assert s["km_per_litre"] == 5.0
    assert s["students"] == 55
    assert s["distance_by_type"] == {"REGULAR": 70.0, "MAINTENANCE": 5.0}
    assert s["trips_by_type"] == {"REGULAR": 2, "MAINTENANCE": 1}


def test_transport_summary_without_fuel():
    s = transport_summary([trip(1, "REGULAR", 0, 10, 0)])
    assert s["km_per_litre"] == 0.0


def test_annualised():
    assert annualised(1000, "MONTHLY") == 12000
    assert annualised(2500, "QUARTERLY") == 10000
    assert annualised(5000, "ANNUAL") == 5000
    assert annualised(None, "MONTHLY") == 0


def test_finance_summary_skips_inactive_heads():
    fees = [
        fee(1, 1, 1000, "MONTHLY"),
        fee(2, 1, 3000, "ANNUAL"),
        fee(3, 2, 5000, "HALF_YEARLY"),
        fee(4, 2, 9999, "ANNUAL", active=False),
    ]
    s = finance_summary(fees, {1: "Grade 1"})
    assert s["fee_heads"] == 3
    assert s["annual_total"] == 25000.0
    assert s["by_class"] == {"Grade 1": 15000.0, "Class #2": 10000.0}
    assert s["by_frequency"] == {"MONTHLY": 12000.0, "ANNUAL": 3000.0, "HALF_YEARLY": 10000.0}
    assert s["avg_per_class"] == 12500.0
