import datetime

import pytest

from core.validation import Schema
from screens.approval_settings.forms import APPROVAL_SETTINGS_SCHEMA
from screens.classes.forms import CLASS_SCHEMA, SECTION_SCHEMA
from screens.examinations.forms import EXAM_TERM_SCHEMA
from screens.teachers.forms import TEACHER_SCHEMA
from screens.transportation.forms import TRIP_SCHEMA


@pytest.mark.parametrize("values", [
    {"name": "Grade 5", "is_active": True, "display_order": 0},
    {"name": "Class 10", "grade": 10, "display_order": 3, "description": "Board year"},
    {"name": "Nursery"},
])
def test_valid_class_has_no_errors(values):
    result = CLASS_SCHEMA.validate(values)
    assert result.valid
    assert result.errors == {}
    assert result.cleaned["name"] == values["name"]


@pytest.mark.parametrize("blank", ["", "   ", None])
def test_blank_required_field_reports_required(blank):
    result = CLASS_SCHEMA.validate({"name": blank})
    assert not result.valid
    assert result.errors == {"name": "Class name is required"}


def test_blank_optional_field_falls_back_to_default():
    result = CLASS_SCHEMA.validate({"name": "Class 1", "grade": "", "description": "  "})
    assert result.valid
    assert result.cleaned["grade"] is None
    assert result.cleaned["description"] is None


def test_strings_are_stripped():
    result = CLASS_SCHEMA.validate({"name": "  Class 2 "})
    assert result.cleaned["name"] == "Class 2"


def test_numeric_bounds_use_declared_message():
    result = CLASS_SCHEMA.validate({"name": "Class 13", "grade": 13})
    assert result.errors == {"grade": "Grade must be between 1 and 12"}


@pytest.mark.parametrize("capacity", [0, -5])
def test_section_capacity_must_be_positive(capacity):
    result = SECTION_SCHEMA.validate({"name": "A", "capacity": capacity})
    assert result.errors == {"capacity": "Capacity must be at least 1"}


def test_date_range_error_is_keyed_to_end_date():
    result = EXAM_TERM_SCHEMA.validate({
        "name": "Term 1",
        "start_date": datetime.date(2024, 1, 1),
        "end_date": datetime.date(2023, 12, 31),
    })
    assert not result.valid
    assert set(result.errors) == {"end_date"}
    assert result.errors["end_date"] == "End date must be after start date"


def test_same_day_term_is_rejected():
    result = EXAM_TERM_SCHEMA.validate({"name": "Unit test", "start_date": "2024-05-02", "end_date": "2024-05-02"})
    assert "end_date" in result.errors


def test_iso_date_strings_are_parsed():
    result = EXAM_TERM_SCHEMA.validate({"name": "Term 2", "start_date": "2024-09-01", "end_date": "2024-09-20"})
    assert result.valid
    assert result.cleaned["end_date"] == datetime.date(2024, 9, 20)


def test_end_km_before_start_km_is_keyed_to_end_km():
    result = TRIP_SCHEMA.validate({
        "bus_number": "ka-01-1234", "trip_date": "2024-06-01", "start_km": 1200, "end_km": 1100,
    })
    assert result.errors == {"end_km": "End km cannot be less than start km"}


def test_trip_normalises_bus_number():
    result = TRIP_SCHEMA.validate({"bus_number": "ka-01", "trip_date": "2024-06-01", "start_km": 10, "end_km": 40})
    assert result.valid
    assert result.cleaned["bus_number"] == "KA-01"


def test_enumerated_field_rejects_unknown_value():
    result = TRIP_SCHEMA.validate({
        "bus_number": "B1", "trip_date": "2024-06-01", "trip_type": "FIELD_TRIP", "start_km": 1, "end_km": 2,
    })
    assert list(result.errors) == ["trip_type"]


def test_teacher_email_and_code_rules():
    result = TEACHER_SCHEMA.validate({"first_name": "Asha", "employee_code": "t", "email": "not-an-email"})
    assert result.errors == {
        "employee_code": "Employee code must be 2 to 20 characters",
        "email": "Enter a valid email address",
    }
    ok = TEACHER_SCHEMA.validate({"first_name": "Asha", "employee_code": "emp01", "email": "Asha@School.org"})
    assert ok.valid
    assert ok.cleaned["employee_code"] == "EMP01"
    assert ok.cleaned["email"] == "asha@school.org"


def test_approval_limits_cannot_exceed_maximum():
    result = APPROVAL_SETTINGS_SCHEMA.validate({
        "max_approval_amount": 10000,
        "auto_approve_below": 20000,
        "escalation_threshold": 30000,
        "approval_roles": ["principal"],
    })
    assert set(result.errors) == {"auto_approve_below", "escalation_threshold"}
    assert "maximum approval amount" in result.errors["auto_approve_below"]


def test_two_person_approval_needs_two_roles():
    result = APPROVAL_SETTINGS_SCHEMA.validate({"approval_type": "TWO_PERSON", "approval_roles": ["principal"]})
    assert result.errors == {"approval_roles": "Two-person approval needs at least two approver roles"}
    ok = APPROVAL_SETTINGS_SCHEMA.validate({"approval_type": "TWO_PERSON", "approval_roles": ["principal", "accountant"]})
    assert ok.valid


def test_defaults_mark_required_fields_empty():
    defaults = SECTION_SCHEMA.defaults()
    assert defaults["name"] is None
    assert defaults["capacity"] == 30
    assert defaults["is_active"] is True


def test_labels_fall_back_to_field_names():
    from pydantic import BaseModel

    class Thing(BaseModel):
        fee_head: str

    schema = Schema(Thing)
    assert schema.label("fee_head") == "Fee head"
    assert schema.validate({}).errors == {"fee_head": "Fee head is required"}
