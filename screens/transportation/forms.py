# screens/transportation/forms.py
from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from core.validation import Schema
from screens.transportation.db import TripType

TRIP_TYPES = {"REGULAR": "Regular", "EMERGENCY": "Emergency", "MAINTENANCE": "Maintenance"}


class TripForm(BaseModel):
    bus_number: str = Field(min_length=1, max_length=20, title="Bus number")
    trip_date: datetime.date = Field(title="Trip date")
    trip_type: TripType = "REGULAR"
    start_km: float = Field(ge=0, title="Start km")
    end_km: float = Field(ge=0, title="End km")
    students_count: int = Field(default=0, ge=0, title="Students")
    fuel_litres: float = Field(default=0, ge=0, title="Fuel (litres)")
    notes: Optional[str] = Field(default=None, max_length=500)

    @field_validator("bus_number")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

    @field_validator("end_km")
    @classmethod
    def _not_before_start(cls, v: float, info: ValidationInfo) -> float:
        start = info.data.get("start_km")
        if start is not None and v < start:
            raise ValueError("End km cannot be less than start km")
        return v


TRIP_SCHEMA = Schema(
    TripForm,
    messages={
        "start_km": "Start km cannot be negative",
        "students_count": "Students cannot be negative",
        "fuel_litres": "Fuel cannot be negative",
    },
)
