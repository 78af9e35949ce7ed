# screens/transportation/db.py
from __future__ import annotations

import datetime
from typing import Literal, Optional

from pydantic import BaseModel

from core.api import ResourceApi

TripType = Literal["REGULAR", "EMERGENCY", "MAINTENANCE"]


class TripRecord(BaseModel):
    id: int
    branch_id: int
    bus_number: str
    trip_date: datetime.date
    trip_type: TripType = "REGULAR"
    start_km: float
    end_km: float
    students_count: int = 0
    fuel_litres: float = 0
    notes: Optional[str] = None

    @property
    def distance(self) -> float:
        return max(0.0, self.end_km - self.start_km)


class TripApi(ResourceApi):
    table = "transport_trips"
    label = "Trip"
    record = TripRecord
    columns = (
        "branch_id", "bus_number", "trip_date", "trip_type", "start_km", "end_km",
        "students_count", "fuel_litres", "notes",
    )
    search_columns = ("bus_number", "notes")
    filter_columns = ("branch_id", "trip_type", "bus_number")
