# app/schemas/transportation_schema.py
from __future__ import annotations
from sqlalchemy import text as sa_text
from sqlalchemy.engine import Engine
from core.schema_registry import register

@register
def ensure_transportation_schema(engine: Engine):
    with engine.begin() as conn:
        conn.execute(sa_text("""
            CREATE TABLE IF NOT EXISTS transport_trips (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                branch_id       INTEGER NOT NULL,
                bus_number      TEXT NOT NULL,
                trip_date       DATE NOT NULL,
                trip_type       TEXT NOT NULL DEFAULT 'REGULAR'
                                CHECK (trip_type IN ('REGULAR','EMERGENCY','MAINTENANCE')),
                start_km        REAL NOT NULL CHECK (start_km >= 0),
                end_km          REAL NOT NULL,
                students_count  INTEGER NOT NULL DEFAULT 0,
                fuel_litres     REAL NOT NULL DEFAULT 0,
                notes           TEXT,
                created_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                updated_at      DATETIME DEFAULT CURRENT_TIMESTAMP,
                CHECK (end_km >= start_km),
                FOREIGN KEY(branch_id) REFERENCES branches(id) ON DELETE CASCADE
            )
        """))
        conn.execute(sa_text("CREATE INDEX IF NOT EXISTS ix_trips_branch_date ON transport_trips(branch_id, trip_date)"))
