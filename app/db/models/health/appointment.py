# app/db/models/health/appointment.py
from typing import Optional
from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field
from datetime import date, datetime, timezone

_LIVE = text("status != 'cancelled'")

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        # At most one live appointment per booking key
        Index(
            "uq_appointments_live_slot",
            "doctor_id", "appointment_date", "time_slot",
            unique=True,
            sqlite_where=_LIVE,
            postgresql_where=_LIVE,
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    appointment_date: date
    time_slot: str
    reason: str
    notes: str = Field(default="")
    status: str = Field(default="scheduled", max_length=10)
    # Written once by prescription issuance, never cleared
    prescription_id: Optional[int] = Field(default=None)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
