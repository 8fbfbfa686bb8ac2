# app/schemas/appointments/appointment.py
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import date, datetime

__all__ = [
    "AppointmentCreate",
    "AppointmentStatusUpdate",
    "AppointmentResponse",
    "AppointmentEnvelope",
]

class AppointmentCreate(BaseModel):
    doctor_id: str = Field(min_length=1)
    appointment_date: str  # YYYY-MM-DD
    appointment_time: str = Field(min_length=1)  # opaque slot label, e.g. "09:00 AM"
    reason: str = Field(min_length=1)
    notes: Optional[str] = ""

class AppointmentStatusUpdate(BaseModel):
    status: Literal["scheduled", "completed", "cancelled"]

class AppointmentResponse(BaseModel):
    id: int
    patient_id: str
    patient_name: Optional[str] = None
    doctor_id: str
    doctor_name: Optional[str] = None
    doctor_specialization: Optional[str] = None
    appointment_date: date
    appointment_time: str
    reason: str
    notes: str = ""
    status: str
    prescription_id: Optional[int] = None
    created_at: datetime

class AppointmentEnvelope(BaseModel):
    message: str
    appointment: AppointmentResponse
