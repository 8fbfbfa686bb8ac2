# app/schemas/prescriptions/prescription.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

__all__ = [
    "MedicineIn",
    "MedicineOut",
    "PrescriptionCreate",
    "PrescriptionAppointmentSummary",
    "PrescriptionResponse",
    "PrescriptionEnvelope",
]

class MedicineIn(BaseModel):
    name: str = Field(min_length=1)
    dosage: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    instructions: Optional[str] = ""

class MedicineOut(BaseModel):
    name: str
    dosage: str
    duration: str
    instructions: str = ""

class PrescriptionCreate(BaseModel):
    appointment_id: int
    symptoms: str = Field(min_length=1)
    diagnosis: str = Field(min_length=1)
    medicines: List[MedicineIn] = Field(min_length=1)
    additional_notes: Optional[str] = ""

class PrescriptionAppointmentSummary(BaseModel):
    appointment_date: date
    appointment_time: str
    reason: str

class PrescriptionResponse(BaseModel):
    id: int
    appointment_id: int
    patient_id: str
    patient_name: Optional[str] = None
    doctor_id: str
    doctor_name: Optional[str] = None
    doctor_specialization: Optional[str] = None
    symptoms: str
    diagnosis: str
    medicines: List[MedicineOut]
    additional_notes: str = ""
    prescription_date: datetime
    appointment: Optional[PrescriptionAppointmentSummary] = None

class PrescriptionEnvelope(BaseModel):
    message: str
    prescription: PrescriptionResponse
