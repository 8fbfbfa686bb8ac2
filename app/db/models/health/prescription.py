# app/db/models/health/prescription.py
from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone

class Prescription(SQLModel, table=True):
    __tablename__ = "prescriptions"
    id: Optional[int] = Field(default=None, primary_key=True)
    appointment_id: int = Field(foreign_key="appointments.id", unique=True, index=True)
    # Copied from the appointment at issuance
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_id: str = Field(foreign_key="users.id", index=True)
    symptoms: str
    diagnosis: str
    additional_notes: str = Field(default="")
    prescription_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Relationships
    medicines: List["PrescriptionMedicine"] = Relationship(
        back_populates="prescription",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "PrescriptionMedicine.position",
            "lazy": "selectin",
        },
    )


class PrescriptionMedicine(SQLModel, table=True):
    __tablename__ = "prescription_medicines"
    id: Optional[int] = Field(default=None, primary_key=True)
    prescription_id: int = Field(foreign_key="prescriptions.id", index=True)
    position: int = Field(default=0)
    name: str
    dosage: str
    duration: str
    instructions: str = Field(default="")

    prescription: Optional[Prescription] = Relationship(back_populates="medicines")
