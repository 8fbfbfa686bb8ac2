# app/schemas/doctors/doctor.py
from pydantic import BaseModel
from typing import Optional

__all__ = ["DoctorResponse"]

class DoctorResponse(BaseModel):
    id: str
    name: str
    specialization: Optional[str] = None
    email: str
    phone: Optional[str] = None
