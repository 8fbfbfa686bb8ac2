# Models package (re-export feature modules for stable imports)
from .users.user import User
from .health.appointment import Appointment
from .health.prescription import Prescription, PrescriptionMedicine

__all__ = [
    "User",
    "Appointment",
    "Prescription",
    "PrescriptionMedicine",
]
