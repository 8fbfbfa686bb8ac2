from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    patient = "patient"
    doctor = "doctor"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the identity context."""
    id: str
    role: Role
    name: str = ""

    @property
    def is_doctor(self) -> bool:
        return self.role == Role.doctor

    @property
    def is_patient(self) -> bool:
        return self.role == Role.patient
