from dataclasses import dataclass
from typing import List, Optional, Protocol


@dataclass
class DoctorDto:
    id: str
    name: str
    specialization: Optional[str]
    email: str
    phone: Optional[str]


class DoctorDirectory(Protocol):
    def is_active_doctor(self, doctor_id: str) -> bool:
        ...

    def list_active_doctors(self) -> List[DoctorDto]:
        ...
