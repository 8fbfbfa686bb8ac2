from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol
from datetime import datetime, date


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"


@dataclass
class AppointmentDto:
    id: int
    patient_id: str
    doctor_id: str
    appointment_date: date
    time_slot: str
    reason: str
    notes: str
    status: str
    prescription_id: Optional[int]
    created_at: datetime

    @property
    def booking_key(self):
        return (self.doctor_id, self.appointment_date, self.time_slot)

    def has_participant(self, actor_id: str) -> bool:
        return actor_id in (self.patient_id, self.doctor_id)


class AppointmentsRepository(Protocol):
    def reserve(self, patient_id: str, doctor_id: str, appointment_date: date, time_slot: str, reason: str, notes: str) -> AppointmentDto:
        """Insert a scheduled appointment, or raise SlotConflict if a live one holds the key."""
        ...

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def get_many(self, appointment_ids: List[int]) -> Dict[int, AppointmentDto]:
        ...

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        ...

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        ...

    def compare_and_set_status(self, appointment_id: int, expected: str, new_status: str) -> Optional[AppointmentDto]:
        """Set status only if it still equals ``expected``; None when it does not."""
        ...
