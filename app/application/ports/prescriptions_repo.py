from dataclasses import dataclass, field
from typing import List, Optional, Protocol
from datetime import datetime


@dataclass
class MedicineDto:
    name: str
    dosage: str
    duration: str
    instructions: str = ""


@dataclass
class PrescriptionDto:
    id: int
    appointment_id: int
    patient_id: str
    doctor_id: str
    symptoms: str
    diagnosis: str
    medicines: List[MedicineDto] = field(default_factory=list)
    additional_notes: str = ""
    prescription_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def has_participant(self, actor_id: str) -> bool:
        return actor_id in (self.patient_id, self.doctor_id)


class PrescriptionsRepository(Protocol):
    def issue(self, appointment_id: int, symptoms: str, diagnosis: str, medicines: List[MedicineDto], additional_notes: str) -> PrescriptionDto:
        """Create the prescription and bind it to its appointment in one unit.

        Raises AppointmentNotFound, AppointmentNotCompleted or
        PrescriptionAlreadyExists when the preconditions no longer hold at
        write time.
        """
        ...

    def get_by_id(self, prescription_id: int) -> Optional[PrescriptionDto]:
        ...

    def get_by_appointment(self, appointment_id: int) -> Optional[PrescriptionDto]:
        ...

    def list_for_patient(self, patient_id: str) -> List[PrescriptionDto]:
        ...

    def list_for_doctor(self, doctor_id: str) -> List[PrescriptionDto]:
        ...
