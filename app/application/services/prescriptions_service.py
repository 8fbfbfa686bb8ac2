from dataclasses import dataclass
from typing import Any, List, Optional, Sequence
import logging

from ...exceptions import (
    APIException,
    AppointmentNotCompleted,
    AppointmentNotFound,
    PrescriptionAlreadyExists,
    PrescriptionNotFound,
    ValidationError,
)
from ..ports.appointments_repo import AppointmentsRepository, AppointmentStatus
from ..ports.audit_logger import AuditLogger
from ..ports.identity import Actor, Role
from ..ports.prescriptions_repo import MedicineDto, PrescriptionDto, PrescriptionsRepository
from .access import require_role, require_text

logger = logging.getLogger(__name__)


def _coerce_medicine(item: Any, index: int) -> MedicineDto:
    if isinstance(item, MedicineDto):
        raw = item.__dict__
    elif isinstance(item, dict):
        raw = item
    else:
        raise ValidationError(f"Medicine #{index + 1} is malformed")
    return MedicineDto(
        name=require_text(raw.get("name"), "Medicine name"),
        dosage=require_text(raw.get("dosage"), "Medicine dosage"),
        duration=require_text(raw.get("duration"), "Medicine duration"),
        instructions=(raw.get("instructions") or "").strip(),
    )


def normalize_medicines(medicines: Optional[Sequence[Any]]) -> List[MedicineDto]:
    if not medicines:
        raise ValidationError("At least one medicine is required")
    return [_coerce_medicine(m, i) for i, m in enumerate(medicines)]


@dataclass
class PrescriptionsService:
    """Completion-gated prescription issuance and role-scoped prescription reads."""

    repo: PrescriptionsRepository
    appointments: AppointmentsRepository
    audit: Optional[AuditLogger] = None

    def _audit(self, actor: Actor, appointment_id: int, success: bool, **details) -> None:
        if self.audit is not None:
            self.audit.log("prescription.issue", actor.id, str(appointment_id), success, details)

    def issue(self, actor: Actor, appointment_id: int, symptoms: str, diagnosis: str, medicines: Sequence[Any], additional_notes: Optional[str] = None) -> PrescriptionDto:
        try:
            require_role(actor, Role.doctor)
            symptoms = require_text(symptoms, "Symptoms")
            diagnosis = require_text(diagnosis, "Diagnosis")
            items = normalize_medicines(medicines)

            appt = self.appointments.get_by_id(appointment_id)
            if not appt or appt.doctor_id != actor.id:
                raise AppointmentNotFound()
            if appt.status != AppointmentStatus.completed.value:
                raise AppointmentNotCompleted(f"Appointment is {appt.status}; a prescription requires a completed appointment")
            if appt.prescription_id is not None:
                raise PrescriptionAlreadyExists()

            try:
                rx = self.repo.issue(appointment_id, symptoms, diagnosis, items, (additional_notes or "").strip())
            except (PrescriptionAlreadyExists, AppointmentNotCompleted) as e:
                logger.info(f"Prescription issuance for appointment {appointment_id} lost a race: {e.detail}")
                raise
        except APIException as e:
            self._audit(actor, appointment_id, False, reason=e.code)
            raise

        self._audit(actor, appointment_id, True, prescription_id=rx.id, medicines=len(items))
        return rx

    def list(self, actor: Actor) -> List[PrescriptionDto]:
        require_role(actor, Role.patient, Role.doctor)
        if actor.is_doctor:
            rows = self.repo.list_for_doctor(actor.id)
        else:
            rows = self.repo.list_for_patient(actor.id)
        return sorted(rows, key=lambda p: (p.prescription_date, p.id), reverse=True)

    def get(self, actor: Actor, prescription_id: int) -> PrescriptionDto:
        require_role(actor, Role.patient, Role.doctor)
        rx = self.repo.get_by_id(prescription_id)
        if not rx or not rx.has_participant(actor.id):
            raise PrescriptionNotFound()
        return rx

    def get_by_appointment(self, actor: Actor, appointment_id: int) -> PrescriptionDto:
        require_role(actor, Role.patient, Role.doctor)
        rx = self.repo.get_by_appointment(appointment_id)
        if not rx or not rx.has_participant(actor.id):
            raise PrescriptionNotFound("Prescription not found for this appointment")
        return rx
