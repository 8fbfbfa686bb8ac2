from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional
from datetime import datetime, date
import logging

from ...exceptions import (
    APIException,
    AppointmentNotFound,
    DoctorNotFound,
    InvalidTransition,
    SlotConflict,
    ValidationError,
)
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto, AppointmentStatus
from ..ports.audit_logger import AuditLogger
from ..ports.directory import DoctorDirectory
from ..ports.identity import Actor, Role
from .access import require_role, require_text

logger = logging.getLogger(__name__)

# Sole source of truth for the appointment state machine.
ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.scheduled: frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled}),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}


def parse_appointment_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Valid appointment date is required")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid appointment date format. Use YYYY-MM-DD")


def check_transition(current: str, new_status: str) -> AppointmentStatus:
    """Validate ``current -> new_status`` against the state machine."""
    try:
        target = AppointmentStatus(new_status)
    except ValueError:
        valid = [s.value for s in AppointmentStatus]
        raise ValidationError(f"Invalid status. Must be one of: {valid}")
    if target not in ALLOWED_TRANSITIONS[AppointmentStatus(current)]:
        raise InvalidTransition(f"Cannot change appointment status from {current} to {target.value}")
    return target


@dataclass
class AppointmentsService:
    """Slot allocation, the appointment lifecycle and role-scoped reads."""

    repo: AppointmentsRepository
    directory: DoctorDirectory
    audit: Optional[AuditLogger] = None

    def _audit(self, action: str, actor: Actor, resource_id=None, success: bool = True, **details) -> None:
        if self.audit is not None:
            self.audit.log(action, actor.id, str(resource_id) if resource_id is not None else None, success, details)

    def book(self, actor: Actor, doctor_id: str, appointment_date, time_slot: str, reason: str, notes: Optional[str] = None) -> AppointmentDto:
        try:
            require_role(actor, Role.patient)
            doctor_id = require_text(doctor_id, "Doctor ID")
            booking_date = parse_appointment_date(appointment_date)
            time_slot = require_text(time_slot, "Appointment time")
            reason = require_text(reason, "Reason for appointment")

            if not self.directory.is_active_doctor(doctor_id):
                raise DoctorNotFound()

            appt = self.repo.reserve(actor.id, doctor_id, booking_date, time_slot, reason, (notes or "").strip())
        except APIException as e:
            if isinstance(e, SlotConflict):
                logger.info(f"Slot {doctor_id}/{appointment_date}/{time_slot} already held, rejecting booking by {actor.id}")
            self._audit("appointment.book", actor, success=False, doctor_id=doctor_id,
                        appointment_date=str(appointment_date), time_slot=time_slot, reason=e.code)
            raise

        self._audit("appointment.book", actor, appt.id, doctor_id=doctor_id,
                    appointment_date=booking_date.isoformat(), time_slot=time_slot)
        return appt

    def list(self, actor: Actor) -> List[AppointmentDto]:
        require_role(actor, Role.patient, Role.doctor)
        if actor.is_doctor:
            rows = self.repo.list_for_doctor(actor.id)
        else:
            rows = self.repo.list_for_patient(actor.id)
        return sorted(rows, key=lambda a: (a.appointment_date, a.created_at))

    def get(self, actor: Actor, appointment_id: int) -> AppointmentDto:
        require_role(actor, Role.patient, Role.doctor)
        appt = self.repo.get_by_id(appointment_id)
        # Non-participants get the same answer as a missing row
        if not appt or not appt.has_participant(actor.id):
            raise AppointmentNotFound()
        return appt

    def transition(self, actor: Actor, appointment_id: int, new_status: str) -> AppointmentDto:
        try:
            require_role(actor, Role.doctor)
            appt = self.repo.get_by_id(appointment_id)
            if not appt or appt.doctor_id != actor.id:
                raise AppointmentNotFound()

            target = check_transition(appt.status, new_status)
            updated = self.repo.compare_and_set_status(appointment_id, appt.status, target.value)
            if updated is None:
                # Another transition committed between our read and write
                current = self.repo.get_by_id(appointment_id)
                current_status = current.status if current else "unknown"
                logger.info(f"Lost status race on appointment {appointment_id}: now {current_status}")
                raise InvalidTransition(f"Cannot change appointment status from {current_status} to {target.value}")
        except APIException as e:
            self._audit("appointment.transition", actor, appointment_id, success=False,
                        target=new_status, reason=e.code)
            raise

        self._audit("appointment.transition", actor, appointment_id, source=appt.status, target=target.value)
        return updated
