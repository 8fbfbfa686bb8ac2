from typing import Dict, List, Optional
from datetime import date
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from .....db.models import Appointment
from .....exceptions import DependencyUnavailable, SlotConflict
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    AppointmentStatus,
)

logger = logging.getLogger(__name__)


class SqlAppointmentsRepository(AppointmentsRepository):
    """Appointments backed by SQLModel.

    Slot exclusivity rests on the partial unique index
    ``uq_appointments_live_slot``; the pre-check only produces a cleaner
    error for the uncontended case.
    """

    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            appointment_date=a.appointment_date,
            time_slot=a.time_slot,
            reason=a.reason,
            notes=a.notes or "",
            status=a.status,
            prescription_id=a.prescription_id,
            created_at=a.created_at,
        )

    def _fetch(self, statement, what: str, first: bool = False):
        try:
            result = self.session.exec(statement)
            return result.first() if first else result.all()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable while {what}: {e}", exc_info=True)
            raise DependencyUnavailable()

    def _find_live(self, doctor_id: str, appointment_date: date, time_slot: str) -> Optional[Appointment]:
        return self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.time_slot == time_slot)
            .where(Appointment.status != AppointmentStatus.cancelled.value)
        ).first()

    def reserve(self, patient_id: str, doctor_id: str, appointment_date: date, time_slot: str, reason: str, notes: str) -> AppointmentDto:
        try:
            if self._find_live(doctor_id, appointment_date, time_slot):
                raise SlotConflict()
            appt = Appointment(
                patient_id=patient_id,
                doctor_id=doctor_id,
                appointment_date=appointment_date,
                time_slot=time_slot,
                reason=reason,
                notes=notes,
                status=AppointmentStatus.scheduled.value,
            )
            self.session.add(appt)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise SlotConflict()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable while reserving slot: {e}", exc_info=True)
            raise DependencyUnavailable()
        self.session.refresh(appt)
        return self._appt_to_dto(appt)

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        rows = self._fetch(
            select(Appointment)
            .where(Appointment.patient_id == patient_id)
            .order_by(Appointment.appointment_date.asc(), Appointment.created_at.asc()),
            f"listing appointments for patient {patient_id}",
        )
        return [self._appt_to_dto(r) for r in rows]

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        rows = self._fetch(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .order_by(Appointment.appointment_date.asc(), Appointment.created_at.asc()),
            f"listing appointments for doctor {doctor_id}",
        )
        return [self._appt_to_dto(r) for r in rows]

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self._fetch(
            select(Appointment).where(Appointment.id == appointment_id),
            f"loading appointment {appointment_id}",
            first=True,
        )
        return self._appt_to_dto(a) if a else None

    def get_many(self, appointment_ids: List[int]) -> Dict[int, AppointmentDto]:
        ids = list(set(appointment_ids))
        if not ids:
            return {}
        rows = self._fetch(
            select(Appointment).where(Appointment.id.in_(ids)),
            f"loading {len(ids)} appointments",
        )
        return {r.id: self._appt_to_dto(r) for r in rows}

    def compare_and_set_status(self, appointment_id: int, expected: str, new_status: str) -> Optional[AppointmentDto]:
        try:
            result = self.session.exec(
                update(Appointment)
                .where(Appointment.id == appointment_id)
                .where(Appointment.status == expected)
                .values(status=new_status)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.session.rollback()
                return None
            self.session.commit()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable while updating appointment {appointment_id}: {e}", exc_info=True)
            raise DependencyUnavailable()
        return self.get_by_id(appointment_id)
