from typing import List, Optional
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from .....db.models import Appointment, Prescription, PrescriptionMedicine
from .....exceptions import (
    AppointmentNotCompleted,
    AppointmentNotFound,
    DependencyUnavailable,
    PrescriptionAlreadyExists,
)
from .....application.ports.appointments_repo import AppointmentStatus
from .....application.ports.prescriptions_repo import (
    MedicineDto,
    PrescriptionDto,
    PrescriptionsRepository,
)

logger = logging.getLogger(__name__)


class SqlPrescriptionsRepository(PrescriptionsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _rx_to_dto(self, rx: Prescription) -> PrescriptionDto:
        return PrescriptionDto(
            id=rx.id,
            appointment_id=rx.appointment_id,
            patient_id=rx.patient_id,
            doctor_id=rx.doctor_id,
            symptoms=rx.symptoms,
            diagnosis=rx.diagnosis,
            medicines=[
                MedicineDto(name=m.name, dosage=m.dosage, duration=m.duration, instructions=m.instructions or "")
                for m in rx.medicines
            ],
            additional_notes=rx.additional_notes or "",
            prescription_date=rx.prescription_date,
            created_at=rx.created_at,
        )

    def _fetch(self, statement, what: str, first: bool = False):
        try:
            result = self.session.exec(statement)
            return result.first() if first else result.all()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable while {what}: {e}", exc_info=True)
            raise DependencyUnavailable()

    def _lost_bind_error(self, appointment_id: int):
        appt = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not appt:
            return AppointmentNotFound()
        if appt.status != AppointmentStatus.completed.value:
            return AppointmentNotCompleted()
        return PrescriptionAlreadyExists()

    def issue(self, appointment_id: int, symptoms: str, diagnosis: str, medicines: List[MedicineDto], additional_notes: str) -> PrescriptionDto:
        try:
            appt = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
            if not appt:
                raise AppointmentNotFound()
            rx = Prescription(
                appointment_id=appointment_id,
                patient_id=appt.patient_id,
                doctor_id=appt.doctor_id,
                symptoms=symptoms,
                diagnosis=diagnosis,
                additional_notes=additional_notes,
            )
            rx.medicines = [
                PrescriptionMedicine(
                    position=idx,
                    name=m.name,
                    dosage=m.dosage,
                    duration=m.duration,
                    instructions=m.instructions,
                )
                for idx, m in enumerate(medicines)
            ]
            self.session.add(rx)
            # Duplicate appointment_id fails here on the unique constraint
            self.session.flush()

            bound = self.session.exec(
                update(Appointment)
                .where(Appointment.id == appointment_id)
                .where(Appointment.status == AppointmentStatus.completed.value)
                .where(Appointment.prescription_id.is_(None))
                .values(prescription_id=rx.id)
                .execution_options(synchronize_session=False)
            )
            if bound.rowcount != 1:
                self.session.rollback()
                raise self._lost_bind_error(appointment_id)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise PrescriptionAlreadyExists()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Database unavailable while issuing prescription for appointment {appointment_id}: {e}", exc_info=True)
            raise DependencyUnavailable()

        self.session.refresh(rx)
        return self._rx_to_dto(rx)

    def get_by_id(self, prescription_id: int) -> Optional[PrescriptionDto]:
        rx = self._fetch(
            select(Prescription).where(Prescription.id == prescription_id),
            f"loading prescription {prescription_id}",
            first=True,
        )
        return self._rx_to_dto(rx) if rx else None

    def get_by_appointment(self, appointment_id: int) -> Optional[PrescriptionDto]:
        rx = self._fetch(
            select(Prescription).where(Prescription.appointment_id == appointment_id),
            f"loading prescription for appointment {appointment_id}",
            first=True,
        )
        return self._rx_to_dto(rx) if rx else None

    def list_for_patient(self, patient_id: str) -> List[PrescriptionDto]:
        rows = self._fetch(
            select(Prescription)
            .where(Prescription.patient_id == patient_id)
            .order_by(Prescription.prescription_date.desc()),
            f"listing prescriptions for patient {patient_id}",
        )
        return [self._rx_to_dto(r) for r in rows]

    def list_for_doctor(self, doctor_id: str) -> List[PrescriptionDto]:
        rows = self._fetch(
            select(Prescription)
            .where(Prescription.doctor_id == doctor_id)
            .order_by(Prescription.prescription_date.desc()),
            f"listing prescriptions for doctor {doctor_id}",
        )
        return [self._rx_to_dto(r) for r in rows]
