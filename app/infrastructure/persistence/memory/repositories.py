from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from ....exceptions import (
    AppointmentNotCompleted,
    AppointmentNotFound,
    PrescriptionAlreadyExists,
    SlotConflict,
)
from ....application.ports.appointments_repo import AppointmentDto, AppointmentStatus, AppointmentsRepository
from ....application.ports.directory import DoctorDirectory, DoctorDto
from ....application.ports.prescriptions_repo import MedicineDto, PrescriptionDto, PrescriptionsRepository
from ....application.ports.user_repo import UserDto, UserRepository
from .store import InMemoryStore


def _copy_rx(rx: PrescriptionDto) -> PrescriptionDto:
    return replace(rx, medicines=[replace(m) for m in rx.medicines])


class InMemoryAppointmentsRepository(AppointmentsRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def reserve(self, patient_id: str, doctor_id: str, appointment_date: date, time_slot: str, reason: str, notes: str) -> AppointmentDto:
        key = (doctor_id, appointment_date, time_slot)
        with self.store.lock:
            for a in self.store.appointments.values():
                if a.booking_key == key and a.status != AppointmentStatus.cancelled.value:
                    raise SlotConflict()
            appt = AppointmentDto(
                id=self.store.next_appointment_id(),
                patient_id=patient_id,
                doctor_id=doctor_id,
                appointment_date=appointment_date,
                time_slot=time_slot,
                reason=reason,
                notes=notes,
                status=AppointmentStatus.scheduled.value,
                prescription_id=None,
                created_at=datetime.now(timezone.utc),
            )
            self.store.appointments[appt.id] = appt
            return replace(appt)

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        with self.store.lock:
            a = self.store.appointments.get(appointment_id)
            return replace(a) if a else None

    def get_many(self, appointment_ids: List[int]) -> Dict[int, AppointmentDto]:
        with self.store.lock:
            return {
                i: replace(self.store.appointments[i])
                for i in set(appointment_ids)
                if i in self.store.appointments
            }

    def list_for_patient(self, patient_id: str) -> List[AppointmentDto]:
        with self.store.lock:
            rows = [replace(a) for a in self.store.appointments.values() if a.patient_id == patient_id]
        return sorted(rows, key=lambda a: (a.appointment_date, a.created_at))

    def list_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        with self.store.lock:
            rows = [replace(a) for a in self.store.appointments.values() if a.doctor_id == doctor_id]
        return sorted(rows, key=lambda a: (a.appointment_date, a.created_at))

    def compare_and_set_status(self, appointment_id: int, expected: str, new_status: str) -> Optional[AppointmentDto]:
        with self.store.lock:
            a = self.store.appointments.get(appointment_id)
            if not a or a.status != expected:
                return None
            updated = replace(a, status=new_status)
            self.store.appointments[appointment_id] = updated
            return replace(updated)


class InMemoryPrescriptionsRepository(PrescriptionsRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def issue(self, appointment_id: int, symptoms: str, diagnosis: str, medicines: List[MedicineDto], additional_notes: str) -> PrescriptionDto:
        with self.store.lock:
            appt = self.store.appointments.get(appointment_id)
            if not appt:
                raise AppointmentNotFound()
            if appt.status != AppointmentStatus.completed.value:
                raise AppointmentNotCompleted()
            if appt.prescription_id is not None or any(
                p.appointment_id == appointment_id for p in self.store.prescriptions.values()
            ):
                raise PrescriptionAlreadyExists()
            now = datetime.now(timezone.utc)
            rx = PrescriptionDto(
                id=self.store.next_prescription_id(),
                appointment_id=appointment_id,
                patient_id=appt.patient_id,
                doctor_id=appt.doctor_id,
                symptoms=symptoms,
                diagnosis=diagnosis,
                medicines=[replace(m) for m in medicines],
                additional_notes=additional_notes,
                prescription_date=now,
                created_at=now,
            )
            self.store.prescriptions[rx.id] = rx
            self.store.appointments[appointment_id] = replace(appt, prescription_id=rx.id)
            return _copy_rx(rx)

    def get_by_id(self, prescription_id: int) -> Optional[PrescriptionDto]:
        with self.store.lock:
            rx = self.store.prescriptions.get(prescription_id)
            return _copy_rx(rx) if rx else None

    def get_by_appointment(self, appointment_id: int) -> Optional[PrescriptionDto]:
        with self.store.lock:
            rx = next((p for p in self.store.prescriptions.values() if p.appointment_id == appointment_id), None)
            return _copy_rx(rx) if rx else None

    def list_for_patient(self, patient_id: str) -> List[PrescriptionDto]:
        with self.store.lock:
            rows = [_copy_rx(p) for p in self.store.prescriptions.values() if p.patient_id == patient_id]
        return sorted(rows, key=lambda p: (p.prescription_date, p.id), reverse=True)

    def list_for_doctor(self, doctor_id: str) -> List[PrescriptionDto]:
        with self.store.lock:
            rows = [_copy_rx(p) for p in self.store.prescriptions.values() if p.doctor_id == doctor_id]
        return sorted(rows, key=lambda p: (p.prescription_date, p.id), reverse=True)


class InMemoryUserRepository(UserRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        with self.store.lock:
            return self.store.users.get(user_id)

    def get_many(self, user_ids: List[str]) -> Dict[str, UserDto]:
        with self.store.lock:
            return {uid: self.store.users[uid] for uid in set(user_ids) if uid in self.store.users}


class InMemoryDoctorDirectory(DoctorDirectory):
    def __init__(self, store: InMemoryStore):
        self.store = store

    def is_active_doctor(self, doctor_id: str) -> bool:
        with self.store.lock:
            u = self.store.users.get(doctor_id)
        return bool(u and u.role == "doctor" and u.is_active)

    def list_active_doctors(self) -> List[DoctorDto]:
        with self.store.lock:
            doctors = [u for u in self.store.users.values() if u.role == "doctor" and u.is_active]
        return [
            DoctorDto(id=d.id, name=d.name, specialization=d.specialization, email=d.email, phone=d.phone)
            for d in sorted(doctors, key=lambda d: d.name)
        ]
