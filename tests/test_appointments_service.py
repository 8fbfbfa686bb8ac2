from datetime import date

import pytest

from app.application.services.appointments_service import check_transition, parse_appointment_date
from app.exceptions import (
    AppointmentNotFound,
    DoctorNotFound,
    Forbidden,
    InvalidTransition,
    SlotConflict,
    ValidationError,
)


def test_book_success(appointments, patient, doctor):
    out = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    assert out.id == 1
    assert out.status == "scheduled"
    assert out.patient_id == patient.id
    assert out.doctor_id == doctor.id
    assert out.appointment_date == date(2024, 3, 1)
    assert out.prescription_id is None
    assert out.notes == ""


def test_book_same_slot_conflicts_and_neighbouring_slot_succeeds(appointments, patient, other_patient, doctor):
    appointments.book(patient, doctor.id, "2024-03-02", "10:00 AM", "checkup")
    with pytest.raises(SlotConflict):
        appointments.book(other_patient, doctor.id, "2024-03-02", "10:00 AM", "fever")
    out = appointments.book(other_patient, doctor.id, "2024-03-02", "10:30 AM", "fever")
    assert out.status == "scheduled"


def test_same_slot_with_different_doctor_is_free(appointments, patient, doctor, other_doctor):
    appointments.book(patient, doctor.id, "2024-03-02", "10:00 AM", "checkup")
    out = appointments.book(patient, other_doctor.id, "2024-03-02", "10:00 AM", "checkup")
    assert out.doctor_id == other_doctor.id


def test_cancelling_frees_the_booking_key(appointments, patient, other_patient, doctor):
    first = appointments.book(patient, doctor.id, "2024-01-15", "10:00 AM", "checkup")
    appointments.transition(doctor, first.id, "cancelled")
    again = appointments.book(other_patient, doctor.id, "2024-01-15", "10:00 AM", "follow-up")
    assert again.id != first.id
    assert again.status == "scheduled"


def test_completing_keeps_the_slot_held(appointments, patient, other_patient, doctor):
    first = appointments.book(patient, doctor.id, "2024-01-15", "10:00 AM", "checkup")
    appointments.transition(doctor, first.id, "completed")
    with pytest.raises(SlotConflict):
        appointments.book(other_patient, doctor.id, "2024-01-15", "10:00 AM", "follow-up")


def test_book_rejects_unknown_or_inactive_doctor(appointments, store, patient):
    with pytest.raises(DoctorNotFound):
        appointments.book(patient, "no-such-doctor", "2024-03-01", "09:00 AM", "checkup")
    retired = store.add_user("Dr. Gone", "gone@clinix.com", "doctor", is_active=False)
    with pytest.raises(DoctorNotFound):
        appointments.book(patient, retired.id, "2024-03-01", "09:00 AM", "checkup")


def test_book_rejects_patient_id_as_doctor(appointments, patient, other_patient):
    with pytest.raises(DoctorNotFound):
        appointments.book(patient, other_patient.id, "2024-03-01", "09:00 AM", "checkup")


def test_book_requires_patient_role(appointments, doctor, other_doctor):
    with pytest.raises(Forbidden):
        appointments.book(doctor, other_doctor.id, "2024-03-01", "09:00 AM", "checkup")


@pytest.mark.parametrize("day,slot,reason", [
    ("2024-13-01", "09:00 AM", "checkup"),
    ("not-a-date", "09:00 AM", "checkup"),
    ("", "09:00 AM", "checkup"),
    ("2024-03-01", "   ", "checkup"),
    ("2024-03-01", "09:00 AM", ""),
])
def test_book_validates_input(appointments, patient, doctor, day, slot, reason):
    with pytest.raises(ValidationError):
        appointments.book(patient, doctor.id, day, slot, reason)


def test_parse_appointment_date_accepts_date_objects():
    assert parse_appointment_date(date(2024, 2, 29)) == date(2024, 2, 29)
    assert parse_appointment_date(" 2024-02-29 ") == date(2024, 2, 29)


def test_list_is_scoped_and_sorted_by_date(appointments, patient, other_patient, doctor, other_doctor):
    appointments.book(patient, doctor.id, "2024-05-01", "09:00 AM", "later")
    appointments.book(patient, other_doctor.id, "2024-04-01", "09:00 AM", "earlier")
    appointments.book(other_patient, doctor.id, "2024-04-15", "09:00 AM", "someone else")

    mine = appointments.list(patient)
    assert [a.reason for a in mine] == ["earlier", "later"]

    docs = appointments.list(doctor)
    assert [a.reason for a in docs] == ["someone else", "later"]
    assert all(a.doctor_id == doctor.id for a in docs)


def test_get_hides_appointments_from_non_participants(appointments, patient, other_patient, doctor, other_doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    assert appointments.get(patient, appt.id).id == appt.id
    assert appointments.get(doctor, appt.id).id == appt.id
    with pytest.raises(AppointmentNotFound):
        appointments.get(other_patient, appt.id)
    with pytest.raises(AppointmentNotFound):
        appointments.get(other_doctor, appt.id)
    with pytest.raises(AppointmentNotFound):
        appointments.get(patient, 999)


def test_patient_cannot_change_status(appointments, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(Forbidden):
        appointments.transition(patient, appt.id, "cancelled")
    assert appointments.get(patient, appt.id).status == "scheduled"


def test_other_doctor_cannot_see_or_change_status(appointments, patient, doctor, other_doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(AppointmentNotFound):
        appointments.transition(other_doctor, appt.id, "completed")


def test_completed_is_terminal(appointments, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    done = appointments.transition(doctor, appt.id, "completed")
    assert done.status == "completed"
    for target in ("scheduled", "cancelled", "completed"):
        with pytest.raises(InvalidTransition):
            appointments.transition(doctor, appt.id, target)
    assert appointments.get(doctor, appt.id).status == "completed"


def test_cancelled_is_terminal(appointments, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    appointments.transition(doctor, appt.id, "cancelled")
    for target in ("scheduled", "completed", "cancelled"):
        with pytest.raises(InvalidTransition):
            appointments.transition(doctor, appt.id, target)


def test_scheduled_is_not_an_explicit_target(appointments, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(InvalidTransition):
        appointments.transition(doctor, appt.id, "scheduled")


def test_unknown_status_is_a_validation_error():
    with pytest.raises(ValidationError):
        check_transition("scheduled", "confirmed")


def test_mutations_are_audited(appointments, audit, patient, other_patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(SlotConflict):
        appointments.book(other_patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    appointments.transition(doctor, appt.id, "completed")

    actions = [(e[0], e[3]) for e in audit.entries]
    assert actions == [
        ("appointment.book", True),
        ("appointment.book", False),
        ("appointment.transition", True),
    ]
    assert audit.entries[2][4] == {"source": "scheduled", "target": "completed"}


def test_rejected_mutations_are_audited(appointments, audit, patient, doctor):
    with pytest.raises(DoctorNotFound):
        appointments.book(patient, "nope", "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(ValidationError):
        appointments.book(patient, doctor.id, "03/01/2024", "09:00 AM", "checkup")

    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    appointments.transition(doctor, appt.id, "cancelled")
    with pytest.raises(InvalidTransition):
        appointments.transition(doctor, appt.id, "completed")
    with pytest.raises(AppointmentNotFound):
        appointments.transition(doctor, 999, "completed")

    failed = [(e[0], e[4]["reason"]) for e in audit.entries if not e[3]]
    assert failed == [
        ("appointment.book", "doctor_not_found"),
        ("appointment.book", "validation_error"),
        ("appointment.transition", "invalid_transition"),
        ("appointment.transition", "appointment_not_found"),
    ]
    assert audit.entries[-1][2] == "999"
