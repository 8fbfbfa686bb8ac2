import pytest

from app.application.ports.prescriptions_repo import MedicineDto
from app.exceptions import (
    AppointmentNotCompleted,
    AppointmentNotFound,
    Forbidden,
    PrescriptionAlreadyExists,
    PrescriptionNotFound,
    ValidationError,
)


AMOXICILLIN = {"name": "Amoxicillin", "dosage": "500mg", "duration": "7 days"}


def _completed(appointments, patient, doctor, day="2024-03-01", slot="09:00 AM"):
    appt = appointments.book(patient, doctor.id, day, slot, "checkup")
    appointments.transition(doctor, appt.id, "completed")
    return appt


def test_full_booking_to_prescription_flow(appointments, prescriptions, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    assert appt.status == "scheduled"
    assert appointments.transition(doctor, appt.id, "completed").status == "completed"

    rx = prescriptions.issue(doctor, appt.id, "sore throat", "tonsillitis", [AMOXICILLIN])
    assert rx.appointment_id == appt.id
    assert rx.patient_id == patient.id
    assert rx.doctor_id == doctor.id
    assert rx.medicines == [MedicineDto("Amoxicillin", "500mg", "7 days", "")]
    assert rx.prescription_date is not None
    assert appointments.get(patient, appt.id).prescription_id == rx.id

    with pytest.raises(PrescriptionAlreadyExists):
        prescriptions.issue(doctor, appt.id, "sore throat", "tonsillitis", [AMOXICILLIN])


def test_issue_on_scheduled_appointment_is_rejected(appointments, prescriptions, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(AppointmentNotCompleted):
        prescriptions.issue(doctor, appt.id, "cough", "cold", [AMOXICILLIN])
    assert appointments.get(doctor, appt.id).prescription_id is None


def test_issue_on_cancelled_appointment_is_rejected(appointments, prescriptions, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    appointments.transition(doctor, appt.id, "cancelled")
    with pytest.raises(AppointmentNotCompleted):
        prescriptions.issue(doctor, appt.id, "cough", "cold", [AMOXICILLIN])


def test_issue_requires_owning_doctor(appointments, prescriptions, patient, doctor, other_doctor):
    appt = _completed(appointments, patient, doctor)
    with pytest.raises(AppointmentNotFound):
        prescriptions.issue(other_doctor, appt.id, "cough", "cold", [AMOXICILLIN])
    with pytest.raises(Forbidden):
        prescriptions.issue(patient, appt.id, "cough", "cold", [AMOXICILLIN])
    with pytest.raises(AppointmentNotFound):
        prescriptions.issue(doctor, 12345, "cough", "cold", [AMOXICILLIN])


@pytest.mark.parametrize("symptoms,diagnosis,medicines", [
    ("", "cold", [AMOXICILLIN]),
    ("cough", "  ", [AMOXICILLIN]),
    ("cough", "cold", []),
    ("cough", "cold", None),
    ("cough", "cold", [{"name": "Amoxicillin", "dosage": "", "duration": "7 days"}]),
    ("cough", "cold", [{"name": "Amoxicillin", "dosage": "500mg"}]),
    ("cough", "cold", ["Amoxicillin"]),
])
def test_issue_validates_payload(appointments, prescriptions, patient, doctor, symptoms, diagnosis, medicines):
    appt = _completed(appointments, patient, doctor)
    with pytest.raises(ValidationError):
        prescriptions.issue(doctor, appt.id, symptoms, diagnosis, medicines)
    assert appointments.get(doctor, appt.id).prescription_id is None


def test_medicine_order_and_instructions_are_kept(appointments, prescriptions, patient, doctor):
    appt = _completed(appointments, patient, doctor)
    rx = prescriptions.issue(
        doctor, appt.id, "fever", "flu",
        [
            MedicineDto("Paracetamol", "650mg", "5 days", "after meals"),
            {"name": "Cetirizine", "dosage": "10mg", "duration": "3 days"},
        ],
        additional_notes=" rest ",
    )
    assert [m.name for m in rx.medicines] == ["Paracetamol", "Cetirizine"]
    assert rx.medicines[0].instructions == "after meals"
    assert rx.additional_notes == "rest"


def test_reads_are_scoped_to_participants(appointments, prescriptions, patient, other_patient, doctor, other_doctor):
    appt = _completed(appointments, patient, doctor)
    rx = prescriptions.issue(doctor, appt.id, "cough", "cold", [AMOXICILLIN])

    assert prescriptions.get(patient, rx.id).id == rx.id
    assert prescriptions.get(doctor, rx.id).id == rx.id
    assert prescriptions.get_by_appointment(patient, appt.id).id == rx.id

    for outsider in (other_patient, other_doctor):
        with pytest.raises(PrescriptionNotFound):
            prescriptions.get(outsider, rx.id)
        with pytest.raises(PrescriptionNotFound):
            prescriptions.get_by_appointment(outsider, appt.id)


def test_get_by_appointment_without_prescription(appointments, prescriptions, patient, doctor):
    appt = _completed(appointments, patient, doctor)
    with pytest.raises(PrescriptionNotFound):
        prescriptions.get_by_appointment(patient, appt.id)


def test_list_is_scoped_and_newest_first(appointments, prescriptions, patient, other_patient, doctor, other_doctor):
    a1 = _completed(appointments, patient, doctor, slot="09:00 AM")
    a2 = _completed(appointments, patient, other_doctor, slot="10:00 AM")
    a3 = _completed(appointments, other_patient, doctor, slot="11:00 AM")
    rx1 = prescriptions.issue(doctor, a1.id, "s1", "d1", [AMOXICILLIN])
    rx2 = prescriptions.issue(other_doctor, a2.id, "s2", "d2", [AMOXICILLIN])
    rx3 = prescriptions.issue(doctor, a3.id, "s3", "d3", [AMOXICILLIN])

    assert [p.id for p in prescriptions.list(patient)] == [rx2.id, rx1.id]
    assert [p.id for p in prescriptions.list(doctor)] == [rx3.id, rx1.id]
    assert prescriptions.list(other_patient)[0].id == rx3.id


def test_failed_issuance_is_audited(appointments, prescriptions, audit, patient, doctor):
    appt = appointments.book(patient, doctor.id, "2024-03-01", "09:00 AM", "checkup")
    with pytest.raises(AppointmentNotCompleted):
        prescriptions.issue(doctor, appt.id, "cough", "cold", [AMOXICILLIN])
    action, actor_id, resource_id, success, details = audit.entries[-1]
    assert action == "prescription.issue"
    assert actor_id == doctor.id
    assert resource_id == str(appt.id)
    assert success is False
    assert details["reason"] == "appointment_not_completed"


def test_rejected_issuance_is_audited(appointments, prescriptions, audit, patient, doctor, other_doctor):
    appt = _completed(appointments, patient, doctor)
    with pytest.raises(AppointmentNotFound):
        prescriptions.issue(doctor, 12345, "cough", "cold", [AMOXICILLIN])
    with pytest.raises(AppointmentNotFound):
        prescriptions.issue(other_doctor, appt.id, "cough", "cold", [AMOXICILLIN])
    with pytest.raises(ValidationError):
        prescriptions.issue(doctor, appt.id, "cough", "cold", [])

    failed = [(e[1], e[2], e[4]["reason"]) for e in audit.entries if e[0] == "prescription.issue"]
    assert failed == [
        (doctor.id, "12345", "appointment_not_found"),
        (other_doctor.id, str(appt.id), "appointment_not_found"),
        (doctor.id, str(appt.id), "validation_error"),
    ]
