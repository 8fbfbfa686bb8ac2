from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from ..application.ports.appointments_repo import AppointmentDto
from ..application.ports.identity import Actor
from ..application.ports.prescriptions_repo import MedicineDto, PrescriptionDto
from ..application.ports.user_repo import UserDto
from ..application.services.prescriptions_service import PrescriptionsService
from ..schemas.common.common import ErrorResponse
from ..schemas.prescriptions.prescription import (
    MedicineOut,
    PrescriptionAppointmentSummary,
    PrescriptionCreate,
    PrescriptionEnvelope,
    PrescriptionResponse,
)
from .deps import Repositories, get_current_actor, get_prescriptions_service, get_repositories

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/prescriptions",
    tags=["Prescriptions"],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


def to_prescription_response(rx: PrescriptionDto, users: Dict[str, UserDto], appt: Optional[AppointmentDto]) -> PrescriptionResponse:
    doctor = users.get(rx.doctor_id)
    patient = users.get(rx.patient_id)
    summary = None
    if appt is not None:
        summary = PrescriptionAppointmentSummary(
            appointment_date=appt.appointment_date,
            appointment_time=appt.time_slot,
            reason=appt.reason,
        )
    return PrescriptionResponse(
        id=rx.id,
        appointment_id=rx.appointment_id,
        patient_id=rx.patient_id,
        patient_name=patient.name if patient else None,
        doctor_id=rx.doctor_id,
        doctor_name=doctor.name if doctor else None,
        doctor_specialization=doctor.specialization if doctor else None,
        symptoms=rx.symptoms,
        diagnosis=rx.diagnosis,
        medicines=[MedicineOut(**m.__dict__) for m in rx.medicines],
        additional_notes=rx.additional_notes,
        prescription_date=rx.prescription_date,
        appointment=summary,
    )


def _render(rows: List[PrescriptionDto], repos: Repositories) -> List[PrescriptionResponse]:
    users = repos.users.get_many([r.doctor_id for r in rows] + [r.patient_id for r in rows])
    appts = repos.appointments.get_many([r.appointment_id for r in rows])
    return [to_prescription_response(rx, users, appts.get(rx.appointment_id)) for rx in rows]


@router.post("", response_model=PrescriptionEnvelope, status_code=status.HTTP_201_CREATED,
             responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
def create_prescription(
    payload: PrescriptionCreate,
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    rx_service: PrescriptionsService = Depends(get_prescriptions_service),
):
    try:
        rx = rx_service.issue(
            actor,
            appointment_id=payload.appointment_id,
            symptoms=payload.symptoms,
            diagnosis=payload.diagnosis,
            medicines=[
                MedicineDto(name=m.name, dosage=m.dosage, duration=m.duration, instructions=m.instructions or "")
                for m in payload.medicines
            ],
            additional_notes=payload.additional_notes,
        )
        return PrescriptionEnvelope(
            message="Prescription created successfully",
            prescription=_render([rx], repos)[0],
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating prescription: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create prescription")


@router.get("", response_model=List[PrescriptionResponse])
def list_prescriptions(
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    rx_service: PrescriptionsService = Depends(get_prescriptions_service),
):
    try:
        return _render(rx_service.list(actor), repos)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving prescriptions: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve prescriptions")


@router.get("/appointment/{appointment_id}", response_model=PrescriptionResponse)
def get_prescription_by_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    rx_service: PrescriptionsService = Depends(get_prescriptions_service),
):
    try:
        return _render([rx_service.get_by_appointment(actor, appointment_id)], repos)[0]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving prescription for appointment {appointment_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve prescription")


@router.get("/{prescription_id}", response_model=PrescriptionResponse)
def get_prescription(
    prescription_id: int,
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    rx_service: PrescriptionsService = Depends(get_prescriptions_service),
):
    try:
        return _render([rx_service.get(actor, prescription_id)], repos)[0]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving prescription {prescription_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve prescription")
