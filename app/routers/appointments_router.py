from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from ..application.ports.appointments_repo import AppointmentDto
from ..application.ports.identity import Actor
from ..application.ports.user_repo import UserDto
from ..application.services.appointments_service import AppointmentsService
from ..schemas.appointments.appointment import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from ..schemas.common.common import ErrorResponse
from .deps import Repositories, get_appointments_service, get_current_actor, get_repositories

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/appointments",
    tags=["Appointments"],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


def to_appointment_response(a: AppointmentDto, users: Dict[str, UserDto]) -> AppointmentResponse:
    doctor = users.get(a.doctor_id)
    patient = users.get(a.patient_id)
    return AppointmentResponse(
        id=a.id,
        patient_id=a.patient_id,
        patient_name=patient.name if patient else None,
        doctor_id=a.doctor_id,
        doctor_name=doctor.name if doctor else "Unknown Doctor",
        doctor_specialization=doctor.specialization if doctor else None,
        appointment_date=a.appointment_date,
        appointment_time=a.time_slot,
        reason=a.reason,
        notes=a.notes,
        status=a.status,
        prescription_id=a.prescription_id,
        created_at=a.created_at,
    )


def _render(appts: List[AppointmentDto], repos: Repositories) -> List[AppointmentResponse]:
    ids = [a.doctor_id for a in appts] + [a.patient_id for a in appts]
    users = repos.users.get_many(ids)
    return [to_appointment_response(a, users) for a in appts]


@router.get("", response_model=List[AppointmentResponse])
def list_appointments(
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _render(appt_service.list(actor), repos)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointments: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve appointments")


@router.post("", response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED,
             responses={409: {"model": ErrorResponse}})
def book_appointment(
    appointment_data: AppointmentCreate,
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.book(
            actor,
            doctor_id=appointment_data.doctor_id,
            appointment_date=appointment_data.appointment_date,
            time_slot=appointment_data.appointment_time,
            reason=appointment_data.reason,
            notes=appointment_data.notes,
        )
        return AppointmentEnvelope(
            message="Appointment booked successfully",
            appointment=_render([appt], repos)[0],
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error booking appointment: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to book appointment")


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        return _render([appt_service.get(actor, appointment_id)], repos)[0]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving appointment {appointment_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve appointment")


@router.put("/{appointment_id}", response_model=AppointmentEnvelope,
            responses={403: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    repos: Repositories = Depends(get_repositories),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    try:
        appt = appt_service.transition(actor, appointment_id, update.status)
        return AppointmentEnvelope(
            message="Appointment status updated successfully",
            appointment=_render([appt], repos)[0],
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id} status: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update appointment status")
