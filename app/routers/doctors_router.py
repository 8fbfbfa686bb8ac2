from typing import List
from fastapi import APIRouter, Depends, HTTPException
import logging

from ..application.ports.identity import Actor
from ..application.services.directory_service import DirectoryService
from ..schemas.doctors.doctor import DoctorResponse
from .deps import get_current_actor, get_directory_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctors", tags=["Doctors"])
# Path used by the patient mobile app
legacy_router = APIRouter(prefix="/api/appointments", tags=["Doctors"])


@router.get("", response_model=List[DoctorResponse])
@legacy_router.get("/doctors/list", response_model=List[DoctorResponse])
def get_doctors(
    actor: Actor = Depends(get_current_actor),
    directory_service: DirectoryService = Depends(get_directory_service),
):
    try:
        return [
            DoctorResponse(
                id=d.id,
                name=d.name,
                specialization=d.specialization,
                email=d.email,
                phone=d.phone,
            )
            for d in directory_service.list_doctors(actor)
        ]
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving doctors: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve doctors")
