from typing import List
import logging

from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from .....db.models import User
from .....exceptions import DependencyUnavailable
from .....application.ports.directory import DoctorDirectory, DoctorDto

logger = logging.getLogger(__name__)


class SqlDoctorDirectory(DoctorDirectory):
    def __init__(self, session: Session):
        self.session = session

    def is_active_doctor(self, doctor_id: str) -> bool:
        try:
            d = self.session.exec(
                select(User)
                .where(User.id == doctor_id)
                .where(User.role == "doctor")
                .where(User.is_active == True)  # noqa: E712
            ).first()
        except OperationalError as e:
            logger.error(f"Directory lookup failed for doctor {doctor_id}: {e}")
            raise DependencyUnavailable("Doctor directory unavailable")
        return d is not None

    def list_active_doctors(self) -> List[DoctorDto]:
        try:
            rows = self.session.exec(
                select(User)
                .where(User.role == "doctor")
                .where(User.is_active == True)  # noqa: E712
                .order_by(User.name.asc())
            ).all()
        except OperationalError as e:
            logger.error(f"Error retrieving doctors: {e}")
            raise DependencyUnavailable("Doctor directory unavailable")
        return [
            DoctorDto(id=d.id, name=d.name, specialization=d.specialization, email=d.email, phone=d.phone)
            for d in rows
        ]
