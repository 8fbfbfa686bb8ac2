from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..database import get_session
from ..exceptions import Unauthenticated
from ..utils import decode_jwt_token
from ..application.ports.appointments_repo import AppointmentsRepository
from ..application.ports.directory import DoctorDirectory
from ..application.ports.identity import Actor, Role
from ..application.ports.prescriptions_repo import PrescriptionsRepository
from ..application.ports.user_repo import UserRepository
from ..application.services.appointments_service import AppointmentsService
from ..application.services.directory_service import DirectoryService
from ..application.services.prescriptions_service import PrescriptionsService
from ..infrastructure.audit.std_logger import StdAuditLogger
from ..infrastructure.persistence.memory.repositories import (
    InMemoryAppointmentsRepository,
    InMemoryDoctorDirectory,
    InMemoryPrescriptionsRepository,
    InMemoryUserRepository,
)
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.doctor_directory_sql import SqlDoctorDirectory
from ..infrastructure.persistence.sqlalchemy.repositories.prescriptions_repository_sql import SqlPrescriptionsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer(auto_error=False)

audit_logger = StdAuditLogger()


@dataclass
class Repositories:
    appointments: AppointmentsRepository
    prescriptions: PrescriptionsRepository
    users: UserRepository
    directory: DoctorDirectory


def get_repositories(request: Request, session: Session = Depends(get_session)) -> Repositories:
    store = getattr(request.app.state, "memory_store", None)
    if store is not None:
        return Repositories(
            appointments=InMemoryAppointmentsRepository(store),
            prescriptions=InMemoryPrescriptionsRepository(store),
            users=InMemoryUserRepository(store),
            directory=InMemoryDoctorDirectory(store),
        )
    return Repositories(
        appointments=SqlAppointmentsRepository(session),
        prescriptions=SqlPrescriptionsRepository(session),
        users=SqlUserRepository(session),
        directory=SqlDoctorDirectory(session),
    )


# Dependency to get current actor from JWT
def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme),
    repos: Repositories = Depends(get_repositories),
) -> Actor:
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        # Fallback to cookie
        token = request.cookies.get("access_token")
    if not token:
        raise Unauthenticated("No token, authorization denied")

    payload = decode_jwt_token(token)
    if not payload:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise Unauthenticated("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing user ID")
        raise Unauthenticated("Invalid token: missing user ID")

    user = repos.users.get_by_id(str(user_id))
    if not user or not user.is_active:
        raise Unauthenticated("Token is not valid")
    try:
        role = Role(user.role)
    except ValueError:
        logger.warning(f"User {user.id} has unsupported role {user.role!r}")
        raise Unauthenticated("Token is not valid")
    return Actor(id=user.id, role=role, name=user.name)


def get_appointments_service(repos: Repositories = Depends(get_repositories)) -> AppointmentsService:
    return AppointmentsService(repo=repos.appointments, directory=repos.directory, audit=audit_logger)


def get_prescriptions_service(repos: Repositories = Depends(get_repositories)) -> PrescriptionsService:
    return PrescriptionsService(repo=repos.prescriptions, appointments=repos.appointments, audit=audit_logger)


def get_directory_service(repos: Repositories = Depends(get_repositories)) -> DirectoryService:
    return DirectoryService(directory=repos.directory)
