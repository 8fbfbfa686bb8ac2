import os

# Must be set before app.config is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from app.application.ports.identity import Actor, Role
from app.application.services.appointments_service import AppointmentsService
from app.application.services.prescriptions_service import PrescriptionsService
from app.infrastructure.persistence.memory.repositories import (
    InMemoryAppointmentsRepository,
    InMemoryDoctorDirectory,
    InMemoryPrescriptionsRepository,
)
from app.infrastructure.persistence.memory.store import InMemoryStore


class RecordingAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, actor_id, resource_id=None, success=True, details=None):
        self.entries.append((action, actor_id, resource_id, success, details or {}))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def doctor(store):
    u = store.add_user("Dr. Sarah Johnson", "sarah@clinix.com", "doctor", specialization="Cardiology")
    return Actor(id=u.id, role=Role.doctor, name=u.name)


@pytest.fixture
def other_doctor(store):
    u = store.add_user("Dr. Michael Chen", "michael@clinix.com", "doctor", specialization="Dermatology")
    return Actor(id=u.id, role=Role.doctor, name=u.name)


@pytest.fixture
def patient(store):
    u = store.add_user("Alice", "alice@example.com", "patient")
    return Actor(id=u.id, role=Role.patient, name=u.name)


@pytest.fixture
def other_patient(store):
    u = store.add_user("Bob", "bob@example.com", "patient")
    return Actor(id=u.id, role=Role.patient, name=u.name)


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def appointments(store, audit):
    return AppointmentsService(
        repo=InMemoryAppointmentsRepository(store),
        directory=InMemoryDoctorDirectory(store),
        audit=audit,
    )


@pytest.fixture
def prescriptions(store, audit):
    return PrescriptionsService(
        repo=InMemoryPrescriptionsRepository(store),
        appointments=InMemoryAppointmentsRepository(store),
        audit=audit,
    )
