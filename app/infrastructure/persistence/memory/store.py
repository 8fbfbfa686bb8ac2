import itertools
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

from ....application.ports.appointments_repo import AppointmentDto
from ....application.ports.prescriptions_repo import PrescriptionDto
from ....application.ports.user_repo import UserDto


class InMemoryStore:
    """Process-local backing store shared by the in-memory repositories.

    Every check-and-write runs while holding ``lock``.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users: Dict[str, UserDto] = {}
        self.appointments: Dict[int, AppointmentDto] = {}
        self.prescriptions: Dict[int, PrescriptionDto] = {}
        self._appointment_ids = itertools.count(1)
        self._prescription_ids = itertools.count(1)

    def next_appointment_id(self) -> int:
        return next(self._appointment_ids)

    def next_prescription_id(self) -> int:
        return next(self._prescription_ids)

    def add_user(self, name: str, email: str, role: str, specialization: Optional[str] = None,
                 phone: Optional[str] = None, is_active: bool = True, user_id: Optional[str] = None) -> UserDto:
        user = UserDto(
            id=user_id or str(uuid.uuid4()),
            name=name,
            email=email,
            role=role,
            is_active=is_active,
            specialization=specialization,
            phone=phone,
            created_at=datetime.now(timezone.utc),
        )
        with self.lock:
            self.users[user.id] = user
        return user
