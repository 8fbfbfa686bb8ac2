from dataclasses import dataclass
from typing import List

from ..ports.directory import DoctorDirectory, DoctorDto
from ..ports.identity import Actor, Role
from .access import require_role


@dataclass
class DirectoryService:
    directory: DoctorDirectory

    def list_doctors(self, actor: Actor) -> List[DoctorDto]:
        require_role(actor, Role.patient, Role.doctor)
        return sorted(self.directory.list_active_doctors(), key=lambda d: d.name)
