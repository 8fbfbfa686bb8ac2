from typing import Dict, List, Protocol, Optional
from datetime import datetime

class UserDto:
    def __init__(self, id: str, name: str, email: str, role: str, is_active: bool,
                 specialization: Optional[str], phone: Optional[str], created_at: datetime):
        self.id = id
        self.name = name
        self.email = email
        self.role = role
        self.is_active = is_active
        self.specialization = specialization
        self.phone = phone
        self.created_at = created_at

class UserRepository(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_many(self, user_ids: List[str]) -> Dict[str, UserDto]:
        ...
