from ...exceptions import Forbidden, ValidationError
from ..ports.identity import Actor, Role


def require_role(actor: Actor, *roles: Role) -> Actor:
    """Reject callers whose role is not one of ``roles``."""
    if actor.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise Forbidden(f"Access denied. Required role: {allowed}")
    return actor


def require_text(value, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()
