# Routers package
from . import appointments_router
from . import prescriptions_router
from . import doctors_router

__all__ = [
    "appointments_router",
    "prescriptions_router",
    "doctors_router",
]
