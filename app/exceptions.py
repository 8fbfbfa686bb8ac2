from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Optional


class APIException(HTTPException):
    """Base of the engine's error taxonomy.

    Every subclass pins an HTTP status and a machine-readable ``code`` so the
    transport layer can render it without inspecting the message.
    """

    status_code_default: int = 500
    code: str = "error"
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=detail or self.default_detail,
        )


class ValidationError(APIException):
    status_code_default = 400
    code = "validation_error"
    default_detail = "Invalid request"


class Unauthenticated(APIException):
    status_code_default = 401
    code = "unauthenticated"
    default_detail = "Authentication required"


class Forbidden(APIException):
    status_code_default = 403
    code = "forbidden"
    default_detail = "Access denied"


class NotFound(APIException):
    status_code_default = 404
    code = "not_found"
    default_detail = "Resource not found"


class DoctorNotFound(NotFound):
    code = "doctor_not_found"
    default_detail = "Doctor not found"


class AppointmentNotFound(NotFound):
    code = "appointment_not_found"
    default_detail = "Appointment not found"


class PrescriptionNotFound(NotFound):
    code = "prescription_not_found"
    default_detail = "Prescription not found"


class Conflict(APIException):
    status_code_default = 409
    code = "conflict"
    default_detail = "Conflict"


class SlotConflict(Conflict):
    code = "slot_conflict"
    default_detail = "Time slot is already booked"


class PrescriptionAlreadyExists(Conflict):
    code = "prescription_already_exists"
    default_detail = "Prescription already exists for this appointment"


class InvalidTransition(APIException):
    status_code_default = 409
    code = "invalid_transition"
    default_detail = "Status change not permitted"


class AppointmentNotCompleted(APIException):
    status_code_default = 409
    code = "appointment_not_completed"
    default_detail = "Appointment is not completed"


class DependencyUnavailable(APIException):
    status_code_default = 503
    code = "dependency_unavailable"
    default_detail = "Service temporarily unavailable"


def create_error_response(error_message: str, code: str = "error") -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message,
        "code": code,
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if not isinstance(exc, APIException) and exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", Unauthenticated.code)
        )

    code = getattr(exc, "code", "error")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, code),
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body/path validation failures in the same envelope"""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
    return JSONResponse(
        status_code=400,
        content=create_error_response("; ".join(messages) or "Invalid request", ValidationError.code),
    )
