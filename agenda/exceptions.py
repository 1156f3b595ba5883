"""Error kinds raised by the domain services and rendered by the API"""

from typing import Optional

from fastapi import HTTPException


class AgendaError(HTTPException):
    """HTTPException carrying a stable machine-readable code"""

    http_status = 500
    default_message = "Internal server error"

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        self.message = message or self.default_message
        super().__init__(status_code=self.http_status, detail=self.message)


class ValidationFailed(AgendaError):
    http_status = 400
    default_message = "Invalid request"


class NotAuthenticated(AgendaError):
    http_status = 401
    default_message = "Not authenticated"


class NotFound(AgendaError):
    http_status = 404
    default_message = "Not found"


class Conflict(AgendaError):
    http_status = 409
    default_message = "Conflict"


def business_not_found() -> NotFound:
    return NotFound("BUSINESS_NOT_FOUND", "Business not found. Configure your business first.")


def professional_not_found() -> NotFound:
    return NotFound("PROFESSIONAL_NOT_FOUND", "The selected professional does not exist")


def service_not_found() -> NotFound:
    return NotFound("SERVICE_NOT_FOUND", "The selected service does not exist")


def appointment_not_found() -> NotFound:
    return NotFound("APPOINTMENT_NOT_FOUND", "Appointment not found")


def time_slot_not_available() -> Conflict:
    return Conflict(
        "TIME_SLOT_NOT_AVAILABLE",
        "The selected time slot is not available for this professional",
    )
