"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

from ...models import Appointment, AppointmentStatus
from ...shared.validators import validate_date, validate_email, validate_time


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 instant; naive values are stored as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def price_to_float(value) -> Optional[float]:
    return float(value) if value is not None else None


class AppointmentCreate(BaseModel):
    """Schema for booking a new appointment"""

    clientName: str
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    serviceId: str  # external id
    professionalId: str  # external id
    date: str  # YYYY-MM-DD
    startTime: str  # HH:mm
    endTime: Optional[str] = None  # HH:mm, derived from the service when omitted
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None

    @field_validator("clientName")
    @classmethod
    def validate_client_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Client name is required")
        return v.strip()

    @field_validator("serviceId", "professionalId")
    @classmethod
    def validate_reference(cls, v):
        if not v or not v.strip():
            raise ValueError("is required")
        return v

    @field_validator("clientEmail")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v) or None

    @field_validator("date")
    @classmethod
    def validate_day(cls, v):
        return validate_date(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time(v)


class AppointmentUpdate(BaseModel):
    """Schema for updating an existing appointment; every field is optional"""

    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    serviceId: Optional[str] = None
    professionalId: Optional[str] = None
    date: Optional[str] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    cancelledReason: Optional[str] = None

    @field_validator("clientEmail")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v)

    @field_validator("date")
    @classmethod
    def validate_day(cls, v):
        return validate_date(v)

    @field_validator("startTime", "endTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time(v)


class CancelAppointmentRequest(BaseModel):
    reason: Optional[str] = None


class AppointmentFilters(BaseModel):
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    professionalId: Optional[str] = None
    serviceId: Optional[str] = None
    clientId: Optional[str] = None
    status: Optional[list[AppointmentStatus]] = None
    page: int = 1
    limit: int = 20
    sortBy: Literal["date", "createdAt", "status"] = "date"
    sortOrder: Literal["asc", "desc"] = "asc"


class AppointmentClientInfo(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class AppointmentServiceInfo(BaseModel):
    id: str
    externalId: str
    name: str
    duration: int
    price: Optional[float] = None


class AppointmentProfessionalInfo(BaseModel):
    id: str
    externalId: str
    firstName: str
    lastName: str


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    client: AppointmentClientInfo
    service: AppointmentServiceInfo
    professional: AppointmentProfessionalInfo
    date: str
    startTime: str
    endTime: str
    duration: int
    status: AppointmentStatus
    price: Optional[float] = None
    notes: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    cancelledAt: Optional[str] = None
    cancelledReason: Optional[str] = None
    completedAt: Optional[str] = None


class CreateAppointmentResponse(BaseModel):
    appointment: AppointmentResponse
    isNewClient: bool


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int


class PaginatedAppointmentsResponse(BaseModel):
    appointments: list[AppointmentResponse]
    pagination: Pagination


class DeleteAppointmentResponse(BaseModel):
    success: bool
    appointmentId: str


def service_info(service) -> AppointmentServiceInfo:
    return AppointmentServiceInfo(
        id=service.id,
        externalId=service.external_id,
        name=service.name,
        duration=service.duration,
        price=price_to_float(service.price),
    )


def professional_info(professional) -> AppointmentProfessionalInfo:
    return AppointmentProfessionalInfo(
        id=professional.id,
        externalId=professional.external_id,
        firstName=professional.first_name,
        lastName=professional.last_name,
    )


def build_appointment_response(appointment: Appointment) -> AppointmentResponse:
    client = appointment.client
    return AppointmentResponse(
        id=appointment.id,
        client=AppointmentClientInfo(
            id=client.id, name=client.name, email=client.email, phone=client.phone
        ),
        service=service_info(appointment.service),
        professional=professional_info(appointment.professional),
        date=appointment.date.isoformat(),
        startTime=appointment.start_time,
        endTime=appointment.end_time,
        duration=appointment.duration,
        status=appointment.status,
        price=price_to_float(appointment.price),
        notes=appointment.notes,
        createdAt=isoformat_utc(appointment.created_at),
        updatedAt=isoformat_utc(appointment.updated_at),
        cancelledAt=isoformat_utc(appointment.cancelled_at),
        cancelledReason=appointment.cancelled_reason,
        completedAt=isoformat_utc(appointment.completed_at),
    )
