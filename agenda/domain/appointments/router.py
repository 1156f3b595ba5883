"""Appointment router - FastAPI endpoints for appointment operations"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...clock import Clock, get_clock
from ...database import get_db
from ...models import AppointmentStatus, User
from .schemas import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentResponse,
    AppointmentUpdate,
    CancelAppointmentRequest,
    CreateAppointmentResponse,
    DeleteAppointmentResponse,
    PaginatedAppointmentsResponse,
    build_appointment_response,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, clock)


@router.post("", response_model=CreateAppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; the slot must be free for the professional"""
    appointment, is_new_client = service.create_appointment(data, current_user)
    return CreateAppointmentResponse(
        appointment=build_appointment_response(appointment),
        isNewClient=is_new_client,
    )


@router.get("", response_model=PaginatedAppointmentsResponse)
async def list_appointments(
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    professionalId: Optional[str] = Query(None),
    serviceId: Optional[str] = Query(None),
    clientId: Optional[str] = Query(None),
    status: Optional[list[AppointmentStatus]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sortBy: Literal["date", "createdAt", "status"] = Query("date"),
    sortOrder: Literal["asc", "desc"] = Query("asc"),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List the business's appointments with filters and pagination"""
    filters = AppointmentFilters(
        startDate=startDate,
        endDate=endDate,
        professionalId=professionalId,
        serviceId=serviceId,
        clientId=clientId,
        status=status,
        page=page,
        limit=limit,
        sortBy=sortBy,
        sortOrder=sortOrder,
    )
    result = service.list_appointments(filters, current_user)
    return PaginatedAppointmentsResponse(
        appointments=[build_appointment_response(a) for a in result["appointments"]],
        pagination=result["pagination"],
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.get_appointment(appointment_id, current_user)
    return build_appointment_response(appointment)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Partially update an appointment"""
    appointment = service.update_appointment(appointment_id, data, current_user)
    return build_appointment_response(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    data: Optional[CancelAppointmentRequest] = None,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.cancel_appointment(appointment_id, data, current_user)
    return build_appointment_response(appointment)


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.complete_appointment(appointment_id, current_user)
    return build_appointment_response(appointment)


@router.delete("/{appointment_id}", response_model=DeleteAppointmentResponse)
async def delete_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Hard delete, for data correction only; cancel is the normal path"""
    return service.delete_appointment(appointment_id, current_user)
