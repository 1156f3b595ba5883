"""Dashboard schemas - today's operational overview"""

from typing import Literal, Optional

from pydantic import BaseModel

from ..appointments.schemas import (
    AppointmentProfessionalInfo,
    AppointmentResponse,
    AppointmentServiceInfo,
)


class UpcomingAppointment(AppointmentResponse):
    timeUntil: str  # "En 30 min", "En 2h", "Ahora"
    minutesUntil: int
    isNext: bool
    isUrgent: bool  # starts within 30 minutes


class DayStats(BaseModel):
    totalAppointments: int
    confirmed: int
    pending: int
    inProgress: int
    completed: int
    cancelled: int
    noShow: int
    totalRevenue: float  # expected: confirmed + completed
    collectedRevenue: float  # already finished, not cancelled
    occupancyRate: int  # percent


class ProfessionalStats(BaseModel):
    professional: AppointmentProfessionalInfo
    appointmentsToday: int
    nextAppointment: Optional[AppointmentResponse] = None
    isAvailable: bool
    currentStatus: Literal["available", "busy"]


class PopularService(BaseModel):
    service: AppointmentServiceInfo
    count: int
    percentage: int


class BusinessHours(BaseModel):
    openTime: str
    closeTime: str
    isOpen: bool


class TodayDashboardResponse(BaseModel):
    currentTime: str
    upcomingAppointments: list[UpcomingAppointment]
    dayStats: DayStats
    professionalStats: list[ProfessionalStats]
    popularServices: list[PopularService]
    businessHours: BusinessHours
