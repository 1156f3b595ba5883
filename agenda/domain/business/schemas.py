"""Business configuration schemas"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...config import DEFAULT_CLOSE_TIME, DEFAULT_OPEN_TIME, DEFAULT_SLOT_DURATION
from ...shared.validators import validate_date, validate_time
from ..appointments.schemas import AppointmentProfessionalInfo
from ..scheduling.time_utils import DAYS_OF_WEEK, time_to_minutes

# ============================================================================
# SCHEDULES
# ============================================================================


class DaySchedule(BaseModel):
    enabled: bool = False
    openTime: str = DEFAULT_OPEN_TIME
    closeTime: str = DEFAULT_CLOSE_TIME
    duration: int = Field(DEFAULT_SLOT_DURATION, gt=0)

    @field_validator("openTime", "closeTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time(v)

    @model_validator(mode="after")
    def check_range(self):
        if self.enabled and time_to_minutes(self.closeTime) <= time_to_minutes(self.openTime):
            raise ValueError("closeTime must be after openTime")
        return self


class WeekSchedule(BaseModel):
    monday: DaySchedule = Field(default_factory=DaySchedule)
    tuesday: DaySchedule = Field(default_factory=DaySchedule)
    wednesday: DaySchedule = Field(default_factory=DaySchedule)
    thursday: DaySchedule = Field(default_factory=DaySchedule)
    friday: DaySchedule = Field(default_factory=DaySchedule)
    saturday: DaySchedule = Field(default_factory=DaySchedule)
    sunday: DaySchedule = Field(default_factory=DaySchedule)

    def items(self):
        for day in DAYS_OF_WEEK:
            yield day, getattr(self, day)


class GlobalSchedule(BaseModel):
    openTime: str = DEFAULT_OPEN_TIME
    closeTime: str = DEFAULT_CLOSE_TIME
    duration: int = Field(DEFAULT_SLOT_DURATION, gt=0)
    customDuration: Optional[bool] = None

    @field_validator("openTime", "closeTime")
    @classmethod
    def validate_times(cls, v):
        return validate_time(v)


class ProfessionalScheduleConfig(BaseModel):
    useIndividualSchedule: bool = False
    globalSchedule: Optional[GlobalSchedule] = None
    days: WeekSchedule = Field(default_factory=WeekSchedule)


class OperatingHoursConfig(BaseModel):
    useIndividualSchedule: bool = False
    useIndividualProfessionalSchedule: bool = False
    globalSchedule: GlobalSchedule = Field(default_factory=GlobalSchedule)
    days: WeekSchedule = Field(default_factory=WeekSchedule)
    professionalSchedules: dict[str, ProfessionalScheduleConfig] = Field(default_factory=dict)


# ============================================================================
# CONFIGURATION PAYLOAD
# ============================================================================


class BusinessInfo(BaseModel):
    adminName: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    logo: Optional[str] = None

    @field_validator("adminName", "name")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("is required")
        return v.strip()


class ProfessionalConfig(BaseModel):
    id: str  # external id
    firstName: str
    lastName: str
    birthDate: Optional[str] = None
    dni: Optional[str] = None
    description: Optional[str] = None

    @field_validator("id", "firstName", "lastName")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("is required")
        return v.strip()

    @field_validator("birthDate")
    @classmethod
    def validate_birth_date(cls, v):
        return validate_date(v) if v else None


class ServiceConfig(BaseModel):
    id: str  # external id
    name: str
    duration: int = Field(gt=0)
    price: Optional[float] = Field(None, ge=0)
    professionalIds: list[str] = Field(default_factory=list)

    @field_validator("id", "name")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("is required")
        return v.strip()


class BookingPreferencesConfig(BaseModel):
    allowCancellation: bool = True
    hoursBeforeBooking: int = Field(24, ge=0)
    maxDaysAhead: int = Field(30, ge=1)


class CommunicationConfig(BaseModel):
    sendConfirmationEmail: bool = True
    sendReminderEmail: bool = True
    reminderHoursBefore: int = Field(24, ge=0)


class BusinessConfiguration(BaseModel):
    """Complete business setup as submitted by the configuration wizard"""

    businessInfo: BusinessInfo
    professionals: list[ProfessionalConfig] = Field(default_factory=list)
    operatingHours: OperatingHoursConfig = Field(default_factory=OperatingHoursConfig)
    services: list[ServiceConfig] = Field(default_factory=list)
    bookingPreferences: BookingPreferencesConfig = Field(default_factory=BookingPreferencesConfig)
    communication: CommunicationConfig = Field(default_factory=CommunicationConfig)
    completedSteps: Optional[list[int]] = None  # wizard progress, not stored

    @model_validator(mode="after")
    def check_unique_ids(self):
        for label, ids in (
            ("professional", [p.id for p in self.professionals]),
            ("service", [s.id for s in self.services]),
        ):
            seen = set()
            for external_id in ids:
                if external_id in seen:
                    raise ValueError(f"Duplicate {label} id: {external_id}")
                seen.add(external_id)
        return self


# ============================================================================
# RESPONSES
# ============================================================================


class SaveConfigurationResponse(BaseModel):
    message: str
    businessId: str
    professionalsCount: int
    servicesCount: int


class BusinessDetails(BaseModel):
    id: str
    adminName: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    logo: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ProfessionalDetails(BaseModel):
    id: str
    externalId: str
    firstName: str
    lastName: str
    birthDate: Optional[str] = None
    dni: Optional[str] = None
    description: Optional[str] = None
    useIndividualSchedule: bool
    globalSchedule: Optional[GlobalSchedule] = None
    schedules: WeekSchedule
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class ServiceDetails(BaseModel):
    id: str
    externalId: str
    name: str
    duration: int
    price: Optional[float] = None
    professionals: list[AppointmentProfessionalInfo]
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class OperatingHoursDetails(BaseModel):
    useIndividualSchedule: bool
    useIndividualProfessionalSchedule: bool
    globalSchedule: GlobalSchedule
    days: WeekSchedule


class BusinessConfigurationResponse(BaseModel):
    business: BusinessDetails
    professionals: list[ProfessionalDetails]
    services: list[ServiceDetails]
    operatingHours: OperatingHoursDetails
    bookingPreferences: BookingPreferencesConfig
    communication: CommunicationConfig


class SetupDetails(BaseModel):
    hasBusiness: bool
    hasCommunicationSettings: bool
    hasOperatingHours: bool
    hasProfessionals: bool
    hasProfessionalSchedules: bool
    hasServices: bool
    hasServiceProfessionals: bool


class SetupStatusResponse(BaseModel):
    setupPending: bool
    missingSteps: list[str]
    details: SetupDetails
