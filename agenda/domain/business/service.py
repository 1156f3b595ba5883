"""Business service - save and read the tenant configuration"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from ...config import (
    CONFIG_SAVE_TIMEOUT_MS,
    DEFAULT_CLOSE_TIME,
    DEFAULT_OPEN_TIME,
    DEFAULT_SLOT_DURATION,
)
from ...database import apply_statement_timeout
from ...exceptions import Conflict, business_not_found
from ...models import (
    BookingPreferences,
    Business,
    CommunicationSettings,
    OperatingHours,
    Professional,
    ProfessionalSchedule,
    Service,
    User,
)
from ..appointments.schemas import isoformat_utc, price_to_float, professional_info
from .repository import BusinessRepository
from .schemas import (
    BookingPreferencesConfig,
    BusinessConfiguration,
    BusinessConfigurationResponse,
    BusinessDetails,
    CommunicationConfig,
    DaySchedule,
    GlobalSchedule,
    OperatingHoursDetails,
    ProfessionalDetails,
    ServiceDetails,
    WeekSchedule,
)

logger = logging.getLogger(__name__)

SETUP_STEPS = [
    "business",
    "communication_settings",
    "operating_hours",
    "professionals",
    "professional_schedules",
    "services",
    "service_professionals",
]


def _week_from_rows(rows) -> WeekSchedule:
    """Stored per-day rows as a full week; missing days come back disabled"""
    return WeekSchedule(
        **{
            row.day_of_week: DaySchedule(
                enabled=row.enabled,
                openTime=row.open_time,
                closeTime=row.close_time,
                duration=row.duration,
            )
            for row in rows
        }
    )


class BusinessService:
    """Service layer for the business configuration"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BusinessRepository()

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save_configuration(self, data: BusinessConfiguration, user: User) -> dict:
        """
        Create or replace the whole configuration of the user's business.

        Runs as one transaction: a failure at any step leaves the previous
        configuration untouched.
        """
        logger.info(
            f"📥 Saving configuration for user {user.id}: "
            f"{len(data.professionals)} professionals, {len(data.services)} services"
        )

        try:
            apply_statement_timeout(self.db, CONFIG_SAVE_TIMEOUT_MS)

            business = self.repo.get_business_by_user(self.db, user.id, lock=True)
            if business is None:
                business = Business(user_id=user.id)
                self.db.add(business)

            self._apply_business_info(business, data)
            self.db.flush()

            self._replace_operating_hours(business, data)
            professionals = self._reconcile_professionals(business, data)
            self._reconcile_services(business, data, professionals)
            self._apply_preferences(business, data)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Configuration saved for business {business.id}")
        return {
            "message": "Business configuration saved",
            "businessId": business.id,
            "professionalsCount": len(data.professionals),
            "servicesCount": len(data.services),
        }

    @staticmethod
    def _apply_business_info(business: Business, data: BusinessConfiguration) -> None:
        info = data.businessInfo
        hours = data.operatingHours
        business.name = info.name
        business.admin_name = info.adminName
        business.phone = info.phone
        business.address = info.address
        business.city = info.city
        business.province = info.province
        business.logo = info.logo
        business.use_individual_schedule = hours.useIndividualSchedule
        business.use_individual_professional_schedule = hours.useIndividualProfessionalSchedule
        business.global_open_time = hours.globalSchedule.openTime
        business.global_close_time = hours.globalSchedule.closeTime
        business.global_duration = hours.globalSchedule.duration

    def _replace_operating_hours(self, business: Business, data: BusinessConfiguration) -> None:
        business.operating_hours.clear()
        self.db.flush()
        for day, schedule in data.operatingHours.days.items():
            business.operating_hours.append(
                OperatingHours(
                    day_of_week=day,
                    enabled=schedule.enabled,
                    open_time=schedule.openTime,
                    close_time=schedule.closeTime,
                    duration=schedule.duration,
                )
            )

    def _reconcile_professionals(
        self, business: Business, data: BusinessConfiguration
    ) -> dict[str, Professional]:
        """
        Match professionals by external id: update the ones kept, create the
        new ones and delete the ones left out. Returns external id -> row.
        """
        existing = {p.external_id: p for p in self.repo.get_professionals(self.db, business.id)}
        incoming = {p.id for p in data.professionals}

        for external_id, professional in existing.items():
            if external_id in incoming:
                continue
            if self.repo.count_professional_appointments(self.db, professional.id):
                logger.warning(f"⚠️ Refusing to remove professional {external_id} with appointments")
                raise Conflict(
                    "CONFIGURATION_CONFLICT",
                    f"Professional {external_id} has appointments and cannot be removed",
                )
            self.db.delete(professional)

        schedules = data.operatingHours.professionalSchedules
        result = {}
        for item in data.professionals:
            professional = existing.get(item.id)
            if professional is None:
                professional = Professional(business_id=business.id, external_id=item.id)
                self.db.add(professional)

            schedule = schedules.get(item.id)
            global_schedule = schedule.globalSchedule if schedule else None

            professional.first_name = item.firstName
            professional.last_name = item.lastName
            professional.birth_date = (
                datetime.strptime(item.birthDate, "%Y-%m-%d").date() if item.birthDate else None
            )
            professional.dni = item.dni
            professional.description = item.description
            professional.use_individual_schedule = schedule.useIndividualSchedule if schedule else False
            professional.global_open_time = global_schedule.openTime if global_schedule else None
            professional.global_close_time = global_schedule.closeTime if global_schedule else None
            professional.global_duration = global_schedule.duration if global_schedule else None
            professional.schedules.clear()
            result[item.id] = professional

        self.db.flush()

        if data.operatingHours.useIndividualProfessionalSchedule:
            for external_id, professional in result.items():
                schedule = schedules.get(external_id)
                if schedule is None:
                    continue
                for day, day_schedule in schedule.days.items():
                    professional.schedules.append(
                        ProfessionalSchedule(
                            day_of_week=day,
                            enabled=day_schedule.enabled,
                            open_time=day_schedule.openTime,
                            close_time=day_schedule.closeTime,
                            duration=day_schedule.duration,
                        )
                    )

        return result

    def _reconcile_services(
        self,
        business: Business,
        data: BusinessConfiguration,
        professionals: dict[str, Professional],
    ) -> None:
        existing = {s.external_id: s for s in self.repo.get_services(self.db, business.id)}
        incoming = {s.id for s in data.services}

        for external_id, service in existing.items():
            if external_id in incoming:
                continue
            if self.repo.count_service_appointments(self.db, service.id):
                logger.warning(f"⚠️ Refusing to remove service {external_id} with appointments")
                raise Conflict(
                    "CONFIGURATION_CONFLICT",
                    f"Service {external_id} has appointments and cannot be removed",
                )
            self.db.delete(service)

        for item in data.services:
            service = existing.get(item.id)
            if service is None:
                service = Service(business_id=business.id, external_id=item.id)
                self.db.add(service)

            # Booked appointments keep their own price snapshot
            service.name = item.name
            service.duration = item.duration
            service.price = item.price

            assigned = []
            for professional_id in item.professionalIds:
                professional = professionals.get(professional_id)
                if professional is None:
                    logger.warning(
                        f"⚠️ Service {item.id} references unknown professional {professional_id}"
                    )
                    continue
                assigned.append(professional)
            service.professionals = assigned

        self.db.flush()

    @staticmethod
    def _apply_preferences(business: Business, data: BusinessConfiguration) -> None:
        preferences = business.booking_preferences or BookingPreferences()
        preferences.allow_cancellation = data.bookingPreferences.allowCancellation
        preferences.hours_before_booking = data.bookingPreferences.hoursBeforeBooking
        preferences.max_days_ahead = data.bookingPreferences.maxDaysAhead
        business.booking_preferences = preferences

        communication = business.communication_settings or CommunicationSettings()
        communication.send_confirmation_email = data.communication.sendConfirmationEmail
        communication.send_reminder_email = data.communication.sendReminderEmail
        communication.reminder_hours_before = data.communication.reminderHoursBefore
        business.communication_settings = communication

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_configuration(self, user: User) -> BusinessConfigurationResponse:
        business = self.repo.get_configuration(self.db, user.id)
        if not business:
            raise business_not_found()

        professionals = [
            ProfessionalDetails(
                id=p.id,
                externalId=p.external_id,
                firstName=p.first_name,
                lastName=p.last_name,
                birthDate=p.birth_date.isoformat() if p.birth_date else None,
                dni=p.dni,
                description=p.description,
                useIndividualSchedule=p.use_individual_schedule,
                globalSchedule=(
                    GlobalSchedule(
                        openTime=p.global_open_time,
                        closeTime=p.global_close_time or DEFAULT_CLOSE_TIME,
                        duration=p.global_duration or DEFAULT_SLOT_DURATION,
                    )
                    if p.global_open_time
                    else None
                ),
                schedules=_week_from_rows(p.schedules),
                createdAt=isoformat_utc(p.created_at),
                updatedAt=isoformat_utc(p.updated_at),
            )
            for p in business.professionals
        ]

        services = [
            ServiceDetails(
                id=s.id,
                externalId=s.external_id,
                name=s.name,
                duration=s.duration,
                price=price_to_float(s.price),
                professionals=[professional_info(p) for p in s.professionals],
                createdAt=isoformat_utc(s.created_at),
                updatedAt=isoformat_utc(s.updated_at),
            )
            for s in business.services
        ]

        preferences = business.booking_preferences
        communication = business.communication_settings

        return BusinessConfigurationResponse(
            business=BusinessDetails(
                id=business.id,
                adminName=business.admin_name,
                name=business.name,
                phone=business.phone,
                address=business.address,
                city=business.city,
                province=business.province,
                logo=business.logo,
                createdAt=isoformat_utc(business.created_at),
                updatedAt=isoformat_utc(business.updated_at),
            ),
            professionals=professionals,
            services=services,
            operatingHours=OperatingHoursDetails(
                useIndividualSchedule=business.use_individual_schedule,
                useIndividualProfessionalSchedule=business.use_individual_professional_schedule,
                globalSchedule=GlobalSchedule(
                    openTime=business.global_open_time or DEFAULT_OPEN_TIME,
                    closeTime=business.global_close_time or DEFAULT_CLOSE_TIME,
                    duration=business.global_duration or DEFAULT_SLOT_DURATION,
                ),
                days=_week_from_rows(business.operating_hours),
            ),
            bookingPreferences=(
                BookingPreferencesConfig(
                    allowCancellation=preferences.allow_cancellation,
                    hoursBeforeBooking=preferences.hours_before_booking,
                    maxDaysAhead=preferences.max_days_ahead,
                )
                if preferences
                else BookingPreferencesConfig()
            ),
            communication=(
                CommunicationConfig(
                    sendConfirmationEmail=communication.send_confirmation_email,
                    sendReminderEmail=communication.send_reminder_email,
                    reminderHoursBefore=communication.reminder_hours_before,
                )
                if communication
                else CommunicationConfig()
            ),
        )

    def get_setup_status(self, user: User) -> dict:
        """Which configuration steps the user still has to complete"""
        business = self.repo.get_configuration(self.db, user.id)
        if not business:
            return {
                "setupPending": True,
                "missingSteps": list(SETUP_STEPS),
                "details": {
                    "hasBusiness": False,
                    "hasCommunicationSettings": False,
                    "hasOperatingHours": False,
                    "hasProfessionals": False,
                    "hasProfessionalSchedules": False,
                    "hasServices": False,
                    "hasServiceProfessionals": False,
                },
            }

        has_communication = business.communication_settings is not None
        has_operating_hours = len(business.operating_hours) > 0
        has_professionals = len(business.professionals) > 0
        # A professional has hours when it has per-day rows, inherits the
        # business hours, or carries its own global schedule
        has_professional_schedules = any(
            p.schedules
            or (not p.use_individual_schedule and has_operating_hours)
            or (p.global_open_time and p.global_close_time and p.global_duration)
            for p in business.professionals
        )
        has_services = len(business.services) > 0
        has_service_professionals = any(s.professionals for s in business.services)

        missing = []
        if not has_communication:
            missing.append("communication_settings")
        if not has_operating_hours:
            missing.append("operating_hours")
        if not has_professionals:
            missing.append("professionals")
        if has_professionals and not has_professional_schedules:
            missing.append("professional_schedules")
        if not has_services:
            missing.append("services")
        if has_services and has_professionals and not has_service_professionals:
            missing.append("service_professionals")

        return {
            "setupPending": bool(missing),
            "missingSteps": missing,
            "details": {
                "hasBusiness": True,
                "hasCommunicationSettings": has_communication,
                "hasOperatingHours": has_operating_hours,
                "hasProfessionals": has_professionals,
                "hasProfessionalSchedules": bool(has_professional_schedules),
                "hasServices": has_services,
                "hasServiceProfessionals": has_service_professionals,
            },
        }
