"""Appointment service - Business logic for the appointment lifecycle"""

import logging
import math
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...clock import Clock
from ...exceptions import (
    ValidationFailed,
    appointment_not_found,
    business_not_found,
    professional_not_found,
    service_not_found,
    time_slot_not_available,
)
from ...models import Appointment, AppointmentStatus, Business, Client, User
from ...shared.validators import is_valid_date_format
from ..scheduling.availability import has_conflict
from ..scheduling.time_utils import calculate_end_time, minutes_between
from .repository import AppointmentRepository
from .schemas import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentUpdate,
    CancelAppointmentRequest,
)
from .status import ensure_transition

logger = logging.getLogger(__name__)


def _parse_day(value: str, field: str = "date") -> date:
    if not is_valid_date_format(value):
        raise ValidationFailed("INVALID_DATE", f"{field} must be a valid date in YYYY-MM-DD format")
    return datetime.strptime(value, "%Y-%m-%d").date()


def _ensure_time_range(start_time: str, end_time: str) -> None:
    if minutes_between(start_time, end_time) <= 0:
        raise ValidationFailed(
            "INVALID_TIME_RANGE",
            f"End time {end_time} must be after start time {start_time} on the same day",
        )


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.repo = AppointmentRepository()

    def get_business(self, user: User) -> Business:
        business = self.repo.get_business_by_user(self.db, user.id)
        if not business:
            raise business_not_found()
        return business

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_appointment(self, data: AppointmentCreate, user: User) -> tuple[Appointment, bool]:
        """
        Book an appointment. Returns (appointment, is_new_client).

        The professional row is locked for the rest of the transaction, so
        two concurrent bookings for the same professional serialize and the
        second one sees the first when it checks for overlaps.
        """
        business = self.get_business(user)
        logger.info(f"📥 Creating appointment for business {business.id} on {data.date} {data.startTime}")

        try:
            professional = self.repo.get_professional(
                self.db, business.id, data.professionalId, lock=True
            )
            if not professional:
                raise professional_not_found()

            service = self.repo.get_service(self.db, business.id, data.serviceId)
            if not service:
                raise service_not_found()

            day = _parse_day(data.date)
            end_time = data.endTime or calculate_end_time(data.startTime, service.duration)
            _ensure_time_range(data.startTime, end_time)

            if has_conflict(self.db, professional.id, day, data.startTime, end_time):
                raise time_slot_not_available()

            client, is_new_client = self._resolve_client(business.id, data)

            status = data.status or AppointmentStatus.CONFIRMED
            appointment = Appointment(
                business_id=business.id,
                client_id=client.id,
                professional_id=professional.id,
                service_id=service.id,
                date=day,
                start_time=data.startTime,
                end_time=end_time,
                duration=minutes_between(data.startTime, end_time),
                status=status,
                price=service.price,
                notes=data.notes or None,
            )
            self._stamp_status(appointment, status)
            self.repo.add_appointment(self.db, appointment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(
            f"✅ Appointment {appointment.id} booked: {day} {appointment.start_time}-"
            f"{appointment.end_time} with professional {professional.id}"
        )
        return appointment, is_new_client

    def _resolve_client(self, business_id: str, data: AppointmentCreate) -> tuple[Client, bool]:
        """
        Reuse the business's client with the same email, otherwise register one.

        A returning client's name and phone follow what the booking supplied.
        """
        if data.clientEmail:
            existing = self.repo.get_client_by_email(self.db, business_id, data.clientEmail)
            if existing:
                if existing.name != data.clientName:
                    existing.name = data.clientName
                if data.clientPhone and existing.phone != data.clientPhone:
                    existing.phone = data.clientPhone
                return existing, False

        client = self.repo.create_client(
            self.db,
            business_id,
            name=data.clientName,
            email=data.clientEmail,
            phone=data.clientPhone or None,
        )
        logger.info(f"👤 Registered new client {client.id} for business {business_id}")
        return client, True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_appointment(self, appointment_id: str, user: User) -> Appointment:
        business = self.get_business(user)
        appointment = self.repo.get_appointment(self.db, appointment_id, business.id)
        if not appointment:
            raise appointment_not_found()
        return appointment

    def list_appointments(self, filters: AppointmentFilters, user: User) -> dict:
        """Filtered, sorted and paged appointments plus pagination metadata"""
        business = self.get_business(user)

        start_date = _parse_day(filters.startDate, "startDate") if filters.startDate else None
        end_date = _parse_day(filters.endDate, "endDate") if filters.endDate else None

        professional_id = None
        if filters.professionalId:
            professional = self.repo.get_professional(self.db, business.id, filters.professionalId)
            if not professional:
                return self._empty_page(filters)
            professional_id = professional.id

        service_id = None
        if filters.serviceId:
            service = self.repo.get_service(self.db, business.id, filters.serviceId)
            if not service:
                return self._empty_page(filters)
            service_id = service.id

        appointments, total = self.repo.search_appointments(
            self.db,
            business.id,
            start_date=start_date,
            end_date=end_date,
            professional_id=professional_id,
            service_id=service_id,
            client_id=filters.clientId,
            statuses=filters.status,
            sort_by=filters.sortBy,
            sort_order=filters.sortOrder,
            offset=(filters.page - 1) * filters.limit,
            limit=filters.limit,
        )

        return {
            "appointments": appointments,
            "pagination": {
                "total": total,
                "page": filters.page,
                "limit": filters.limit,
                "totalPages": math.ceil(total / filters.limit),
            },
        }

    @staticmethod
    def _empty_page(filters: AppointmentFilters) -> dict:
        return {
            "appointments": [],
            "pagination": {"total": 0, "page": filters.page, "limit": filters.limit, "totalPages": 0},
        }

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_appointment(
        self, appointment_id: str, data: AppointmentUpdate, user: User
    ) -> Appointment:
        """
        Partially update an appointment.

        The time range is re-validated and re-checked for overlaps whenever
        the date, times, service or professional change and the resulting
        status still occupies the slot.
        """
        business = self.get_business(user)
        provided = data.model_fields_set

        try:
            appointment = self.repo.get_appointment(self.db, appointment_id, business.id)
            if not appointment:
                raise appointment_not_found()

            if data.professionalId:
                professional = self.repo.get_professional(
                    self.db, business.id, data.professionalId, lock=True
                )
                if not professional:
                    raise professional_not_found()
                appointment.professional = professional
            else:
                self.repo.lock_professional(self.db, appointment.professional_id)

            duration = appointment.duration
            if data.serviceId:
                service = self.repo.get_service(self.db, business.id, data.serviceId)
                if not service:
                    raise service_not_found()
                appointment.service = service
                appointment.price = service.price
                duration = service.duration

            schedule_changed = any(
                [data.date, data.startTime, data.endTime, data.serviceId, data.professionalId]
            )

            if schedule_changed:
                day = _parse_day(data.date) if data.date else appointment.date
                start_time = data.startTime or appointment.start_time
                if data.endTime:
                    end_time = data.endTime
                elif data.startTime or data.serviceId:
                    end_time = calculate_end_time(start_time, duration)
                else:
                    end_time = appointment.end_time
                _ensure_time_range(start_time, end_time)

                appointment.date = day
                appointment.start_time = start_time
                appointment.end_time = end_time
                appointment.duration = minutes_between(start_time, end_time)

            current_status = appointment.status
            target_status = data.status or current_status
            if target_status != current_status:
                ensure_transition(current_status, target_status)
                appointment.status = target_status
                self._stamp_status(appointment, target_status, data.cancelledReason)
            elif "cancelledReason" in provided and current_status == AppointmentStatus.CANCELLED:
                appointment.cancelled_reason = data.cancelledReason

            if schedule_changed and target_status.blocks_slot:
                if has_conflict(
                    self.db,
                    appointment.professional.id,
                    appointment.date,
                    appointment.start_time,
                    appointment.end_time,
                    exclude_appointment_id=appointment.id,
                ):
                    raise time_slot_not_available()

            if "notes" in provided:
                appointment.notes = data.notes or None

            self._update_client(appointment.client, data, provided)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(appointment)
        logger.info(f"✅ Appointment {appointment.id} updated (status: {appointment.status.value})")
        return appointment

    @staticmethod
    def _update_client(client: Client, data: AppointmentUpdate, provided: set) -> None:
        if data.clientName and data.clientName.strip():
            client.name = data.clientName.strip()
        if "clientEmail" in provided:
            client.email = data.clientEmail or None
        if "clientPhone" in provided:
            client.phone = data.clientPhone or None

    def _stamp_status(
        self,
        appointment: Appointment,
        status: AppointmentStatus,
        reason: Optional[str] = None,
    ) -> None:
        if status == AppointmentStatus.CANCELLED:
            appointment.cancelled_at = self.clock.now()
            appointment.cancelled_reason = reason or None
        elif status == AppointmentStatus.COMPLETED:
            appointment.completed_at = self.clock.now()

    def cancel_appointment(
        self, appointment_id: str, data: Optional[CancelAppointmentRequest], user: User
    ) -> Appointment:
        reason = data.reason if data else None
        logger.info(f"🚫 Cancelling appointment {appointment_id}")
        return self.update_appointment(
            appointment_id,
            AppointmentUpdate(status=AppointmentStatus.CANCELLED, cancelledReason=reason),
            user,
        )

    def complete_appointment(self, appointment_id: str, user: User) -> Appointment:
        logger.info(f"🏁 Completing appointment {appointment_id}")
        return self.update_appointment(
            appointment_id, AppointmentUpdate(status=AppointmentStatus.COMPLETED), user
        )

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_appointment(self, appointment_id: str, user: User) -> dict:
        business = self.get_business(user)
        appointment = self.repo.get_appointment(self.db, appointment_id, business.id)
        if not appointment:
            raise appointment_not_found()

        try:
            self.repo.delete_appointment(self.db, appointment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🗑️ Appointment {appointment_id} deleted")
        return {"success": True, "appointmentId": appointment_id}
