"""Appointment repository - Database operations for appointments

Nothing here commits: the service owns the transaction so that lookups,
the overlap check and the write land together.
"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Appointment, AppointmentStatus, Business, Client, Professional, Service

_SORT_COLUMNS = {
    "date": Appointment.date,
    "createdAt": Appointment.created_at,
    "status": Appointment.status,
}


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_business_by_user(db: Session, user_id: str) -> Optional[Business]:
        return db.query(Business).filter(Business.user_id == user_id).first()

    @staticmethod
    def get_professional(
        db: Session, business_id: str, external_id: str, lock: bool = False
    ) -> Optional[Professional]:
        """Find a professional by the external id; ``lock`` takes a row lock"""
        query = db.query(Professional).filter(
            Professional.business_id == business_id,
            Professional.external_id == external_id,
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def lock_professional(db: Session, professional_id: str) -> Optional[Professional]:
        return (
            db.query(Professional)
            .filter(Professional.id == professional_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_service(db: Session, business_id: str, external_id: str) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.business_id == business_id, Service.external_id == external_id)
            .first()
        )

    @staticmethod
    def get_client_by_email(db: Session, business_id: str, email: str) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.business_id == business_id, Client.email == email)
            .order_by(Client.created_at)
            .first()
        )

    @staticmethod
    def create_client(db: Session, business_id: str, **client_data) -> Client:
        client = Client(business_id=business_id, **client_data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def add_appointment(db: Session, appointment: Appointment) -> Appointment:
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def get_appointment(db: Session, appointment_id: str, business_id: str) -> Optional[Appointment]:
        """Get an appointment of a business with its client, service and professional"""
        return (
            db.query(Appointment)
            .options(
                joinedload(Appointment.client),
                joinedload(Appointment.service),
                joinedload(Appointment.professional),
            )
            .filter(Appointment.id == appointment_id, Appointment.business_id == business_id)
            .first()
        )

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)

    @staticmethod
    def search_appointments(
        db: Session,
        business_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        professional_id: Optional[str] = None,
        service_id: Optional[str] = None,
        client_id: Optional[str] = None,
        statuses: Optional[list[AppointmentStatus]] = None,
        sort_by: str = "date",
        sort_order: str = "asc",
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Appointment], int]:
        """Filter, count and page appointments. Returns (page, total)"""
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if start_date:
            query = query.filter(Appointment.date >= start_date)
        if end_date:
            query = query.filter(Appointment.date <= end_date)
        if professional_id:
            query = query.filter(Appointment.professional_id == professional_id)
        if service_id:
            query = query.filter(Appointment.service_id == service_id)
        if client_id:
            query = query.filter(Appointment.client_id == client_id)
        if statuses:
            query = query.filter(Appointment.status.in_(statuses))

        total = query.count()

        column = _SORT_COLUMNS[sort_by]
        primary = column.desc() if sort_order == "desc" else column.asc()

        items = (
            query.options(
                joinedload(Appointment.client),
                joinedload(Appointment.service),
                joinedload(Appointment.professional),
            )
            .order_by(primary, Appointment.start_time.asc(), Appointment.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    @staticmethod
    def get_appointments_for_day(db: Session, business_id: str, day: date) -> list[Appointment]:
        """All appointments of a business on ``day`` with their relations loaded"""
        return (
            db.query(Appointment)
            .options(
                joinedload(Appointment.client),
                joinedload(Appointment.service),
                joinedload(Appointment.professional),
            )
            .filter(Appointment.business_id == business_id, Appointment.date == day)
            .order_by(Appointment.start_time.asc())
            .all()
        )
