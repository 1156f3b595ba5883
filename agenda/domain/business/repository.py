"""Business repository - Database operations for the tenant configuration"""

from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Appointment, Business, Professional, Service


class BusinessRepository:
    @staticmethod
    def get_business_by_user(db: Session, user_id: str, lock: bool = False) -> Optional[Business]:
        query = db.query(Business).filter(Business.user_id == user_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def get_configuration(db: Session, user_id: str) -> Optional[Business]:
        """Business with every configuration relation eagerly loaded"""
        return (
            db.query(Business)
            .options(
                selectinload(Business.operating_hours),
                selectinload(Business.professionals).selectinload(Professional.schedules),
                selectinload(Business.professionals).selectinload(Professional.services),
                selectinload(Business.services).selectinload(Service.professionals),
                selectinload(Business.booking_preferences),
                selectinload(Business.communication_settings),
            )
            .filter(Business.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_professionals(db: Session, business_id: str) -> list[Professional]:
        return (
            db.query(Professional)
            .filter(Professional.business_id == business_id)
            .order_by(Professional.created_at.asc())
            .all()
        )

    @staticmethod
    def get_services(db: Session, business_id: str) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.business_id == business_id)
            .order_by(Service.created_at.asc())
            .all()
        )

    @staticmethod
    def count_professional_appointments(db: Session, professional_id: str) -> int:
        return db.query(Appointment).filter(Appointment.professional_id == professional_id).count()

    @staticmethod
    def count_service_appointments(db: Session, service_id: str) -> int:
        return db.query(Appointment).filter(Appointment.service_id == service_id).count()
