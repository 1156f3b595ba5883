"""Dashboard service - loads today's rows and hands them to the aggregator"""

import logging

from sqlalchemy.orm import Session

from ...clock import Clock
from ...config import DEFAULT_CLOSE_TIME, DEFAULT_OPEN_TIME
from ...models import Business, OperatingHours, Professional, Service
from ..appointments.repository import AppointmentRepository
from .aggregator import build_today_dashboard
from .schemas import TodayDashboardResponse

logger = logging.getLogger(__name__)


class DashboardService:
    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    def get_today_dashboard(self, business: Business) -> TodayDashboardResponse:
        now = self.clock.local_now()
        logger.info(f"📊 Building today dashboard for business {business.id} ({now.date()})")

        appointments = AppointmentRepository.get_appointments_for_day(
            self.db, business.id, now.date()
        )
        professionals = (
            self.db.query(Professional)
            .filter(Professional.business_id == business.id)
            .order_by(Professional.created_at.asc())
            .all()
        )
        services = self.db.query(Service).filter(Service.business_id == business.id).all()
        operating_hours = (
            self.db.query(OperatingHours).filter(OperatingHours.business_id == business.id).all()
        )

        dashboard = build_today_dashboard(
            appointments=appointments,
            professionals=professionals,
            services=services,
            operating_hours=operating_hours,
            global_open=business.global_open_time or DEFAULT_OPEN_TIME,
            global_close=business.global_close_time or DEFAULT_CLOSE_TIME,
            now=now,
            current_time=self.clock.now(),
        )

        logger.info(
            f"✅ Dashboard ready for business {business.id}: "
            f"{dashboard.dayStats.totalAppointments} appointments, "
            f"{len(dashboard.upcomingAppointments)} upcoming"
        )
        return dashboard
