"""Dashboard router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_business
from ...clock import Clock, get_clock
from ...database import get_db
from ...models import Business
from .schemas import TodayDashboardResponse
from .service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def get_dashboard_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> DashboardService:
    return DashboardService(db, clock)


@router.get("/today", response_model=TodayDashboardResponse)
async def get_today_dashboard(
    business: Business = Depends(get_current_business),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Upcoming appointments, day statistics, staff status and popular services for today"""
    return service.get_today_dashboard(business)
