"""Business router - configuration endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import (
    BusinessConfiguration,
    BusinessConfigurationResponse,
    SaveConfigurationResponse,
    SetupStatusResponse,
)
from .service import BusinessService

router = APIRouter(prefix="/business", tags=["Business"])


def get_business_service(db: Session = Depends(get_db)) -> BusinessService:
    """Dependency injection for BusinessService"""
    return BusinessService(db)


@router.put("/configuration", response_model=SaveConfigurationResponse)
@router.post("/configuration", response_model=SaveConfigurationResponse)
async def save_configuration(
    data: BusinessConfiguration,
    current_user: User = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
):
    """Save the complete business configuration (creates the business on first save)"""
    return service.save_configuration(data, current_user)


@router.get("/configuration", response_model=BusinessConfigurationResponse)
async def get_configuration(
    current_user: User = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
):
    return service.get_configuration(current_user)


@router.get("/setup-status", response_model=SetupStatusResponse)
async def get_setup_status(
    current_user: User = Depends(get_current_user),
    service: BusinessService = Depends(get_business_service),
):
    return service.get_setup_status(current_user)
