import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..clock import Clock, get_clock
from ..database import get_db
from ..domain.appointments.schemas import isoformat_utc
from ..domain.business.schemas import SetupStatusResponse
from ..domain.business.service import BusinessService
from ..exceptions import NotAuthenticated
from ..models import User
from ..security_utils import create_access_token, verify_password
from ..session_store import SessionStore, get_session_store
from ..shared.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_login_email(cls, v):
        return validate_email(v)


class UserInfo(BaseModel):
    id: str
    email: str
    fullName: Optional[str] = None
    emailVerified: bool
    lastLogin: Optional[str] = None
    createdAt: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    user: UserInfo
    setupStatus: SetupStatusResponse


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
    clock: Clock = Depends(get_clock),
):
    """Exchange credentials for an access token; replaces any previous session"""
    user = db.query(User).filter(User.email == data.email).first()
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"⚠️ Failed login attempt for {data.email}")
        raise NotAuthenticated("INVALID_CREDENTIALS", "Invalid credentials")

    if not user.email_verified:
        logger.warning(f"⚠️ Login blocked for unverified email {data.email}")
        raise NotAuthenticated(
            "EMAIL_NOT_VERIFIED", "Please verify your email address before logging in"
        )

    token = create_access_token(user.id, user.email)
    login_time = clock.now()
    sessions.save(
        user.id,
        {
            "userId": user.id,
            "email": user.email,
            "token": token,
            "loginTime": isoformat_utc(login_time),
        },
    )

    user.last_login = login_time
    db.commit()
    db.refresh(user)

    setup_status = BusinessService(db).get_setup_status(user)
    logger.info(f"✅ User {user.id} logged in (setup pending: {setup_status['setupPending']})")

    return LoginResponse(
        token=token,
        user=UserInfo(
            id=user.id,
            email=user.email,
            fullName=user.full_name,
            emailVerified=user.email_verified,
            lastLogin=isoformat_utc(user.last_login),
            createdAt=isoformat_utc(user.created_at),
        ),
        setupStatus=setup_status,
    )


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    sessions: SessionStore = Depends(get_session_store),
):
    sessions.delete(current_user.id)
    logger.info(f"👋 User {current_user.id} logged out")
    return {"message": "Logged out successfully"}
