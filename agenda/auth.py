import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .exceptions import NotAuthenticated, business_not_found
from .models import Business, User
from .security_utils import decode_access_token
from .session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    The token must verify and must still be the live session stored for its
    user; logging in again or logging out invalidates older tokens.
    """
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated("TOKEN_MISSING", "Authentication token not provided")

    token = credentials.credentials
    payload = decode_access_token(token)
    if payload is None:
        raise NotAuthenticated("TOKEN_INVALID", "Invalid or expired token")

    user_id = payload["userId"]
    session = sessions.get(user_id)
    if not session or session.get("token") != token:
        logger.warning(f"⚠️ No live session matches the token of user {user_id}")
        raise NotAuthenticated("SESSION_INVALID", "Session expired or invalidated")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user {user_id}")
        raise NotAuthenticated("USER_NOT_FOUND", "User not found")

    return user


def get_current_business(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Business:
    """The tenant owned by the authenticated user"""
    business = db.query(Business).filter(Business.user_id == current_user.id).first()
    if not business:
        raise business_not_found()
    return business
