"""Shared validation utilities"""

import re
from datetime import datetime
from typing import Optional

DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])$")


def is_valid_date_format(value: str) -> bool:
    """True when ``value`` is YYYY-MM-DD and names a real calendar date"""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_valid_time_format(value: str) -> bool:
    """True when ``value`` is a 24-hour HH:mm time"""
    return isinstance(value, str) and bool(TIME_PATTERN.match(value))


def validate_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not is_valid_date_format(value):
        raise ValueError("must be a valid date in YYYY-MM-DD format")
    return value


def validate_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if not is_valid_time_format(value):
        raise ValueError("must be a valid time in HH:mm format")
    return value


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email
