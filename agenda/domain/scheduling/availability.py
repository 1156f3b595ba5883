"""
Availability checking

Decides whether a professional is free for a candidate [start, end) range
on a date. Appointments that are cancelled or marked no-show never block.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import NON_BLOCKING_STATUSES, Appointment

logger = logging.getLogger(__name__)


def find_conflict(
    db: Session,
    professional_id: str,
    day: date,
    start_time: str,
    end_time: str,
    exclude_appointment_id: Optional[str] = None,
) -> Optional[Appointment]:
    """
    Return the first blocking appointment that overlaps the candidate range.

    Overlap is half-open: existing.start < candidate.end AND
    existing.end > candidate.start, so back-to-back bookings do not collide.
    HH:mm strings compare correctly as text because they are fixed width.
    """
    query = db.query(Appointment).filter(
        Appointment.professional_id == professional_id,
        Appointment.date == day,
        Appointment.status.notin_(NON_BLOCKING_STATUSES),
        Appointment.start_time < end_time,
        Appointment.end_time > start_time,
    )

    if exclude_appointment_id:
        query = query.filter(Appointment.id != exclude_appointment_id)

    return query.first()


def has_conflict(
    db: Session,
    professional_id: str,
    day: date,
    start_time: str,
    end_time: str,
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    conflict = find_conflict(db, professional_id, day, start_time, end_time, exclude_appointment_id)
    if conflict is not None:
        logger.info(
            f"⛔ Slot {day} {start_time}-{end_time} overlaps appointment {conflict.id} "
            f"({conflict.start_time}-{conflict.end_time}) for professional {professional_id}"
        )
        return True
    return False
