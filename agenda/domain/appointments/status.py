"""Appointment status transitions"""

from ...exceptions import Conflict
from ...models import ACTIVE_STATUSES, AppointmentStatus

# Position along the normal lifecycle; moving forward may skip steps
_LIFECYCLE_ORDER = {
    AppointmentStatus.PENDING: 0,
    AppointmentStatus.CONFIRMED: 1,
    AppointmentStatus.IN_PROGRESS: 2,
    AppointmentStatus.COMPLETED: 3,
}

TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """
    Allowed moves:
      pending -> confirmed -> in_progress -> completed (forward, skipping allowed)
      any active status -> cancelled | no_show
    completed, cancelled and no_show are terminal. Re-applying the current
    status is always accepted.
    """
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW):
        return current in ACTIVE_STATUSES
    return _LIFECYCLE_ORDER[target] > _LIFECYCLE_ORDER[current]


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    if not can_transition(current, target):
        raise Conflict(
            "INVALID_STATUS_TRANSITION",
            f"Cannot change appointment status from {current.value} to {target.value}",
        )
