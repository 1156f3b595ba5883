"""
Today dashboard aggregation

Pure computation over rows that were already loaded: nothing here touches
the database or reads the clock, so the same inputs always produce the same
dashboard.
"""

import math
from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from ...models import AppointmentStatus
from ..appointments.schemas import (
    build_appointment_response,
    isoformat_utc,
    price_to_float,
    professional_info,
    service_info,
)
from ..scheduling.time_utils import (
    combine,
    day_of_week,
    find_day_schedule,
    format_time_until,
    is_within_hours,
    round_half_up,
)
from .schemas import (
    BusinessHours,
    DayStats,
    PopularService,
    ProfessionalStats,
    TodayDashboardResponse,
    UpcomingAppointment,
)

URGENT_THRESHOLD_MINUTES = 30
POPULAR_SERVICES_LIMIT = 3

# Fixed capacity model: 9 working hours of 30 minute slots per professional
CAPACITY_HOURS = 9
SLOTS_PER_HOUR = 2


def _starts_at(appointment) -> datetime:
    return combine(appointment.date, appointment.start_time)


def _ends_at(appointment) -> datetime:
    return combine(appointment.date, appointment.end_time)


def _service_price(appointment) -> float:
    return price_to_float(appointment.service.price) or 0.0


def build_upcoming(appointments: list, now: datetime) -> list[UpcomingAppointment]:
    """Future appointments still to be attended, soonest first"""
    upcoming = []
    for appointment in appointments:
        if appointment.status in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED):
            continue
        starts_at = _starts_at(appointment)
        if starts_at <= now:
            continue
        minutes_until = math.floor((starts_at - now).total_seconds() / 60)
        upcoming.append((minutes_until, appointment))

    upcoming.sort(key=lambda item: item[0])

    return [
        UpcomingAppointment(
            **build_appointment_response(appointment).model_dump(),
            timeUntil=format_time_until(minutes_until),
            minutesUntil=minutes_until,
            isNext=index == 0,
            isUrgent=minutes_until <= URGENT_THRESHOLD_MINUTES,
        )
        for index, (minutes_until, appointment) in enumerate(upcoming)
    ]


def build_day_stats(appointments: list, professional_count: int, now: datetime) -> DayStats:
    by_status = Counter(a.status for a in appointments)

    total_revenue = sum(
        _service_price(a)
        for a in appointments
        if a.status in (AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED)
    )
    collected_revenue = sum(
        _service_price(a)
        for a in appointments
        if a.status != AppointmentStatus.CANCELLED and _ends_at(a) < now
    )

    total_slots = CAPACITY_HOURS * SLOTS_PER_HOUR * professional_count
    occupied = sum(1 for a in appointments if a.status != AppointmentStatus.CANCELLED)
    occupancy_rate = round_half_up(occupied / total_slots * 100) if total_slots else 0

    return DayStats(
        totalAppointments=len(appointments),
        confirmed=by_status[AppointmentStatus.CONFIRMED],
        pending=by_status[AppointmentStatus.PENDING],
        inProgress=by_status[AppointmentStatus.IN_PROGRESS],
        completed=by_status[AppointmentStatus.COMPLETED],
        cancelled=by_status[AppointmentStatus.CANCELLED],
        noShow=by_status[AppointmentStatus.NO_SHOW],
        totalRevenue=total_revenue,
        collectedRevenue=collected_revenue,
        occupancyRate=occupancy_rate,
    )


def build_professional_stats(
    appointments: list, professionals: Iterable, now: datetime
) -> list[ProfessionalStats]:
    stats = []
    for professional in professionals:
        booked = [
            a
            for a in appointments
            if a.professional.id == professional.id and a.status != AppointmentStatus.CANCELLED
        ]

        future = [a for a in booked if _starts_at(a) > now]
        next_appointment = min(future, key=_starts_at) if future else None

        busy = any(_starts_at(a) <= now < _ends_at(a) for a in booked)

        stats.append(
            ProfessionalStats(
                professional=professional_info(professional),
                appointmentsToday=len(booked),
                nextAppointment=(
                    build_appointment_response(next_appointment) if next_appointment else None
                ),
                isAvailable=not busy,
                currentStatus="busy" if busy else "available",
            )
        )
    return stats


def build_popular_services(appointments: list, services: Iterable) -> list[PopularService]:
    counts = Counter(
        a.service.id for a in appointments if a.status != AppointmentStatus.CANCELLED
    )
    total = sum(counts.values())
    services_by_id = {s.id: s for s in services}

    popular = [
        PopularService(
            service=service_info(services_by_id[service_id]),
            count=count,
            percentage=round_half_up(count / total * 100) if total else 0,
        )
        for service_id, count in counts.items()
        if service_id in services_by_id
    ]
    popular.sort(key=lambda item: item.count, reverse=True)
    return popular[:POPULAR_SERVICES_LIMIT]


def build_business_hours(
    operating_hours: Iterable, global_open: str, global_close: str, now: datetime
) -> BusinessHours:
    """
    Today's enabled operating-hours entry wins; otherwise the business-wide
    hours apply. ``global_open``/``global_close`` arrive already defaulted.
    """
    today = find_day_schedule(operating_hours, day_of_week(now.date()))
    open_time = today.open_time if today else global_open
    close_time = today.close_time if today else global_close
    return BusinessHours(
        openTime=open_time,
        closeTime=close_time,
        isOpen=is_within_hours(now, open_time, close_time),
    )


def build_today_dashboard(
    appointments: list,
    professionals: list,
    services: list,
    operating_hours: list,
    global_open: str,
    global_close: str,
    now: datetime,
    current_time: Optional[datetime] = None,
) -> TodayDashboardResponse:
    """
    Aggregate today's dashboard.

    ``now`` is the naive local wall time appointments are compared against;
    ``current_time`` is the aware instant echoed back to the caller.
    """
    return TodayDashboardResponse(
        currentTime=isoformat_utc(current_time) if current_time else now.isoformat(),
        upcomingAppointments=build_upcoming(appointments, now),
        dayStats=build_day_stats(appointments, len(professionals), now),
        professionalStats=build_professional_stats(appointments, professionals, now),
        popularServices=build_popular_services(appointments, services),
        businessHours=build_business_hours(operating_hours, global_open, global_close, now),
    )
