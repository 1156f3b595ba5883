from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from agenda.domain.dashboard.aggregator import (
    build_business_hours,
    build_day_stats,
    build_popular_services,
    build_professional_stats,
    build_today_dashboard,
    build_upcoming,
)
from agenda.models import AppointmentStatus

from .conftest import TODAY

NOW = datetime(2024, 3, 11, 9, 0)

LAURA = SimpleNamespace(id="p1", external_id="prof-1", first_name="Laura", last_name="Diaz")
MARCO = SimpleNamespace(id="p2", external_id="prof-2", first_name="Marco", last_name="Ruiz")
HAIRCUT = SimpleNamespace(id="s1", external_id="svc-cut", name="Haircut", duration=30, price=Decimal("100"))
COLOR = SimpleNamespace(id="s2", external_id="svc-color", name="Color", duration=60, price=Decimal("50"))
NAILS = SimpleNamespace(id="s3", external_id="svc-nails", name="Nails", duration=30, price=None)
BEARD = SimpleNamespace(id="s4", external_id="svc-beard", name="Beard", duration=30, price=Decimal("20"))
CLIENT = SimpleNamespace(id="c1", name="Juan Perez", email=None, phone=None)

_counter = iter(range(1, 1000))


def appointment(start, end, status=AppointmentStatus.CONFIRMED, professional=LAURA, service=HAIRCUT):
    return SimpleNamespace(
        id=f"a{next(_counter)}",
        client=CLIENT,
        service=service,
        professional=professional,
        date=TODAY,
        start_time=start,
        end_time=end,
        duration=30,
        status=status,
        price=service.price,
        notes=None,
        created_at=None,
        updated_at=None,
        cancelled_at=None,
        cancelled_reason=None,
        completed_at=None,
    )


def test_revenue_counts_confirmed_and_completed_only():
    appointments = [
        appointment("10:00", "10:30"),
        appointment("11:00", "11:30"),
        appointment("12:00", "12:30", status=AppointmentStatus.CANCELLED, service=COLOR),
    ]

    stats = build_day_stats(appointments, professional_count=1, now=NOW)

    assert stats.totalRevenue == 200
    assert stats.totalAppointments == 3
    assert stats.confirmed == 2
    assert stats.cancelled == 1
    assert stats.pending == 0
    assert stats.completed == 0
    # 2 occupied of 9h x 2 slots for one professional
    assert stats.occupancyRate == 11


def test_collected_revenue_only_counts_finished_appointments():
    appointments = [
        appointment("08:00", "08:30"),
        appointment("08:30", "09:00", status=AppointmentStatus.PENDING),
        appointment("07:00", "07:30", status=AppointmentStatus.CANCELLED),
        appointment("10:00", "10:30"),
    ]

    stats = build_day_stats(appointments, professional_count=2, now=NOW)

    assert stats.collectedRevenue == 100
    assert stats.totalRevenue == 200
    assert stats.occupancyRate == 8  # 3 / 36


def test_occupancy_without_professionals_is_zero():
    assert build_day_stats([], professional_count=0, now=NOW).occupancyRate == 0


def test_upcoming_sorted_with_next_and_urgent_flags():
    appointments = [
        appointment("11:00", "11:30"),
        appointment("08:30", "09:00"),
        appointment("09:45", "10:15", professional=MARCO),
        appointment("10:00", "10:30", status=AppointmentStatus.CANCELLED),
        appointment("10:30", "11:00", status=AppointmentStatus.COMPLETED),
        appointment("09:20", "09:50"),
    ]

    upcoming = build_upcoming(appointments, NOW)

    assert [a.minutesUntil for a in upcoming] == [20, 45, 120]
    assert [a.isNext for a in upcoming] == [True, False, False]
    assert [a.isUrgent for a in upcoming] == [True, False, False]
    assert [a.timeUntil for a in upcoming] == ["En 20 min", "En 45 min", "En 2h"]
    assert upcoming[0].startTime == "09:20"


def test_minutes_until_is_floored():
    upcoming = build_upcoming([appointment("09:10", "09:40")], datetime(2024, 3, 11, 9, 0, 30))
    assert upcoming[0].minutesUntil == 9


def test_appointment_starting_now_is_not_upcoming():
    assert build_upcoming([appointment("09:00", "09:30")], NOW) == []


def test_professional_busy_and_next_appointment():
    appointments = [
        appointment("08:45", "09:15"),
        appointment("11:00", "11:30"),
        appointment("10:00", "10:30"),
        appointment("09:30", "10:00", status=AppointmentStatus.CANCELLED),
        appointment("08:00", "09:00", professional=MARCO),
    ]

    laura, marco = build_professional_stats(appointments, [LAURA, MARCO], NOW)

    assert laura.currentStatus == "busy"
    assert laura.isAvailable is False
    assert laura.appointmentsToday == 3
    assert laura.nextAppointment.startTime == "10:00"

    # Marco's appointment ended exactly now
    assert marco.currentStatus == "available"
    assert marco.appointmentsToday == 1
    assert marco.nextAppointment is None


def test_popular_services_top_three():
    appointments = (
        [appointment("10:00", "10:30", service=HAIRCUT) for _ in range(4)]
        + [appointment("11:00", "11:30", service=COLOR) for _ in range(3)]
        + [appointment("12:00", "12:30", service=NAILS) for _ in range(2)]
        + [appointment("13:00", "13:30", service=BEARD)]
        + [appointment("14:00", "14:30", service=BEARD, status=AppointmentStatus.CANCELLED)]
    )

    popular = build_popular_services(appointments, [HAIRCUT, COLOR, NAILS, BEARD])

    assert [(p.service.externalId, p.count, p.percentage) for p in popular] == [
        ("svc-cut", 4, 40),
        ("svc-color", 3, 30),
        ("svc-nails", 2, 20),
    ]
    assert popular[2].service.price is None


def test_business_hours_prefers_enabled_day_entry():
    monday = SimpleNamespace(day_of_week="monday", enabled=True, open_time="10:00", close_time="14:00")
    hours = build_business_hours([monday], "09:00", "18:00", NOW)
    assert (hours.openTime, hours.closeTime, hours.isOpen) == ("10:00", "14:00", False)


def test_business_hours_fall_back_to_global_when_day_disabled():
    monday = SimpleNamespace(day_of_week="monday", enabled=False, open_time="10:00", close_time="14:00")
    hours = build_business_hours([monday], "09:00", "18:00", NOW)
    assert (hours.openTime, hours.closeTime, hours.isOpen) == ("09:00", "18:00", True)


def test_full_dashboard_shape():
    dashboard = build_today_dashboard(
        appointments=[appointment("10:00", "10:30")],
        professionals=[LAURA, MARCO],
        services=[HAIRCUT],
        operating_hours=[],
        global_open="09:00",
        global_close="18:00",
        now=NOW,
        current_time=NOW.replace(tzinfo=timezone.utc),
    )

    assert dashboard.currentTime == "2024-03-11T09:00:00Z"
    assert len(dashboard.upcomingAppointments) == 1
    assert len(dashboard.professionalStats) == 2
    assert dashboard.popularServices[0].percentage == 100
    assert dashboard.businessHours.isOpen is True
