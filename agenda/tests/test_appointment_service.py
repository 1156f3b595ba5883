from decimal import Decimal

import pytest

from agenda.domain.appointments.schemas import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentUpdate,
    CancelAppointmentRequest,
)
from agenda.domain.appointments.service import AppointmentService
from agenda.exceptions import Conflict, NotFound, ValidationFailed
from agenda.models import AppointmentStatus, Business, Client, Service, User

from .conftest import TODAY, booking


@pytest.fixture
def service(db_session, clock):
    return AppointmentService(db_session, clock)


def create(service, user, **overrides):
    return service.create_appointment(AppointmentCreate(**booking(**overrides)), user)


def test_create_derives_end_time_and_snapshots_price(service, user, business):
    appointment, is_new_client = create(service, user)

    assert is_new_client
    assert appointment.start_time == "10:00"
    assert appointment.end_time == "10:30"
    assert appointment.duration == 30
    assert appointment.status == AppointmentStatus.CONFIRMED
    assert appointment.price == Decimal("100.00")
    assert appointment.client.email == "juan@example.com"


def test_create_with_explicit_end_time(service, user, business):
    appointment, _ = create(service, user, startTime="10:00", endTime="10:45")
    assert appointment.end_time == "10:45"
    assert appointment.duration == 45


def test_create_rejects_end_before_start(service, user, business):
    with pytest.raises(ValidationFailed) as exc_info:
        create(service, user, startTime="10:00", endTime="09:30")
    assert exc_info.value.code == "INVALID_TIME_RANGE"


def test_create_rejects_end_time_past_midnight(service, user, business):
    with pytest.raises(ValidationFailed) as exc_info:
        create(service, user, startTime="23:45")
    assert exc_info.value.code == "INVALID_TIME_RANGE"


def test_overlapping_booking_is_rejected_and_adjacent_accepted(service, user, business):
    create(service, user, startTime="10:00")

    with pytest.raises(Conflict) as exc_info:
        create(service, user, startTime="10:15", clientEmail="other@example.com")
    assert exc_info.value.code == "TIME_SLOT_NOT_AVAILABLE"

    adjacent, _ = create(service, user, startTime="10:30", clientEmail="other@example.com")
    assert adjacent.start_time == "10:30"
    assert adjacent.end_time == "11:00"


def test_cancelled_booking_frees_the_slot(service, user, business):
    first, _ = create(service, user, startTime="10:00")
    service.cancel_appointment(first.id, CancelAppointmentRequest(reason="sick"), user)

    retry, _ = create(service, user, startTime="10:15")
    assert retry.start_time == "10:15"


def test_failed_booking_leaves_no_orphan_client(service, user, business, db_session):
    create(service, user, startTime="10:00")
    with pytest.raises(Conflict):
        create(service, user, startTime="10:00", clientEmail="new@example.com")

    assert db_session.query(Client).filter(Client.email == "new@example.com").count() == 0


def test_returning_client_is_reused_and_updated(service, user, business, db_session):
    first, _ = create(service, user, startTime="10:00")
    second, is_new_client = create(
        service, user, startTime="11:00", clientName="Juan P. Perez", clientPhone="555-0199"
    )

    assert not is_new_client
    assert second.client_id == first.client_id
    assert second.client.name == "Juan P. Perez"
    assert second.client.phone == "555-0199"
    assert db_session.query(Client).count() == 1


def test_client_without_email_is_always_new(service, user, business, db_session):
    create(service, user, startTime="10:00", clientEmail=None)
    _, is_new_client = create(service, user, startTime="11:00", clientEmail=None)
    assert is_new_client
    assert db_session.query(Client).count() == 2


def test_unknown_professional_or_service(service, user, business):
    with pytest.raises(NotFound) as exc_info:
        create(service, user, professionalId="nobody")
    assert exc_info.value.code == "PROFESSIONAL_NOT_FOUND"

    with pytest.raises(NotFound) as exc_info:
        create(service, user, serviceId="nothing")
    assert exc_info.value.code == "SERVICE_NOT_FOUND"


def test_user_without_business(service, db_session):
    stranger = User(email="stranger@example.com", password_hash="x", email_verified=True)
    db_session.add(stranger)
    db_session.commit()

    with pytest.raises(NotFound) as exc_info:
        create(service, stranger)
    assert exc_info.value.code == "BUSINESS_NOT_FOUND"


def test_price_snapshot_survives_service_price_change(service, user, business, db_session):
    appointment, _ = create(service, user)

    haircut = db_session.query(Service).filter(Service.external_id == "svc-cut").one()
    haircut.price = Decimal("150.00")
    db_session.commit()

    assert service.get_appointment(appointment.id, user).price == Decimal("100.00")


def test_update_moving_onto_taken_slot_is_rejected(service, user, business):
    create(service, user, startTime="10:00")
    other, _ = create(service, user, startTime="11:00")

    with pytest.raises(Conflict):
        service.update_appointment(other.id, AppointmentUpdate(startTime="10:15"), user)


def test_update_in_place_does_not_conflict_with_itself(service, user, business):
    appointment, _ = create(service, user, startTime="10:00")
    updated = service.update_appointment(appointment.id, AppointmentUpdate(startTime="10:10"), user)
    assert updated.start_time == "10:10"
    assert updated.end_time == "10:40"


def test_update_to_other_professional_checks_their_agenda(service, user, business):
    create(service, user, startTime="10:00", professionalId="prof-2")
    appointment, _ = create(service, user, startTime="10:00")

    with pytest.raises(Conflict):
        service.update_appointment(
            appointment.id, AppointmentUpdate(professionalId="prof-2"), user
        )


def test_update_service_rederives_duration_and_price(service, user, business):
    appointment, _ = create(service, user, startTime="10:00")
    updated = service.update_appointment(
        appointment.id, AppointmentUpdate(serviceId="svc-color"), user
    )

    assert updated.service.external_id == "svc-color"
    assert updated.end_time == "11:00"
    assert updated.duration == 60
    assert updated.price == Decimal("50.00")


def test_update_client_contact_fields(service, user, business):
    appointment, _ = create(service, user)
    updated = service.update_appointment(
        appointment.id,
        AppointmentUpdate(clientPhone="555-7777", notes="Bring photos"),
        user,
    )
    assert updated.client.phone == "555-7777"
    assert updated.notes == "Bring photos"


def test_cancel_stamps_reason_and_time(service, user, business, clock):
    appointment, _ = create(service, user)
    cancelled = service.cancel_appointment(
        appointment.id, CancelAppointmentRequest(reason="Client called"), user
    )

    assert cancelled.status == AppointmentStatus.CANCELLED
    assert cancelled.cancelled_reason == "Client called"
    assert cancelled.cancelled_at is not None


def test_complete_stamps_time_and_is_terminal(service, user, business):
    appointment, _ = create(service, user)
    completed = service.complete_appointment(appointment.id, user)
    assert completed.status == AppointmentStatus.COMPLETED
    assert completed.completed_at is not None

    with pytest.raises(Conflict) as exc_info:
        service.cancel_appointment(appointment.id, None, user)
    assert exc_info.value.code == "INVALID_STATUS_TRANSITION"


def test_reactivating_cancelled_appointment_is_rejected(service, user, business):
    appointment, _ = create(service, user)
    service.cancel_appointment(appointment.id, None, user)

    with pytest.raises(Conflict):
        service.update_appointment(
            appointment.id, AppointmentUpdate(status=AppointmentStatus.CONFIRMED), user
        )


def test_delete_removes_the_appointment(service, user, business):
    appointment, _ = create(service, user)
    result = service.delete_appointment(appointment.id, user)

    assert result == {"success": True, "appointmentId": appointment.id}
    with pytest.raises(NotFound) as exc_info:
        service.get_appointment(appointment.id, user)
    assert exc_info.value.code == "APPOINTMENT_NOT_FOUND"


def test_appointments_are_tenant_scoped(service, user, business, db_session):
    appointment, _ = create(service, user)

    intruder = User(email="intruder@example.com", password_hash="x", email_verified=True)
    db_session.add(intruder)
    db_session.flush()
    db_session.add(Business(user_id=intruder.id, name="Other", admin_name="Other"))
    db_session.commit()

    with pytest.raises(NotFound):
        service.get_appointment(appointment.id, intruder)


def test_list_filters_sorts_and_pages(service, user, business):
    create(service, user, startTime="12:00")
    create(service, user, startTime="10:00", professionalId="prof-2")
    create(service, user, startTime="11:00", date="2024-03-12")
    cancelled, _ = create(service, user, startTime="09:00")
    service.cancel_appointment(cancelled.id, None, user)

    result = service.list_appointments(AppointmentFilters(), user)
    assert result["pagination"] == {"total": 4, "page": 1, "limit": 20, "totalPages": 1}
    assert [(a.date.isoformat(), a.start_time) for a in result["appointments"]] == [
        ("2024-03-11", "09:00"),
        ("2024-03-11", "10:00"),
        ("2024-03-11", "12:00"),
        ("2024-03-12", "11:00"),
    ]

    by_professional = service.list_appointments(AppointmentFilters(professionalId="prof-2"), user)
    assert by_professional["pagination"]["total"] == 1

    by_day = service.list_appointments(
        AppointmentFilters(startDate="2024-03-12", endDate="2024-03-12"), user
    )
    assert [a.start_time for a in by_day["appointments"]] == ["11:00"]

    active = service.list_appointments(
        AppointmentFilters(status=[AppointmentStatus.CONFIRMED]), user
    )
    assert active["pagination"]["total"] == 3

    paged = service.list_appointments(AppointmentFilters(page=2, limit=3), user)
    assert paged["pagination"]["totalPages"] == 2
    assert len(paged["appointments"]) == 1


def test_list_with_unknown_professional_is_empty(service, user, business):
    create(service, user)
    result = service.list_appointments(AppointmentFilters(professionalId="ghost"), user)
    assert result["appointments"] == []
    assert result["pagination"]["total"] == 0


def test_list_rejects_malformed_date_filter(service, user, business):
    with pytest.raises(ValidationFailed) as exc_info:
        service.list_appointments(AppointmentFilters(startDate="2024-13-01"), user)
    assert exc_info.value.code == "INVALID_DATE"
