"""Tests for booking reservation, admin status changes and double-booking protection."""

import threading

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from detailing.database import transaction
from detailing.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from detailing.models import Booking, Service
from detailing.scheduling import BookingReservationService
from detailing.scheduling.reservation import DATE_LOCK_STRIPES, _DateLocks
from detailing.schemas.booking_schema import BookingRequest
from detailing.tools.bookings import BookingRepository
from tests.conftest import (
    MONDAY,
    PREMIUM_DETAILING,
    SUNDAY,
    make_request,
)


class TestReserveSuccess:
    def test_returns_pending_booking(self, reservations):
        created = reservations.reserve(make_request())
        assert created.success is True
        assert created.status == "pending"
        assert created.date == MONDAY
        assert created.time_slot == "10:00"
        assert created.booking_id > 0

    def test_stored_fields(self, reservations):
        created = reservations.reserve(make_request(notes="  Dog hair in the back  "))
        booking = reservations.get_booking(created.booking_id)
        assert booking.customer_name == "Jane Doe"
        assert booking.customer_email == "jane@example.com"
        assert booking.customer_phone == "+60123456789"
        assert booking.notes == "Dog hair in the back"
        assert booking.status == "pending"

    def test_surrounding_whitespace_trimmed(self, reservations):
        created = reservations.reserve(
            make_request(name="  Jane Doe ", date=f" {MONDAY} ", time_slot=" 10:00 ")
        )
        booking = reservations.get_booking(created.booking_id)
        assert booking.customer_name == "Jane Doe"
        assert booking.date == MONDAY
        assert booking.time_slot == "10:00"

    def test_phone_is_optional(self, reservations):
        created = reservations.reserve(make_request(phone=None))
        assert reservations.get_booking(created.booking_id).customer_phone is None

    def test_free_text_service_label(self, reservations):
        created = reservations.reserve(make_request(service_label="Engine bay clean"))
        booking = reservations.get_booking(created.booking_id)
        assert booking.service_label == "Engine bay clean"
        assert booking.service_id is None

    def test_catalog_service_label_defaults_to_name(self, reservations):
        created = reservations.reserve(make_request(service_id=PREMIUM_DETAILING))
        booking = reservations.get_booking(created.booking_id)
        assert booking.service_id == PREMIUM_DETAILING
        assert booking.service_label == "Premium Detailing"

    def test_explicit_label_kept_with_service_id(self, reservations):
        created = reservations.reserve(
            make_request(service_id=PREMIUM_DETAILING, service_label="Premium + pet hair")
        )
        assert reservations.get_booking(created.booking_id).service_label == "Premium + pet hair"

    def test_adjacent_slots_do_not_collide(self, reservations):
        reservations.reserve(make_request(time_slot="10:00"))
        created = reservations.reserve(make_request(time_slot="11:00"))
        assert created.time_slot == "11:00"


class TestReserveValidation:
    def test_all_fields_missing(self, reservations):
        with pytest.raises(ValidationError, match="Missing required fields") as exc_info:
            reservations.reserve(BookingRequest())
        assert exc_info.value.code == "missing_required_fields"
        assert exc_info.value.details["missing"] == ["name", "email", "date", "time_slot"]

    def test_whitespace_only_counts_as_missing(self, reservations):
        with pytest.raises(ValidationError) as exc_info:
            reservations.reserve(make_request(name="   "))
        assert exc_info.value.details["missing"] == ["name"]

    def test_missing_checked_before_email(self, reservations):
        with pytest.raises(ValidationError) as exc_info:
            reservations.reserve(make_request(email="not-an-email", time_slot=None))
        assert exc_info.value.code == "missing_required_fields"

    @pytest.mark.parametrize("email", ["jane", "jane@example", "jane doe@example.com", "@example.com"])
    def test_malformed_email(self, reservations, email):
        with pytest.raises(ValidationError, match="valid email") as exc_info:
            reservations.reserve(make_request(email=email))
        assert exc_info.value.code == "invalid_email"

    def test_email_checked_before_date(self, reservations):
        with pytest.raises(ValidationError) as exc_info:
            reservations.reserve(make_request(email="jane", date="18/03/2024"))
        assert exc_info.value.code == "invalid_email"

    @pytest.mark.parametrize("value", ["18/03/2024", "2024-3-18", "tomorrow"])
    def test_malformed_date(self, reservations, value):
        with pytest.raises(ValidationError, match="Invalid date") as exc_info:
            reservations.reserve(make_request(date=value))
        assert exc_info.value.code == "invalid_date"

    @pytest.mark.parametrize("slot", ["08:00", "18:00", "9:00", "10:30", "noon"])
    def test_slot_outside_generated_hours(self, reservations, slot):
        with pytest.raises(ValidationError, match="Invalid time slot") as exc_info:
            reservations.reserve(make_request(time_slot=slot))
        assert exc_info.value.code == "invalid_time_slot"

    def test_sunday_rejected(self, reservations):
        with pytest.raises(ValidationError) as exc_info:
            reservations.reserve(make_request(date=SUNDAY))
        assert exc_info.value.code == "invalid_time_slot"

    def test_impossible_date_rejected(self, reservations):
        with pytest.raises(ValidationError) as exc_info:
            reservations.reserve(make_request(date="2024-02-30"))
        assert exc_info.value.code == "invalid_time_slot"

    def test_rejected_request_writes_nothing(self, reservations):
        with pytest.raises(ValidationError):
            reservations.reserve(make_request(time_slot="18:00"))
        assert reservations.list_bookings() == []


class TestReserveServiceReference:
    def test_unknown_service(self, reservations):
        with pytest.raises(NotFoundError) as exc_info:
            reservations.reserve(make_request(service_id=999))
        assert exc_info.value.code == "service_not_found"
        assert reservations.list_bookings() == []

    def test_inactive_service(self, reservations, session_factory):
        with transaction(session_factory) as session:
            session.execute(
                update(Service).where(Service.id == PREMIUM_DETAILING).values(is_active=False)
            )
        with pytest.raises(NotFoundError):
            reservations.reserve(make_request(service_id=PREMIUM_DETAILING))

    def test_slot_validated_before_service_lookup(self, reservations):
        with pytest.raises(ValidationError):
            reservations.reserve(make_request(service_id=999, time_slot="08:00"))

    def test_service_lookup_before_conflict(self, reservations):
        reservations.reserve(make_request())
        with pytest.raises(NotFoundError):
            reservations.reserve(make_request(service_id=999))


class TestDoubleBooking:
    def test_second_request_for_same_slot_conflicts(self, reservations):
        reservations.reserve(make_request())
        with pytest.raises(ConflictError, match="Slot already booked") as exc_info:
            reservations.reserve(make_request(name="John Roe", email="john@example.com"))
        assert exc_info.value.code == "slot_already_booked"
        assert exc_info.value.status == 409

    def test_conflict_leaves_single_booking(self, reservations):
        reservations.reserve(make_request())
        with pytest.raises(ConflictError):
            reservations.reserve(make_request(email="john@example.com"))
        assert len(reservations.list_bookings(date=MONDAY)) == 1

    def test_confirmed_booking_blocks_slot(self, reservations):
        created = reservations.reserve(make_request())
        reservations.confirm(created.booking_id)
        with pytest.raises(ConflictError):
            reservations.reserve(make_request(email="john@example.com"))

    def test_cancelled_slot_can_be_rebooked(self, reservations):
        first = reservations.reserve(make_request())
        reservations.cancel(first.booking_id)
        second = reservations.reserve(make_request(email="john@example.com"))
        assert second.booking_id != first.booking_id
        statuses = sorted(b.status for b in reservations.list_bookings(date=MONDAY))
        assert statuses == ["cancelled", "pending"]

    def test_storage_index_rejects_second_live_row(self, reservations, session_factory):
        reservations.reserve(make_request())
        with pytest.raises(IntegrityError):
            with transaction(session_factory) as session:
                session.add(
                    Booking(
                        customer_name="Direct Writer",
                        customer_email="direct@example.com",
                        date=MONDAY,
                        time_slot="10:00",
                        status="confirmed",
                    )
                )
                session.flush()

    def test_storage_index_ignores_cancelled_rows(self, session_factory):
        with transaction(session_factory) as session:
            for _ in range(2):
                session.add(
                    Booking(
                        customer_name="Old",
                        customer_email="old@example.com",
                        date=MONDAY,
                        time_slot="10:00",
                        status="cancelled",
                    )
                )
        with transaction(session_factory) as session:
            assert len(BookingRepository.list_bookings(session, date=MONDAY)) == 2


class TestConcurrentReservations:
    def _race(self, services, request_count):
        barrier = threading.Barrier(request_count)
        outcomes = []
        lock = threading.Lock()

        def attempt(index):
            service = services[index % len(services)]
            barrier.wait()
            try:
                service.reserve(make_request(email=f"racer{index}@example.com"))
                result = "ok"
            except ConflictError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(request_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        return outcomes

    def test_exactly_one_winner(self, file_session_factory):
        service = BookingReservationService(file_session_factory)
        outcomes = self._race([service], 8)
        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == 7
        live = [b for b in service.list_bookings(date=MONDAY) if b.status != "cancelled"]
        assert len(live) == 1

    def test_independent_service_instances(self, file_session_factory):
        services = [
            BookingReservationService(file_session_factory),
            BookingReservationService(file_session_factory),
        ]
        outcomes = self._race(services, 2)
        assert sorted(outcomes) == ["conflict", "ok"]
        assert len(services[0].list_bookings(date=MONDAY)) == 1


class TestStorageFailure:
    def test_driver_error_becomes_storage_error(self, reservations, monkeypatch):
        def broken_insert(session, **fields):
            raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

        monkeypatch.setattr(BookingRepository, "insert_if_free", staticmethod(broken_insert))

        with pytest.raises(StorageError) as exc_info:
            reservations.reserve(make_request())
        payload = exc_info.value.to_dict()
        assert payload["message"] == "Database error"
        assert "details" not in payload
        assert "disk I/O error" in exc_info.value.to_dict(expose_internal=True)["details"]["internal"]


class TestStatusChanges:
    def test_confirm_pending(self, reservations):
        created = reservations.reserve(make_request())
        assert reservations.confirm(created.booking_id).status == "confirmed"

    def test_cancel_pending(self, reservations):
        created = reservations.reserve(make_request())
        assert reservations.cancel(created.booking_id).status == "cancelled"

    def test_cancel_confirmed(self, reservations):
        created = reservations.reserve(make_request())
        reservations.confirm(created.booking_id)
        assert reservations.cancel(created.booking_id).status == "cancelled"

    def test_confirm_twice_rejected(self, reservations):
        created = reservations.reserve(make_request())
        reservations.confirm(created.booking_id)
        with pytest.raises(InvalidTransitionError):
            reservations.confirm(created.booking_id)

    def test_cancelled_is_terminal(self, reservations):
        created = reservations.reserve(make_request())
        reservations.cancel(created.booking_id)
        with pytest.raises(InvalidTransitionError):
            reservations.confirm(created.booking_id)
        with pytest.raises(InvalidTransitionError):
            reservations.update_status(created.booking_id, "pending")
        assert reservations.get_booking(created.booking_id).status == "cancelled"

    def test_unknown_status(self, reservations):
        created = reservations.reserve(make_request())
        with pytest.raises(ValidationError) as exc_info:
            reservations.update_status(created.booking_id, "done")
        assert exc_info.value.code == "invalid_status"

    def test_unknown_booking(self, reservations):
        with pytest.raises(NotFoundError) as exc_info:
            reservations.confirm(999)
        assert exc_info.value.code == "booking_not_found"

    def test_get_unknown_booking(self, reservations):
        with pytest.raises(NotFoundError):
            reservations.get_booking(999)


class TestListBookings:
    def test_ordered_by_slot(self, reservations):
        reservations.reserve(make_request(time_slot="15:00"))
        reservations.reserve(make_request(time_slot="09:00"))
        slots = [b.time_slot for b in reservations.list_bookings(date=MONDAY)]
        assert slots == ["09:00", "15:00"]

    def test_filter_by_status(self, reservations):
        first = reservations.reserve(make_request(time_slot="09:00"))
        reservations.reserve(make_request(time_slot="10:00"))
        reservations.confirm(first.booking_id)
        confirmed = reservations.list_bookings(status="confirmed")
        assert [b.id for b in confirmed] == [first.booking_id]


class TestDateLocks:
    def test_same_date_same_lock(self):
        locks = _DateLocks()
        assert locks.for_date(MONDAY) is locks.for_date(MONDAY)

    def test_lock_count_stays_fixed(self):
        locks = _DateLocks()
        for offset in range(500):
            locks.for_date(f"2030-{offset % 12 + 1:02d}-{offset:04d}")
        assert len(locks) == DATE_LOCK_STRIPES

    def test_service_reuses_lock_across_many_dates(self, reservations):
        for day in range(18, 23):
            reservations.reserve(make_request(date=f"2024-03-{day}", time_slot="10:00"))
        assert len(reservations._locks) == DATE_LOCK_STRIPES
