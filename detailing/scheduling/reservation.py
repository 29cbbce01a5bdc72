"""
Booking reservation service: the only code path that creates bookings.

Validation runs in a fixed order so callers always get the first problem
with their request:

    1. missing name / email / date / time slot
    2. malformed email
    3. date not in YYYY-MM-DD shape
    4. time slot not generated for that date (closed day or out of hours)
    5. unknown or inactive catalog service (only when service_id is given)
    6. slot already held by a live booking -> ConflictError

The occupancy check and the insert share one transaction and run under a
lock striped by date; the partial unique index on (date, time_slot) catches any
writer outside this process.

A booking always holds exactly one slot regardless of the service's
duration.
"""

import threading
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from detailing.database import storage_guard, transaction
from detailing.errors import ConflictError, NotFoundError, StorageError, ValidationError
from detailing.logging_context import get_request_logger
from detailing.scheduling.calendar_policy import generate_slots, is_valid_date_format
from detailing.scheduling.lifecycle import BookingLifecycle, BookingStatus
from detailing.schemas.booking_schema import BookingCreated, BookingRecord, BookingRequest
from detailing.tools.bookings import BookingRepository
from detailing.tools.catalog import CatalogRepository
from detailing.utils import clean_text, is_valid_email, normalize_phone

logger = get_request_logger(__name__)

REQUIRED_FIELDS = ("name", "email", "date", "time_slot")


DATE_LOCK_STRIPES = 64


class _DateLocks:
    """Fixed set of locks striped by date; a date always maps to the same lock."""

    def __init__(self, stripes: int = DATE_LOCK_STRIPES) -> None:
        self._locks = tuple(threading.Lock() for _ in range(stripes))

    def for_date(self, date: str) -> threading.Lock:
        return self._locks[hash(date) % len(self._locks)]

    def __len__(self) -> int:
        return len(self._locks)


class BookingReservationService:
    """Validates booking requests and commits them without double-booking."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._locks = _DateLocks()

    # ------------------------------------------------------------------ #
    # Reservation
    # ------------------------------------------------------------------ #

    def reserve(self, request: BookingRequest) -> BookingCreated:
        """Create a pending booking or raise the first applicable error."""
        fields = {
            "name": clean_text(request.name),
            "email": clean_text(request.email),
            "date": clean_text(request.date),
            "time_slot": clean_text(request.time_slot),
        }
        missing = [name for name in REQUIRED_FIELDS if not fields[name]]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}. "
                "name, email, date and time_slot are required",
                code="missing_required_fields",
                details={"missing": missing},
            )

        if not is_valid_email(fields["email"]):
            raise ValidationError(
                "Please provide a valid email address", code="invalid_email"
            )

        date, time_slot = fields["date"], fields["time_slot"]
        if not is_valid_date_format(date):
            raise ValidationError("Invalid date. Use YYYY-MM-DD", code="invalid_date")

        if time_slot not in generate_slots(date):
            raise ValidationError(
                "Invalid time slot: outside business hours or closed",
                code="invalid_time_slot",
                details={"date": date, "time_slot": time_slot},
            )

        phone = clean_text(request.phone)
        row_fields = {
            "customer_name": fields["name"],
            "customer_email": fields["email"],
            "customer_phone": normalize_phone(phone) if phone else None,
            "service_id": request.service_id,
            "service_label": clean_text(request.service_label),
            "date": date,
            "time_slot": time_slot,
            "notes": clean_text(request.notes),
        }

        with self._locks.for_date(date):
            booking_id = self._insert(row_fields)

        logger.info("Booking created: %s for %s on %s at %s",
                    booking_id, fields["email"], date, time_slot)
        return BookingCreated(booking_id=booking_id, date=date, time_slot=time_slot)

    def _insert(self, row_fields: dict) -> int:
        date, time_slot = row_fields["date"], row_fields["time_slot"]
        try:
            with transaction(self._session_factory) as session:
                if row_fields["service_id"] is not None:
                    service = CatalogRepository.get_active_service(session, row_fields["service_id"])
                    if service is None:
                        raise NotFoundError(
                            "No active service found with the given ID",
                            code="service_not_found",
                            details={"service_id": row_fields["service_id"]},
                        )
                    if not row_fields["service_label"]:
                        row_fields["service_label"] = service.name
                booking = BookingRepository.insert_if_free(session, **row_fields)
                return booking.id
        except ConflictError:
            logger.info("Slot already booked: %s %s", date, time_slot)
            raise
        except IntegrityError as exc:
            # Lost the race to a writer that committed between check and insert.
            logger.warning("Concurrent reservation rejected for %s %s", date, time_slot)
            raise ConflictError(
                "Slot already booked",
                code="slot_already_booked",
                details={"date": date, "time_slot": time_slot},
            ) from exc
        except SQLAlchemyError as exc:
            logger.exception("Failed to create booking for %s %s", date, time_slot)
            raise StorageError("Failed to create booking", internal_detail=str(exc)) from exc

    # ------------------------------------------------------------------ #
    # Admin actions and lookups
    # ------------------------------------------------------------------ #

    def update_status(self, booking_id: int, status: str) -> BookingRecord:
        """Apply an admin status change through the lifecycle table."""
        try:
            target = BookingStatus(status)
        except ValueError:
            raise ValidationError(
                f"Unknown booking status {status!r}",
                code="invalid_status",
                details={"allowed": [s.value for s in BookingStatus]},
            ) from None

        with storage_guard("update booking status"), transaction(self._session_factory) as session:
            booking = BookingRepository.get(session, booking_id)
            if booking is None:
                raise _booking_not_found(booking_id)
            lifecycle = BookingLifecycle(BookingStatus(booking.status))
            booking.status = lifecycle.transition(target).value
            session.flush()
            record = BookingRecord.model_validate(booking)

        logger.info("Booking %s is now %s", booking_id, record.status)
        return record

    def confirm(self, booking_id: int) -> BookingRecord:
        return self.update_status(booking_id, BookingStatus.CONFIRMED.value)

    def cancel(self, booking_id: int) -> BookingRecord:
        return self.update_status(booking_id, BookingStatus.CANCELLED.value)

    def get_booking(self, booking_id: int) -> BookingRecord:
        with storage_guard("fetch booking"), transaction(self._session_factory) as session:
            booking = BookingRepository.get(session, booking_id)
            if booking is None:
                raise _booking_not_found(booking_id)
            return BookingRecord.model_validate(booking)

    def list_bookings(
        self, date: Optional[str] = None, status: Optional[str] = None
    ) -> list[BookingRecord]:
        with storage_guard("fetch bookings"), transaction(self._session_factory) as session:
            rows = BookingRepository.list_bookings(session, date=date, status=status)
            return [BookingRecord.model_validate(row) for row in rows]


def _booking_not_found(booking_id: int) -> NotFoundError:
    return NotFoundError(
        "No booking found with the given ID",
        code="booking_not_found",
        details={"booking_id": booking_id},
    )
