"""
Availability resolver: calendar slots minus live bookings.

Read-only. The answer is a point-in-time snapshot; the reservation
service re-checks the slot when the booking is actually submitted.
"""

import logging
from datetime import timedelta

from sqlalchemy.orm import sessionmaker

from detailing.database import storage_guard, transaction
from detailing.errors import ValidationError
from detailing.scheduling.calendar_policy import (
    generate_slots,
    is_valid_date_format,
    parse_date,
)
from detailing.schemas.booking_schema import AvailabilityResult
from detailing.tools.bookings import BookingRepository
from detailing.utils import clean_text

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Answers "which slots are still open on this date?"."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def check_availability(self, date: str) -> AvailabilityResult:
        date = clean_text(date)
        if not date or not is_valid_date_format(date):
            raise ValidationError("Invalid date. Use YYYY-MM-DD", code="invalid_date")

        all_slots = generate_slots(date)
        if not all_slots:
            return AvailabilityResult(
                date=date, slots=[], closed=True, message=f"Closed on {date}."
            )

        with storage_guard("fetch availability"), transaction(self._session_factory) as session:
            booked = BookingRepository.live_slots_for_date(session, date)

        available = [slot for slot in all_slots if slot not in booked]
        logger.debug("Availability for %s: %d of %d open", date, len(available), len(all_slots))
        if available:
            message = f"{len(available)} time slots available on {date}."
        else:
            message = f"No slots available on {date}."
        return AvailabilityResult(date=date, slots=available, closed=False, message=message)

    def find_next_available(self, start_date: str, days: int = 14) -> list[AvailabilityResult]:
        """Open days with at least one free slot, scanning forward from ``start_date``."""
        start_date = clean_text(start_date)
        first = parse_date(start_date) if is_valid_date_format(start_date) else None
        if first is None:
            raise ValidationError("Invalid date. Use YYYY-MM-DD", code="invalid_date")

        results = []
        for offset in range(days):
            result = self.check_availability((first + timedelta(days=offset)).isoformat())
            if result.slots:
                results.append(result)
        return results
