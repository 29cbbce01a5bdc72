"""
Booking store.

Session-level queries used by the availability resolver and the
reservation service. Only the reservation service may call
``insert_if_free``; everything else here is a read or a status change.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from detailing.errors import ConflictError
from detailing.models import Booking

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


class BookingRepository:
    """Queries over the bookings table."""

    @staticmethod
    def live_slots_for_date(session: Session, date: str) -> set[str]:
        """Time slots on ``date`` held by a booking that is not cancelled."""
        return set(
            session.scalars(
                select(Booking.time_slot).where(Booking.date == date, Booking.status != CANCELLED)
            ).all()
        )

    @staticmethod
    def find_live_booking(session: Session, date: str, time_slot: str) -> Optional[Booking]:
        return session.scalar(
            select(Booking).where(
                Booking.date == date,
                Booking.time_slot == time_slot,
                Booking.status != CANCELLED,
            )
        )

    @staticmethod
    def insert_if_free(session: Session, **fields) -> Booking:
        """Insert a pending booking unless its (date, slot) is already live.

        Raises ConflictError when the check finds an occupant. A concurrent
        writer that slips past the check is stopped by the partial unique
        index and surfaces as IntegrityError on flush.
        """
        date, time_slot = fields["date"], fields["time_slot"]
        if BookingRepository.find_live_booking(session, date, time_slot) is not None:
            raise ConflictError(
                "Slot already booked",
                code="slot_already_booked",
                details={"date": date, "time_slot": time_slot},
            )
        booking = Booking(status="pending", **fields)
        session.add(booking)
        session.flush()
        return booking

    @staticmethod
    def get(session: Session, booking_id: int) -> Optional[Booking]:
        return session.get(Booking, booking_id)

    @staticmethod
    def list_bookings(
        session: Session, date: Optional[str] = None, status: Optional[str] = None
    ) -> list[Booking]:
        query = select(Booking)
        if date is not None:
            query = query.where(Booking.date == date)
        if status is not None:
            query = query.where(Booking.status == status)
        return list(
            session.scalars(query.order_by(Booking.date, Booking.time_slot, Booking.id)).all()
        )
