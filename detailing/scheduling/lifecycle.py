"""
Booking status lifecycle.

Bookings are created ``pending`` by the reservation service and moved to
``confirmed`` or ``cancelled`` by an admin action. Rows are never deleted;
cancelling is how a slot is released. ``cancelled`` is terminal.

Usage:
    lifecycle = BookingLifecycle(BookingStatus.PENDING)
    lifecycle.transition(BookingStatus.CONFIRMED)
    assert lifecycle.current_status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from detailing.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """All statuses a booking can hold."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


LIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


@dataclass(frozen=True)
class Transition:
    """A single valid status change."""
    from_status: BookingStatus
    to_status: BookingStatus


class BookingLifecycle:
    """
    Explicit transition table for booking status changes.

    Anything not listed is rejected with the set of statuses reachable
    from the current one.
    """

    TRANSITIONS: list[Transition] = [
        Transition(BookingStatus.PENDING, BookingStatus.CONFIRMED),
        Transition(BookingStatus.PENDING, BookingStatus.CANCELLED),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    ]

    def __init__(self, status: BookingStatus = BookingStatus.PENDING) -> None:
        self._current_status = BookingStatus(status)

    @property
    def current_status(self) -> BookingStatus:
        return self._current_status

    def transition(self, target: BookingStatus) -> BookingStatus:
        """
        Move to ``target``.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable.
        """
        target = BookingStatus(target)
        for t in self.TRANSITIONS:
            if t.from_status == self._current_status and t.to_status == target:
                logger.debug("Booking status: %s -> %s", self._current_status.value, target.value)
                self._current_status = target
                return self._current_status

        allowed = [s.value for s in self.get_allowed_targets()]
        raise InvalidTransitionError(
            f"Cannot change booking status from '{self._current_status.value}' "
            f"to '{target.value}'. Allowed: {allowed}",
            code="invalid_status_transition",
            details={"from": self._current_status.value, "to": target.value},
        )

    def get_allowed_targets(self) -> list[BookingStatus]:
        """Statuses reachable from the current one."""
        return [t.to_status for t in self.TRANSITIONS if t.from_status == self._current_status]

    def is_live(self) -> bool:
        """Whether a booking in this status occupies its slot."""
        return self._current_status in LIVE_STATUSES

    def is_terminal(self) -> bool:
        return not self.get_allowed_targets()
