from detailing.scheduling.availability import AvailabilityResolver
from detailing.scheduling.calendar_policy import generate_slots, is_valid_date_format
from detailing.scheduling.lifecycle import BookingLifecycle, BookingStatus
from detailing.scheduling.reservation import BookingReservationService

__all__ = [
    "generate_slots",
    "is_valid_date_format",
    "AvailabilityResolver",
    "BookingReservationService",
    "BookingLifecycle",
    "BookingStatus",
]
