"""Booking and availability data models."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class BookingRequest(BaseModel):
    """Raw booking request as submitted by a client.

    Every field is optional here so that missing values surface as a
    domain ValidationError from the reservation service rather than a
    schema error.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    service_id: Optional[int] = None
    service_label: Optional[str] = None
    date: Optional[str] = None
    time_slot: Optional[str] = None
    notes: Optional[str] = None


class BookingRecord(BaseModel):
    """Stored booking."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    service_id: Optional[int] = None
    service_label: Optional[str] = None
    date: str
    time_slot: str
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingCreated(BaseModel):
    """Result of a successful reservation."""
    success: bool = True
    booking_id: int
    date: str
    time_slot: str
    status: str = "pending"
    message: str = "Booking created"


class AvailabilityResult(BaseModel):
    """Open slots for a date.

    ``closed`` distinguishes a non-business day from a fully booked one;
    both come back with an empty ``slots`` list.
    """
    date: str
    slots: list[str] = Field(default_factory=list)
    closed: bool = False
    message: str = ""
