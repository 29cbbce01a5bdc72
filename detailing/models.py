"""Relational tables backing the booking, catalog and loyalty core."""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from detailing.database import Base

BOOKING_STATUSES = ("pending", "confirmed", "cancelled")
LOYALTY_TIERS = ("Bronze", "Silver", "Gold")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    vehicle_types = Column(JSON, nullable=False, default=list)  # ["sedan", "suv", "truck"]
    requirements = Column(JSON, nullable=False, default=list)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name={self.name!r}, active={self.is_active})>"


class ServicePackage(Base):
    __tablename__ = "service_packages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    service_ids = Column(JSON, nullable=False, default=list)  # ordered member service ids
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    image_url = Column(String(500), nullable=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="check_package_discount_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<ServicePackage(id={self.id}, name={self.name!r}, discount={self.discount_percentage})>"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False, index=True)
    customer_phone = Column(String(50), nullable=True)
    # Nullable: walk-in and manual bookings have no catalog entry.
    service_id = Column(Integer, ForeignKey("services.id"), nullable=True)
    # Snapshot of the service name at booking time.
    service_label = Column(String(255), nullable=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    time_slot = Column(String(5), nullable=False)  # HH:MM
    status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')", name="check_booking_status"
        ),
        Index("ix_bookings_date_status", "date", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, date={self.date}, slot={self.time_slot}, status={self.status})>"


# At most one live booking per (date, slot).
Index(
    "uq_bookings_live_slot",
    Booking.date,
    Booking.time_slot,
    unique=True,
    sqlite_where=(Booking.status != "cancelled"),
    postgresql_where=(Booking.status != "cancelled"),
)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    vehicle_make = Column(String(100), nullable=True)
    vehicle_model = Column(String(100), nullable=True)
    vehicle_year = Column(Integer, nullable=True)
    vehicle_color = Column(String(50), nullable=True)
    loyalty_points = Column(Integer, nullable=False, default=0)
    loyalty_tier = Column(String(20), nullable=False, default="Bronze")
    total_spent = Column(Numeric(10, 2), nullable=False, default=0)
    last_service_date = Column(String(10), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email!r}, tier={self.loyalty_tier})>"


class LoyaltyTransaction(Base):
    """Append-only ledger row. Never updated or deleted."""

    __tablename__ = "loyalty_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    transaction_type = Column(String(20), nullable=False)  # earn, redeem, adjustment
    points = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    order_id = Column(String(64), nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (CheckConstraint("points <> 0", name="check_loyalty_points_nonzero"),)

    def __repr__(self) -> str:
        return f"<LoyaltyTransaction(id={self.id}, customer={self.customer_id}, points={self.points})>"
