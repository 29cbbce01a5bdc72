"""
Customer records and the loyalty ledger tables.

``CustomerRepository`` holds the session-level statements. ``CustomerDirectory``
is the read/upsert collaborator used by the CLI and by order/booking
completion hooks outside this core.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, sessionmaker

from detailing.database import storage_guard, transaction
from detailing.errors import NotFoundError, ValidationError
from detailing.models import Booking, Customer, LoyaltyTransaction, Service
from detailing.schemas.customer_schema import (
    CustomerProfile,
    CustomerRecord,
    LoyaltyTransactionRecord,
    ServiceHistoryEntry,
    UpsertResult,
)
from detailing.utils import clean_text, normalize_phone

logger = logging.getLogger(__name__)


class CustomerRepository:
    """Statements over customers and loyalty_transactions."""

    @staticmethod
    def get(session: Session, customer_id: int) -> Optional[Customer]:
        return session.get(Customer, customer_id)

    @staticmethod
    def get_by_email(session: Session, email: str) -> Optional[Customer]:
        return session.scalar(select(Customer).where(Customer.email == email))

    @staticmethod
    def adjust_points(session: Session, customer_id: int, delta: int) -> int:
        """Add ``delta`` to the running balance in SQL. Returns rows affected."""
        result = session.execute(
            update(Customer)
            .where(Customer.id == customer_id)
            .values(loyalty_points=Customer.loyalty_points + delta)
        )
        return result.rowcount

    @staticmethod
    def insert_transaction(session: Session, **fields) -> LoyaltyTransaction:
        row = LoyaltyTransaction(**fields)
        session.add(row)
        session.flush()
        return row

    @staticmethod
    def add_spend(session: Session, customer_id: int, amount: Decimal, service_date: str) -> int:
        result = session.execute(
            update(Customer)
            .where(Customer.id == customer_id)
            .values(
                total_spent=Customer.total_spent + amount,
                last_service_date=service_date,
            )
        )
        return result.rowcount

    @staticmethod
    def set_tier(session: Session, customer_id: int, tier: str) -> int:
        result = session.execute(
            update(Customer).where(Customer.id == customer_id).values(loyalty_tier=tier)
        )
        return result.rowcount

    @staticmethod
    def list_transactions(session: Session, customer_id: int) -> list[LoyaltyTransaction]:
        return list(
            session.scalars(
                select(LoyaltyTransaction)
                .where(LoyaltyTransaction.customer_id == customer_id)
                .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc())
            ).all()
        )

    @staticmethod
    def service_history(session: Session, email: str) -> list[tuple[Booking, Optional[Service]]]:
        rows = session.execute(
            select(Booking, Service)
            .outerjoin(Service, Booking.service_id == Service.id)
            .where(Booking.customer_email == email)
            .order_by(Booking.date.desc(), Booking.time_slot.desc())
        ).all()
        return [(booking, service) for booking, service in rows]


class CustomerDirectory:
    """Customer lookups and create-or-update keyed by email."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def upsert(self, profile: CustomerProfile) -> UpsertResult:
        name = clean_text(profile.name)
        email = clean_text(profile.email)
        if not name or not email:
            raise ValidationError(
                "Name and email are required", code="missing_required_fields"
            )
        fields = {
            "name": name,
            "phone": normalize_phone(profile.phone) if clean_text(profile.phone) else None,
            "address": clean_text(profile.address),
            "vehicle_make": clean_text(profile.vehicle_make),
            "vehicle_model": clean_text(profile.vehicle_model),
            "vehicle_year": profile.vehicle_year,
            "vehicle_color": clean_text(profile.vehicle_color),
        }
        with storage_guard("save customer"), transaction(self._session_factory) as session:
            existing = CustomerRepository.get_by_email(session, email)
            if existing is not None:
                for key, value in fields.items():
                    setattr(existing, key, value)
                logger.info("Customer updated: %s", existing.id)
                return UpsertResult(customer_id=existing.id, is_new=False)

            customer = Customer(email=email, **fields)
            session.add(customer)
            session.flush()
            logger.info("New customer created: %s (%s)", customer.id, email)
            return UpsertResult(customer_id=customer.id, is_new=True)

    def get(self, customer_id: int) -> CustomerRecord:
        with storage_guard("fetch customer"), transaction(self._session_factory) as session:
            row = CustomerRepository.get(session, customer_id)
            if row is None:
                raise customer_not_found(customer_id)
            return CustomerRecord.model_validate(row)

    def get_by_email(self, email: str) -> CustomerRecord:
        with storage_guard("fetch customer"), transaction(self._session_factory) as session:
            row = CustomerRepository.get_by_email(session, email)
            if row is None:
                raise NotFoundError(
                    "No customer found with the given email",
                    code="customer_not_found",
                    details={"email": email},
                )
            return CustomerRecord.model_validate(row)

    def service_history(self, customer_id: int) -> list[ServiceHistoryEntry]:
        """Bookings made under the customer's email, newest first."""
        with storage_guard("fetch customer history"), transaction(self._session_factory) as session:
            customer = CustomerRepository.get(session, customer_id)
            if customer is None:
                raise customer_not_found(customer_id)
            return [
                ServiceHistoryEntry(
                    booking_id=booking.id,
                    date=booking.date,
                    time_slot=booking.time_slot,
                    status=booking.status,
                    service_label=booking.service_label,
                    service_id=booking.service_id,
                    service_name=service.name if service else None,
                    category=service.category if service else None,
                    base_price=service.base_price if service else None,
                    notes=booking.notes,
                )
                for booking, service in CustomerRepository.service_history(session, customer.email)
            ]

    def loyalty_transactions(self, customer_id: int) -> list[LoyaltyTransactionRecord]:
        with storage_guard("fetch loyalty transactions"), transaction(self._session_factory) as session:
            if CustomerRepository.get(session, customer_id) is None:
                raise customer_not_found(customer_id)
            rows = CustomerRepository.list_transactions(session, customer_id)
            return [LoyaltyTransactionRecord.model_validate(row) for row in rows]


def customer_not_found(customer_id: int) -> NotFoundError:
    return NotFoundError(
        "No customer found with the given ID",
        code="customer_not_found",
        details={"customer_id": customer_id},
    )
