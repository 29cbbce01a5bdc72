"""
Loyalty ledger: append-only point transactions and the derived tier.

Appending a transaction and moving the customer's running balance happen
in one database transaction; if either statement fails neither is kept.
Spend is tracked separately and does not re-evaluate the tier on its own;
call ``recompute_tier`` afterwards.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy.orm import Session, sessionmaker

from detailing.database import storage_guard, transaction
from detailing.errors import NotFoundError, ValidationError
from detailing.logging_context import get_request_logger
from detailing.loyalty.tiers import compute_tier
from detailing.schemas.customer_schema import (
    LoyaltyTransactionRecord,
    TierResult,
    TransactionType,
)
from detailing.tools.customers import CustomerRepository, customer_not_found
from detailing.utils import to_decimal

logger = get_request_logger(__name__)


class LoyaltyLedger:
    """Writes to the loyalty ledger and the customer's loyalty columns."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def append_transaction(
        self,
        customer_id: int,
        transaction_type: str,
        points_delta: int,
        description: Optional[str] = None,
        order_id: Optional[str] = None,
        booking_id: Optional[int] = None,
    ) -> LoyaltyTransactionRecord:
        """Record a signed point change and apply it to the balance atomically."""
        if isinstance(points_delta, bool) or not isinstance(points_delta, int) or points_delta == 0:
            raise ValidationError(
                "Points must be a non-zero integer",
                code="invalid_points",
                details={"points": points_delta},
            )
        if not transaction_type or not str(transaction_type).strip():
            raise ValidationError(
                "Points and transaction_type are required", code="missing_required_fields"
            )
        try:
            kind = TransactionType(str(transaction_type).strip())
        except ValueError:
            raise ValidationError(
                f"Unknown transaction type {transaction_type!r}",
                code="invalid_transaction_type",
                details={"allowed": [t.value for t in TransactionType]},
            ) from None

        with storage_guard("record loyalty transaction"), transaction(self._session_factory) as session:
            if CustomerRepository.adjust_points(session, customer_id, points_delta) == 0:
                raise customer_not_found(customer_id)
            row = self._insert_transaction(
                session,
                customer_id=customer_id,
                transaction_type=kind.value,
                points=points_delta,
                description=description,
                order_id=order_id,
                booking_id=booking_id,
            )
            record = LoyaltyTransactionRecord.model_validate(row)

        logger.info("Loyalty %s of %+d points for customer %s", kind.value, points_delta, customer_id)
        return record

    def _insert_transaction(self, session: Session, **fields):
        return CustomerRepository.insert_transaction(session, **fields)

    def recompute_tier(self, customer_id: int) -> TierResult:
        """Derive the tier from current points and spend and store it. Idempotent."""
        with storage_guard("update loyalty tier"), transaction(self._session_factory) as session:
            customer = CustomerRepository.get(session, customer_id)
            if customer is None:
                raise customer_not_found(customer_id)
            points = customer.loyalty_points or 0
            spent = to_decimal(customer.total_spent or 0)
            tier = compute_tier(points, spent)
            CustomerRepository.set_tier(session, customer_id, tier.value)

        logger.info("Customer %s tier is %s", customer_id, tier.value)
        return TierResult(customer_id=customer_id, tier=tier, loyalty_points=points, total_spent=spent)

    def add_spend(
        self, customer_id: int, amount: Union[Decimal, int, float, str]
    ) -> None:
        """Add to lifetime spend and stamp today as the last service date."""
        try:
            value = to_decimal(amount)
        except ValidationError:
            raise ValidationError(
                "Amount must be a valid number", code="invalid_amount"
            ) from None
        if not value.is_finite() or value <= 0:
            raise ValidationError(
                "Amount must be a positive number", code="invalid_amount",
                details={"amount": str(amount)},
            )

        with storage_guard("update spending"), transaction(self._session_factory) as session:
            updated = CustomerRepository.add_spend(
                session, customer_id, value, Date.today().isoformat()
            )
            if updated == 0:
                raise customer_not_found(customer_id)

        logger.info("Customer %s spend increased by %s", customer_id, value)

