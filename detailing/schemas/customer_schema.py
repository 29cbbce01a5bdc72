"""Customer and loyalty data models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LoyaltyTier(str, Enum):
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"


class TransactionType(str, Enum):
    EARN = "earn"
    REDEEM = "redeem"
    ADJUSTMENT = "adjustment"


class CustomerProfile(BaseModel):
    """Create-or-update payload keyed by email."""
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_color: Optional[str] = None


class CustomerRecord(BaseModel):
    """Customer row including loyalty state."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[int] = None
    vehicle_color: Optional[str] = None
    loyalty_points: int = 0
    loyalty_tier: LoyaltyTier = LoyaltyTier.BRONZE
    total_spent: Decimal = Decimal("0")
    last_service_date: Optional[str] = None


class UpsertResult(BaseModel):
    customer_id: int
    is_new: bool


class LoyaltyTransactionRecord(BaseModel):
    """Immutable ledger entry."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    transaction_type: TransactionType
    points: int
    description: Optional[str] = None
    order_id: Optional[str] = None
    booking_id: Optional[int] = None
    created_at: Optional[datetime] = None


class TierResult(BaseModel):
    customer_id: int
    tier: LoyaltyTier
    loyalty_points: int
    total_spent: Decimal


class ServiceHistoryEntry(BaseModel):
    """A past booking joined to its catalog service, if any."""
    booking_id: int
    date: str
    time_slot: str
    status: str
    service_label: Optional[str] = None
    service_id: Optional[int] = None
    service_name: Optional[str] = None
    category: Optional[str] = None
    base_price: Optional[Decimal] = None
    notes: Optional[str] = None
