"""Catalog read models consumed by pricing and reservations."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceInfo(BaseModel):
    """Pricing-relevant view of an active service."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    base_price: Decimal
    duration_minutes: int
    category: str
    vehicle_types: list[str] = Field(default_factory=list)
    requirements: list[str] = Field(default_factory=list)
    is_active: bool = True


class PackageInfo(BaseModel):
    """Pricing-relevant view of an active service package."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    base_price: Decimal
    duration_minutes: int
    service_ids: list[int] = Field(default_factory=list)
    discount_percentage: Decimal = Decimal("0")
    is_popular: bool = False
    is_active: bool = True
