"""Price quote models. Quotes are derived on every request and never stored."""

from decimal import Decimal

from pydantic import BaseModel, Field

from detailing.schemas.catalog_schema import ServiceInfo


class ServiceQuote(BaseModel):
    """Vehicle-adjusted price for a single service."""

    service_id: int
    vehicle_type: str
    multiplier: Decimal
    base_price: Decimal
    final_price: Decimal


class PackagePrice(BaseModel):
    """Package figures after the vehicle multiplier and discount."""

    base_price: Decimal
    adjusted_price: Decimal
    final_price: Decimal
    discount_percentage: Decimal
    savings: Decimal


class IndividualPricing(BaseModel):
    """Comparison against booking the member services one by one."""

    total_price: Decimal
    final_price: Decimal
    savings: Decimal


class PackageQuote(BaseModel):
    """Vehicle-adjusted quote for a service package."""

    package_id: int
    vehicle_type: str
    multiplier: Decimal
    package_price: PackagePrice
    individual_pricing: IndividualPricing


class PackageSummary(BaseModel):
    """Vehicle-independent package figures for catalog listings."""

    package_id: int
    name: str
    base_price: Decimal
    discount_percentage: Decimal
    final_price: Decimal
    savings: Decimal
    total_individual_price: Decimal
    individual_savings: Decimal
    included_services: list[ServiceInfo] = Field(default_factory=list)
