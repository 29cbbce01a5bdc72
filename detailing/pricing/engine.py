"""
Vehicle-aware pricing for services and service packages.

All money is ``Decimal`` and every user-facing figure is rounded half-up
to the cent at the point it is produced. Intermediate products are kept
exact, so e.g. package savings are computed from unrounded operands and
rounded once.

Single-service quotes reject a vehicle type the service does not list.
Package quotes never reject on vehicle type: member services that do not
support it simply contribute nothing to the individual-price comparison.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Protocol, Union

from detailing.errors import ValidationError
from detailing.schemas.pricing_schema import (
    IndividualPricing,
    PackagePrice,
    PackageQuote,
    PackageSummary,
    ServiceQuote,
)
from detailing.tools.catalog import CatalogReader
from detailing.utils import to_decimal

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

VEHICLE_MULTIPLIERS: dict[str, Decimal] = {
    "sedan": Decimal("1.0"),
    "suv": Decimal("1.3"),
    "truck": Decimal("1.5"),
}
DEFAULT_MULTIPLIER = Decimal("1.0")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class PricedService(Protocol):
    base_price: Decimal
    vehicle_types: list[str]


def round2(value: Number) -> Decimal:
    """Round half-up to the cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def get_vehicle_multiplier(vehicle_type: str) -> Decimal:
    """Fixed multiplier per vehicle class; anything unknown prices as a sedan."""
    return VEHICLE_MULTIPLIERS.get(vehicle_type, DEFAULT_MULTIPLIER)


def calculate_service_price(base_price: Number, vehicle_type: str) -> Decimal:
    return round2(to_decimal(base_price) * get_vehicle_multiplier(vehicle_type))


def discount_factor(discount_percentage: Number) -> Decimal:
    discount = to_decimal(discount_percentage)
    if not Decimal("0") <= discount <= HUNDRED:
        raise ValidationError(
            "Discount percentage must be between 0 and 100",
            code="invalid_discount",
            details={"discount_percentage": str(discount)},
        )
    return 1 - discount / HUNDRED


def calculate_package_price(
    base_price: Number,
    discount_percentage: Number,
    members: Iterable[PricedService],
    vehicle_type: str,
) -> tuple[PackagePrice, IndividualPricing]:
    """Package price after multiplier and discount, plus the individual comparison."""
    multiplier = get_vehicle_multiplier(vehicle_type)
    base = to_decimal(base_price)
    factor = discount_factor(discount_percentage)

    adjusted = base * multiplier
    final = adjusted * factor
    individual_total = sum(
        (to_decimal(m.base_price) * multiplier for m in members if vehicle_type in m.vehicle_types),
        Decimal("0"),
    )

    package_price = PackagePrice(
        base_price=round2(base),
        adjusted_price=round2(adjusted),
        final_price=round2(final),
        discount_percentage=to_decimal(discount_percentage),
        savings=round2(adjusted - final),
    )
    individual = IndividualPricing(
        total_price=round2(individual_total),
        final_price=round2(final),
        savings=round2(individual_total - final),
    )
    return package_price, individual


class PricingEngine:
    """Quotes backed by the catalog. Nothing is cached; every call reads fresh data."""

    def __init__(self, catalog: CatalogReader) -> None:
        self._catalog = catalog

    def quote_service(self, service_id: int, vehicle_type: str) -> ServiceQuote:
        if not service_id or not vehicle_type:
            raise ValidationError(
                "service_id and vehicle_type are required", code="missing_required_fields"
            )

        service = self._catalog.get_service(service_id)
        if vehicle_type not in service.vehicle_types:
            raise ValidationError(
                "Vehicle type not supported for this service",
                code="unsupported_vehicle_type",
                details={"service_id": service_id, "vehicle_type": vehicle_type,
                         "supported": list(service.vehicle_types)},
            )

        quote = ServiceQuote(
            service_id=service.id,
            vehicle_type=vehicle_type,
            multiplier=get_vehicle_multiplier(vehicle_type),
            base_price=round2(service.base_price),
            final_price=calculate_service_price(service.base_price, vehicle_type),
        )
        logger.debug("Service %s for %s: %s", service_id, vehicle_type, quote.final_price)
        return quote

    def quote_package(self, package_id: int, vehicle_type: str) -> PackageQuote:
        if not vehicle_type:
            raise ValidationError("vehicle_type is required", code="missing_required_fields")

        package = self._catalog.get_package(package_id)
        members = self._catalog.get_services(package.service_ids)
        package_price, individual = calculate_package_price(
            package.base_price, package.discount_percentage, members, vehicle_type
        )
        logger.debug("Package %s for %s: %s", package_id, vehicle_type, package_price.final_price)
        return PackageQuote(
            package_id=package.id,
            vehicle_type=vehicle_type,
            multiplier=get_vehicle_multiplier(vehicle_type),
            package_price=package_price,
            individual_pricing=individual,
        )

    def package_summary(self, package_id: int) -> PackageSummary:
        """Listing figures without any vehicle adjustment."""
        package = self._catalog.get_package(package_id)
        members = self._catalog.get_services(package.service_ids)

        base = to_decimal(package.base_price)
        final = base * discount_factor(package.discount_percentage)
        individual_total = sum((to_decimal(m.base_price) for m in members), Decimal("0"))

        return PackageSummary(
            package_id=package.id,
            name=package.name,
            base_price=round2(base),
            discount_percentage=to_decimal(package.discount_percentage),
            final_price=round2(final),
            savings=round2(base - final),
            total_individual_price=round2(individual_total),
            individual_savings=round2(individual_total - final),
            included_services=members,
        )
