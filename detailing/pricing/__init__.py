from detailing.pricing.engine import (
    PricingEngine,
    calculate_package_price,
    calculate_service_price,
    get_vehicle_multiplier,
    round2,
)

__all__ = [
    "PricingEngine",
    "calculate_service_price",
    "calculate_package_price",
    "get_vehicle_multiplier",
    "round2",
]
