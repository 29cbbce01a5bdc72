"""Sample catalog: the services and packages the shop launched with."""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from detailing.database import transaction
from detailing.models import Service, ServicePackage

logger = logging.getLogger(__name__)

ALL_VEHICLES = ["sedan", "suv", "truck"]

SAMPLE_SERVICES: list[dict] = [
    {
        "name": "Basic Car Wash",
        "description": "Exterior wash, wheel cleaning, and basic interior vacuum",
        "base_price": Decimal("25.00"),
        "duration_minutes": 45,
        "category": "Wash",
        "vehicle_types": ALL_VEHICLES,
        "requirements": ["Water access", "Parking space"],
    },
    {
        "name": "Premium Detailing",
        "description": "Full exterior wash, wax, interior cleaning, and tire shine",
        "base_price": Decimal("85.00"),
        "duration_minutes": 120,
        "category": "Detailing",
        "vehicle_types": ALL_VEHICLES,
        "requirements": ["Water access", "Parking space", "Shade preferred"],
    },
    {
        "name": "Ceramic Coating",
        "description": "Professional ceramic coating application with paint correction",
        "base_price": Decimal("299.00"),
        "duration_minutes": 360,
        "category": "Protection",
        "vehicle_types": ALL_VEHICLES,
        "requirements": ["Indoor facility", "24-48 hours curing time"],
    },
    {
        "name": "Paint Correction",
        "description": "Multi-stage paint correction to remove swirls and scratches",
        "base_price": Decimal("199.00"),
        "duration_minutes": 240,
        "category": "Correction",
        "vehicle_types": ALL_VEHICLES,
        "requirements": ["Indoor facility", "Good lighting"],
    },
    {
        "name": "Interior Deep Clean",
        "description": "Complete interior cleaning including leather treatment and fabric protection",
        "base_price": Decimal("75.00"),
        "duration_minutes": 90,
        "category": "Interior",
        "vehicle_types": ALL_VEHICLES,
        "requirements": ["Water access", "Ventilation"],
    },
]

# service_ids refer to SAMPLE_SERVICES by 1-based position.
SAMPLE_PACKAGES: list[dict] = [
    {
        "name": "Starter Package",
        "description": "Perfect for first-time customers - Basic wash with interior cleaning",
        "base_price": Decimal("45.00"),
        "duration_minutes": 75,
        "service_ids": [1, 5],
        "discount_percentage": Decimal("10.00"),
        "is_popular": False,
    },
    {
        "name": "Premium Package",
        "description": "Our most popular package - Full detailing with paint protection",
        "base_price": Decimal("120.00"),
        "duration_minutes": 180,
        "service_ids": [2, 5],
        "discount_percentage": Decimal("15.00"),
        "is_popular": True,
    },
    {
        "name": "Protection Package",
        "description": "Complete protection with ceramic coating and paint correction",
        "base_price": Decimal("450.00"),
        "duration_minutes": 480,
        "service_ids": [3, 4, 5],
        "discount_percentage": Decimal("20.00"),
        "is_popular": False,
    },
]


def seed_catalog(session_factory: sessionmaker) -> bool:
    """Insert the sample catalog into an empty database.

    Returns False without touching anything when services already exist.
    """
    with transaction(session_factory) as session:
        existing = session.scalar(select(func.count()).select_from(Service))
        if existing:
            logger.debug("Catalog already seeded (%d services)", existing)
            return False

        services = [Service(**data) for data in SAMPLE_SERVICES]
        session.add_all(services)
        session.flush()

        for data in SAMPLE_PACKAGES:
            member_ids = [services[pos - 1].id for pos in data["service_ids"]]
            session.add(ServicePackage(**{**data, "service_ids": member_ids}))

    logger.info(
        "Seeded %d services and %d packages", len(SAMPLE_SERVICES), len(SAMPLE_PACKAGES)
    )
    return True
