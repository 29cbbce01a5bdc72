"""Shared test fixtures and helpers."""

import pytest
from sqlalchemy.pool import StaticPool

from detailing.database import build_engine, init_db, make_session_factory
from detailing.loyalty import LoyaltyLedger
from detailing.pricing import PricingEngine
from detailing.scheduling import AvailabilityResolver, BookingReservationService
from detailing.schemas.booking_schema import BookingRequest
from detailing.schemas.customer_schema import CustomerProfile
from detailing.seed import seed_catalog
from detailing.tools.catalog import CatalogReader
from detailing.tools.customers import CustomerDirectory

MONDAY = "2024-03-18"
SATURDAY = "2024-03-16"
SUNDAY = "2024-03-17"

ALL_SLOTS = [
    "09:00", "10:00", "11:00", "12:00", "13:00",
    "14:00", "15:00", "16:00", "17:00",
]

# Seeded catalog ids, in SAMPLE_SERVICES / SAMPLE_PACKAGES order.
BASIC_WASH = 1
PREMIUM_DETAILING = 2
CERAMIC_COATING = 3
PAINT_CORRECTION = 4
INTERIOR_DEEP_CLEAN = 5
STARTER_PACKAGE = 1
PREMIUM_PACKAGE = 2
PROTECTION_PACKAGE = 3


@pytest.fixture
def engine():
    engine = build_engine(url="sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = make_session_factory(engine)
    seed_catalog(factory)
    return factory


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed database so several threads get their own connections."""
    engine = build_engine(url=f"sqlite:///{tmp_path / 'bookings.sqlite'}")
    init_db(engine)
    factory = make_session_factory(engine)
    seed_catalog(factory)
    yield factory
    engine.dispose()


@pytest.fixture
def reservations(session_factory):
    return BookingReservationService(session_factory)


@pytest.fixture
def availability(session_factory):
    return AvailabilityResolver(session_factory)


@pytest.fixture
def catalog(session_factory):
    return CatalogReader(session_factory)


@pytest.fixture
def pricing(catalog):
    return PricingEngine(catalog)


@pytest.fixture
def directory(session_factory):
    return CustomerDirectory(session_factory)


@pytest.fixture
def ledger(session_factory):
    return LoyaltyLedger(session_factory)


@pytest.fixture
def customer_id(directory):
    return directory.upsert(
        CustomerProfile(name="Jane Doe", email="jane@example.com", phone="012-345 6789")
    ).customer_id


def make_request(**overrides) -> BookingRequest:
    """Helper to create a valid BookingRequest for Monday 10:00."""
    fields = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+60 (12) 345-6789",
        "date": MONDAY,
        "time_slot": "10:00",
    }
    fields.update(overrides)
    return BookingRequest(**fields)
