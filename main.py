"""
Command-line entry point for the detailing booking and pricing core.

Every command prints a JSON document on stdout. Domain errors print their
error payload instead and exit with status 1.

Usage:
    python main.py init-db
    python main.py availability 2024-03-18
    python main.py book --name "Jane Doe" --email jane@example.com --date 2024-03-18 --slot 10:00
    python main.py quote-service 2 suv
    python main.py quote-package 2 suv
    python main.py confirm 1
    python main.py cancel 1
"""

import argparse
import json
import logging
import sys
from typing import Optional

from sqlalchemy.orm import sessionmaker

from detailing.config import settings
from detailing.database import build_engine, init_db, make_session_factory
from detailing.errors import DetailingError
from detailing.logging_context import new_request_id
from detailing.pricing import PricingEngine
from detailing.scheduling import AvailabilityResolver, BookingReservationService
from detailing.schemas.booking_schema import BookingRequest
from detailing.seed import seed_catalog
from detailing.tools.catalog import CatalogReader

logger = logging.getLogger(__name__)

_session_factory: Optional[sessionmaker] = None


def _factory(database_url: Optional[str] = None) -> sessionmaker:
    """Build the engine and session factory on first use."""
    global _session_factory
    if _session_factory is None:
        engine = build_engine(url=database_url)
        init_db(engine)
        _session_factory = make_session_factory(engine)
    return _session_factory


def _emit(payload) -> None:
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [item.model_dump(mode="json") for item in payload]
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")


def _cmd_init_db(args) -> dict:
    seeded = seed_catalog(_factory(args.database_url))
    return {"initialized": True, "seeded": seeded}


def _cmd_availability(args):
    resolver = AvailabilityResolver(_factory(args.database_url))
    if args.next:
        return resolver.find_next_available(args.date, days=args.next)
    return resolver.check_availability(args.date)


def _cmd_book(args):
    request = BookingRequest(
        name=args.name,
        email=args.email,
        phone=args.phone,
        service_id=args.service_id,
        service_label=args.service,
        date=args.date,
        time_slot=args.slot,
        notes=args.notes,
    )
    return BookingReservationService(_factory(args.database_url)).reserve(request)


def _cmd_quote_service(args):
    catalog = CatalogReader(_factory(args.database_url))
    return PricingEngine(catalog).quote_service(args.service_id, args.vehicle_type)


def _cmd_quote_package(args):
    catalog = CatalogReader(_factory(args.database_url))
    return PricingEngine(catalog).quote_package(args.package_id, args.vehicle_type)


def _cmd_cancel(args):
    return BookingReservationService(_factory(args.database_url)).cancel(args.booking_id)


def _cmd_confirm(args):
    return BookingReservationService(_factory(args.database_url)).confirm(args.booking_id)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookings, availability and pricing for the detailing shop."
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL (default: DATABASE_URL or ./detailing.sqlite).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Create tables and seed the sample catalog.")
    init.set_defaults(handler=_cmd_init_db)

    avail = sub.add_parser("availability", help="Open slots on a date.")
    avail.add_argument("date", help="YYYY-MM-DD")
    avail.add_argument(
        "--next",
        type=int,
        default=0,
        metavar="DAYS",
        help="Scan this many days forward and list days with open slots.",
    )
    avail.set_defaults(handler=_cmd_availability)

    book = sub.add_parser("book", help="Reserve a slot.")
    book.add_argument("--name", default=None)
    book.add_argument("--email", default=None)
    book.add_argument("--phone", default=None)
    book.add_argument("--date", default=None, help="YYYY-MM-DD")
    book.add_argument("--slot", default=None, help="HH:MM, e.g. 10:00")
    book.add_argument("--service-id", type=int, default=None)
    book.add_argument("--service", default=None, help="Free-text service label.")
    book.add_argument("--notes", default=None)
    book.set_defaults(handler=_cmd_book)

    quote_service = sub.add_parser("quote-service", help="Price a service for a vehicle type.")
    quote_service.add_argument("service_id", type=int)
    quote_service.add_argument("vehicle_type")
    quote_service.set_defaults(handler=_cmd_quote_service)

    quote_package = sub.add_parser("quote-package", help="Price a package for a vehicle type.")
    quote_package.add_argument("package_id", type=int)
    quote_package.add_argument("vehicle_type")
    quote_package.set_defaults(handler=_cmd_quote_package)

    cancel = sub.add_parser("cancel", help="Cancel a booking and release its slot.")
    cancel.add_argument("booking_id", type=int)
    cancel.set_defaults(handler=_cmd_cancel)

    confirm = sub.add_parser("confirm", help="Confirm a pending booking.")
    confirm.add_argument("booking_id", type=int)
    confirm.set_defaults(handler=_cmd_confirm)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    request_id = new_request_id()
    logger.debug("Running %s (%s)", args.command, request_id)

    try:
        result = args.handler(args)
    except DetailingError as exc:
        logger.info("%s failed: %s", args.command, exc.code)
        _emit(exc.to_dict(expose_internal=settings.expose_internal_errors))
        sys.exit(1)

    _emit(result)


if __name__ == "__main__":
    main()
