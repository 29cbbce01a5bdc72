"""
Catalog reads: services and service packages.

Catalog management (create/update/deactivate) lives outside this core;
everything here is read-only. Inactive rows are invisible and reported
as not found.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from detailing.database import storage_guard, transaction
from detailing.errors import NotFoundError
from detailing.models import Service, ServicePackage
from detailing.schemas.catalog_schema import PackageInfo, ServiceInfo

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Session-level queries over the active catalog."""

    @staticmethod
    def get_active_service(session: Session, service_id: int) -> Optional[Service]:
        return session.scalar(
            select(Service).where(Service.id == service_id, Service.is_active.is_(True))
        )

    @staticmethod
    def get_active_services(session: Session, service_ids: Iterable[int]) -> list[Service]:
        """Active services among ``service_ids``, in the order given. Repeats and unknown ids are skipped."""
        ids = list(dict.fromkeys(service_ids))
        if not ids:
            return []
        rows = session.scalars(
            select(Service).where(Service.id.in_(ids), Service.is_active.is_(True))
        ).all()
        by_id = {row.id: row for row in rows}
        return [by_id[sid] for sid in ids if sid in by_id]

    @staticmethod
    def list_active_services(session: Session, category: Optional[str] = None) -> list[Service]:
        query = select(Service).where(Service.is_active.is_(True))
        if category is not None:
            query = query.where(Service.category == category).order_by(Service.name)
        else:
            query = query.order_by(Service.category, Service.name)
        return list(session.scalars(query).all())

    @staticmethod
    def list_categories(session: Session) -> list[str]:
        return list(
            session.scalars(
                select(Service.category)
                .where(Service.is_active.is_(True))
                .distinct()
                .order_by(Service.category)
            ).all()
        )

    @staticmethod
    def get_active_package(session: Session, package_id: int) -> Optional[ServicePackage]:
        return session.scalar(
            select(ServicePackage).where(
                ServicePackage.id == package_id, ServicePackage.is_active.is_(True)
            )
        )

    @staticmethod
    def list_active_packages(session: Session) -> list[ServicePackage]:
        return list(
            session.scalars(
                select(ServicePackage)
                .where(ServicePackage.is_active.is_(True))
                .order_by(ServicePackage.is_popular.desc(), ServicePackage.name)
            ).all()
        )


class CatalogReader:
    """Catalog read collaborator returning detached pydantic views."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get_service(self, service_id: int) -> ServiceInfo:
        with storage_guard("fetch service"), transaction(self._session_factory) as session:
            row = CatalogRepository.get_active_service(session, service_id)
            if row is None:
                raise NotFoundError(
                    "No active service found with the given ID",
                    code="service_not_found",
                    details={"service_id": service_id},
                )
            return ServiceInfo.model_validate(row)

    def get_services(self, service_ids: Iterable[int]) -> list[ServiceInfo]:
        with storage_guard("fetch services"), transaction(self._session_factory) as session:
            rows = CatalogRepository.get_active_services(session, service_ids)
            return [ServiceInfo.model_validate(row) for row in rows]

    def list_services(self, category: Optional[str] = None) -> list[ServiceInfo]:
        with storage_guard("fetch services"), transaction(self._session_factory) as session:
            rows = CatalogRepository.list_active_services(session, category)
            return [ServiceInfo.model_validate(row) for row in rows]

    def list_categories(self) -> list[str]:
        with storage_guard("fetch service categories"), transaction(self._session_factory) as session:
            return CatalogRepository.list_categories(session)

    def get_package(self, package_id: int) -> PackageInfo:
        with storage_guard("fetch service package"), transaction(self._session_factory) as session:
            row = CatalogRepository.get_active_package(session, package_id)
            if row is None:
                raise NotFoundError(
                    "No active service package found with the given ID",
                    code="package_not_found",
                    details={"package_id": package_id},
                )
            return PackageInfo.model_validate(row)

    def list_packages(self) -> list[PackageInfo]:
        with storage_guard("fetch service packages"), transaction(self._session_factory) as session:
            rows = CatalogRepository.list_active_packages(session)
            return [PackageInfo.model_validate(row) for row in rows]
