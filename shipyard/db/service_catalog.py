"""Database service for the backing-service catalog and binding relations."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, Select, delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shipyard.domain import ConflictError, InfrastructureError, NotFoundError, ServiceBinding

from .interfaces import ServiceCatalogPort
from .schema import application_table, service_binding_table, service_table


class SQLAlchemyServiceCatalogService(ServiceCatalogPort):
    """SQLAlchemy-backed service catalog.

    Binding rows are the only link between applications and services; removing
    a row is what detaching a service means for this control plane.
    """

    def __init__(self, engine: Engine):
        """Initialize service catalog persistence.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_service_exists(self, organization: str, name: str) -> bool:
        """Return whether a service exists in the organization.

        Args:
            organization: Organization name.
            name: Service name.

        Returns:
            bool: True when present.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    select(service_table.c.service_id).where(
                        service_table.c.organization == organization,
                        service_table.c.name == name,
                    )
                ).first()
                return row is not None
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to read service", str(error)) from error

    def db_service_create(self, organization: str, name: str) -> None:
        """Create one service catalog entry.

        Args:
            organization: Organization name.
            name: Service name.

        Raises:
            ConflictError: Raised when the service already exists.
            InfrastructureError: Raised when the write fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    insert(service_table).values(
                        organization=organization,
                        name=name,
                        created_at_utc=datetime.now(timezone.utc),
                    )
                )
        except IntegrityError as error:
            raise ConflictError(f"service '{name}' already exists") from error
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to create service", str(error)) from error

    def db_service_list(self, organization: str) -> list[str]:
        """List service names of an organization in creation order.

        Args:
            organization: Organization name.

        Returns:
            list[str]: Service names.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    select(service_table.c.name)
                    .where(service_table.c.organization == organization)
                    .order_by(service_table.c.service_id)
                ).all()
                return [row.name for row in rows]
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to list services", str(error)) from error

    def db_binding_list(self, organization: str, application_name: str) -> list[str]:
        """List service names bound to one application.

        Args:
            organization: Organization name.
            application_name: Application name.

        Returns:
            list[str]: Bound service names in binding order.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    select(service_binding_table.c.service_name)
                    .where(
                        service_binding_table.c.application_id
                        == self._db_application_id_query(organization, application_name).scalar_subquery()
                    )
                    .order_by(service_binding_table.c.service_binding_id)
                ).all()
                return [row.service_name for row in rows]
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to list service bindings", str(error)) from error

    def db_binding_list_for_organization(self, organization: str) -> list[ServiceBinding]:
        """List every binding of an organization's live applications.

        Rows released by an application deletion are not reported.

        Args:
            organization: Organization name.

        Returns:
            list[ServiceBinding]: Bindings in creation order.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    select(application_table.c.name, service_binding_table.c.service_name)
                    .join(
                        application_table,
                        application_table.c.application_id == service_binding_table.c.application_id,
                    )
                    .where(application_table.c.organization == organization)
                    .order_by(service_binding_table.c.service_binding_id)
                ).all()
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to list service bindings", str(error)) from error

        return [
            ServiceBinding(
                organization=organization,
                application_name=row.name,
                service_name=row.service_name,
            )
            for row in rows
        ]

    def db_binding_attach(self, organization: str, application_name: str, service_names: list[str]) -> None:
        """Attach services to an application in one transaction.

        Args:
            organization: Organization name.
            application_name: Application name.
            service_names: Services to attach.

        Raises:
            NotFoundError: Raised when the application record does not exist.
            ConflictError: Raised when any binding already exists; nothing is attached.
            InfrastructureError: Raised when the write fails.
        """

        if not service_names:
            return

        now_utc = datetime.now(timezone.utc)
        try:
            with self._engine.begin() as connection:
                application_id = connection.execute(
                    self._db_application_id_query(organization, application_name)
                ).scalar_one_or_none()
                if application_id is None:
                    raise NotFoundError(
                        f"application '{application_name}' does not exist in organization '{organization}'"
                    )
                connection.execute(
                    insert(service_binding_table),
                    [
                        {
                            "application_id": application_id,
                            "organization": organization,
                            "application_name": application_name,
                            "service_name": service_name,
                            "created_at_utc": now_utc,
                        }
                        for service_name in service_names
                    ],
                )
        except IntegrityError as error:
            raise ConflictError("service already bound to application") from error
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to bind services", str(error)) from error

    def db_binding_detach(self, organization: str, application_name: str, service_name: str) -> bool:
        """Detach one service from an application.

        Args:
            organization: Organization name.
            application_name: Application name.
            service_name: Service name.

        Returns:
            bool: False when no such binding existed.

        Raises:
            InfrastructureError: Raised when the write fails.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    delete(service_binding_table).where(
                        service_binding_table.c.application_id
                        == self._db_application_id_query(organization, application_name).scalar_subquery(),
                        service_binding_table.c.service_name == service_name,
                    )
                )
                return result.rowcount > 0
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to unbind service", str(error)) from error

    def _db_application_id_query(self, organization: str, application_name: str) -> Select:
        """Build the lookup of the live application's id.

        Args:
            organization: Organization name.
            application_name: Application name.

        Returns:
            Select: Query yielding the id, or no row when absent.
        """

        return (
            select(application_table.c.application_id)
            .where(
                application_table.c.organization == organization,
                application_table.c.name == application_name,
            )
        )
