"""Database service for organization existence and creation."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shipyard.domain import ConflictError, InfrastructureError

from .interfaces import OrganizationRepositoryPort
from .schema import organization_table


class SQLAlchemyOrganizationService(OrganizationRepositoryPort):
    """SQLAlchemy-backed organization directory."""

    def __init__(self, engine: Engine):
        """Initialize organization persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_organization_exists(self, name: str) -> bool:
        """Return whether the organization exists.

        Args:
            name: Organization name.

        Returns:
            bool: True when present.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    select(organization_table.c.organization_id).where(organization_table.c.name == name)
                ).first()
                return row is not None
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to read organization", str(error)) from error

    def db_organization_create(self, name: str) -> None:
        """Create one organization.

        Args:
            name: Organization name.

        Raises:
            ConflictError: Raised when the organization already exists.
            InfrastructureError: Raised when the write fails.
        """

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    insert(organization_table).values(name=name, created_at_utc=datetime.now(timezone.utc))
                )
        except IntegrityError as error:
            raise ConflictError(f"organization '{name}' already exists") from error
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to create organization", str(error)) from error

    def db_organization_list(self) -> list[str]:
        """List organization names in creation order.

        Returns:
            list[str]: Organization names.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    select(organization_table.c.name).order_by(organization_table.c.organization_id)
                ).all()
                return [row.name for row in rows]
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to list organizations", str(error)) from error
