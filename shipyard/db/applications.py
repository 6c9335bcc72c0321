"""Database service for application record persistence."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Connection, Engine, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shipyard.domain import ApplicationRecord, InfrastructureError, SourceReference

from .interfaces import ApplicationRepositoryPort
from .schema import application_table, service_binding_table


class SQLAlchemyApplicationService(ApplicationRepositoryPort):
    """SQLAlchemy-backed application record service.

    Records are returned with their bound service names so callers observe the
    aggregate in one read. Concurrent writes to the same key are last-write-wins.
    """

    def __init__(self, engine: Engine):
        """Initialize application persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_application_get(self, organization: str, name: str) -> ApplicationRecord | None:
        """Fetch one application record with bound services.

        Args:
            organization: Organization name.
            name: Application name.

        Returns:
            ApplicationRecord | None: Matching record or None.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                return self._db_fetch_record(connection=connection, organization=organization, name=name)
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to read application", str(error)) from error

    def db_application_list(self, organization: str) -> list[ApplicationRecord]:
        """List records of an organization in creation order.

        Args:
            organization: Organization name.

        Returns:
            list[ApplicationRecord]: Ordered records.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    select(application_table)
                    .where(application_table.c.organization == organization)
                    .order_by(application_table.c.application_id)
                ).mappings().all()
                binding_rows = connection.execute(
                    select(service_binding_table.c.application_id, service_binding_table.c.service_name)
                    .where(
                        service_binding_table.c.organization == organization,
                        service_binding_table.c.application_id.is_not(None),
                    )
                    .order_by(service_binding_table.c.service_binding_id)
                ).all()
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to list applications", str(error)) from error

        services_by_application: dict[int, list[str]] = defaultdict(list)
        for binding_row in binding_rows:
            services_by_application[binding_row.application_id].append(binding_row.service_name)
        return [
            self._map_application_record(row, services_by_application.get(row["application_id"], []))
            for row in rows
        ]

    def db_application_upsert_instances(self, organization: str, name: str, desired_instances: int) -> ApplicationRecord:
        """Create the record if absent, otherwise set its desired instances.

        A concurrent insert that wins the unique constraint turns this call into
        an update.

        Args:
            organization: Organization name.
            name: Application name.
            desired_instances: Desired instance count.

        Returns:
            ApplicationRecord: Resulting record.

        Raises:
            ValueError: Raised when desired_instances is negative.
            InfrastructureError: Raised when the write fails.
        """

        if desired_instances < 0:
            raise ValueError("desired_instances must be >= 0")

        now_utc = datetime.now(timezone.utc)
        try:
            try:
                with self._engine.begin() as connection:
                    if not self._db_update_instances(connection, organization, name, desired_instances, now_utc):
                        connection.execute(
                            insert(application_table).values(
                                organization=organization,
                                name=name,
                                desired_instances=desired_instances,
                                route="",
                                created_at_utc=now_utc,
                                updated_at_utc=now_utc,
                            )
                        )
            except IntegrityError:
                with self._engine.begin() as connection:
                    self._db_update_instances(connection, organization, name, desired_instances, now_utc)

            with self._engine.connect() as connection:
                record = self._db_fetch_record(connection=connection, organization=organization, name=name)
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to store application", str(error)) from error

        if record is None:
            raise InfrastructureError("failed to store application", "record vanished after write")
        return record

    def db_application_set_instances(self, organization: str, name: str, desired_instances: int) -> bool:
        """Set desired instances on an existing record.

        Args:
            organization: Organization name.
            name: Application name.
            desired_instances: Desired instance count.

        Returns:
            bool: False when the record does not exist.

        Raises:
            ValueError: Raised when desired_instances is negative.
            InfrastructureError: Raised when the write fails.
        """

        if desired_instances < 0:
            raise ValueError("desired_instances must be >= 0")

        try:
            with self._engine.begin() as connection:
                return self._db_update_instances(
                    connection, organization, name, desired_instances, datetime.now(timezone.utc)
                )
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to update application instances", str(error)) from error

    def db_application_record_stage(
        self,
        organization: str,
        name: str,
        route: str,
        source_reference: SourceReference,
        image_reference: str,
    ) -> bool:
        """Store staging outputs on an existing record.

        Args:
            organization: Organization name.
            name: Application name.
            route: Assigned route.
            source_reference: Source submitted for build.
            image_reference: Image identifier of the build.

        Returns:
            bool: False when the record does not exist.

        Raises:
            InfrastructureError: Raised when the write fails.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    update(application_table)
                    .where(
                        application_table.c.organization == organization,
                        application_table.c.name == name,
                    )
                    .values(
                        route=route,
                        source_url=source_reference.url,
                        source_revision=source_reference.revision,
                        image_reference=image_reference,
                        updated_at_utc=datetime.now(timezone.utc),
                    )
                )
                return result.rowcount > 0
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to record application staging", str(error)) from error

    def db_application_delete(self, organization: str, name: str) -> bool:
        """Delete one application record.

        Binding rows still attached to the record are kept but released from
        it, so a later application with the same name starts without them.

        Args:
            organization: Organization name.
            name: Application name.

        Returns:
            bool: False when the record did not exist.

        Raises:
            InfrastructureError: Raised when the write fails.
        """

        try:
            with self._engine.begin() as connection:
                application_id = connection.execute(
                    select(application_table.c.application_id).where(
                        application_table.c.organization == organization,
                        application_table.c.name == name,
                    )
                ).scalar_one_or_none()
                if application_id is None:
                    return False

                connection.execute(
                    update(service_binding_table)
                    .where(service_binding_table.c.application_id == application_id)
                    .values(application_id=None)
                )
                result = connection.execute(
                    delete(application_table).where(application_table.c.application_id == application_id)
                )
                return result.rowcount > 0
        except SQLAlchemyError as error:
            raise InfrastructureError("failed to delete application", str(error)) from error

    def _db_update_instances(
        self,
        connection: Connection,
        organization: str,
        name: str,
        desired_instances: int,
        now_utc: datetime,
    ) -> bool:
        """Update desired instances inside an active transaction.

        Returns:
            bool: True when a row was updated.
        """

        result = connection.execute(
            update(application_table)
            .where(
                application_table.c.organization == organization,
                application_table.c.name == name,
            )
            .values(desired_instances=desired_instances, updated_at_utc=now_utc)
        )
        return result.rowcount > 0

    def _db_fetch_record(self, connection: Connection, organization: str, name: str) -> ApplicationRecord | None:
        """Fetch one record and its bindings on an open connection.

        Args:
            connection: Active SQLAlchemy connection.
            organization: Organization name.
            name: Application name.

        Returns:
            ApplicationRecord | None: Matching record or None.
        """

        row = connection.execute(
            select(application_table).where(
                application_table.c.organization == organization,
                application_table.c.name == name,
            )
        ).mappings().first()
        if row is None:
            return None

        service_rows = connection.execute(
            select(service_binding_table.c.service_name)
            .where(service_binding_table.c.application_id == row["application_id"])
            .order_by(service_binding_table.c.service_binding_id)
        ).all()
        return self._map_application_record(row, [service_row.service_name for service_row in service_rows])

    def _map_application_record(self, row: Any, bound_services: list[str]) -> ApplicationRecord:
        """Map SQLAlchemy row mapping to typed application record.

        Args:
            row: SQLAlchemy mapping row.
            bound_services: Service names bound to the application.

        Returns:
            ApplicationRecord: Typed record.
        """

        source_reference = None
        if row["source_url"]:
            source_reference = SourceReference(url=row["source_url"], revision=row["source_revision"] or "")

        return ApplicationRecord(
            organization=row["organization"],
            name=row["name"],
            desired_instances=row["desired_instances"],
            route=row["route"] or "",
            source_reference=source_reference,
            image_reference=row["image_reference"],
            bound_services=tuple(bound_services),
            created_at_utc=row["created_at_utc"],
            updated_at_utc=row["updated_at_utc"],
        )
