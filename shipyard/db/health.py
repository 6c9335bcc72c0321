"""Database readiness checks: connectivity, lifecycle tables and applied revision."""

from typing import Final

from sqlalchemy import Connection, Engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from shipyard.domain import HealthStatus

from .interfaces import DatabaseHealthPort
from .schema import metadata

_ALEMBIC_VERSION_TABLE: Final[str] = "alembic_version"


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Readiness check for the lifecycle database.

    A reachable database whose schema lacks lifecycle tables is reported as
    `schema_incomplete` rather than healthy, since every lifecycle call would
    fail against it.
    """

    def __init__(self, engine: Engine):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Check connectivity, then table presence and the alembic revision.

        Returns:
            HealthStatus: `ok` or `schema_incomplete` with diagnostics.

        Raises:
            ConnectionError: Raised when the database cannot be queried.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                existing_tables = set(inspect(connection).get_table_names())
                schema_revision = self._db_read_schema_revision(connection, existing_tables)
        except SQLAlchemyError as error:
            raise ConnectionError("database connectivity check failed") from error

        missing_tables = tuple(sorted(set(metadata.tables) - existing_tables))
        if missing_tables:
            return HealthStatus(
                status="schema_incomplete",
                detail=f"missing lifecycle tables: {', '.join(missing_tables)}; run alembic upgrade head",
                schema_revision=schema_revision,
                missing_tables=missing_tables,
            )
        return HealthStatus(
            status="ok",
            detail="database reachable and lifecycle schema present",
            schema_revision=schema_revision,
        )

    def _db_read_schema_revision(self, connection: Connection, existing_tables: set[str]) -> str | None:
        if _ALEMBIC_VERSION_TABLE not in existing_tables:
            return None
        return connection.execute(text(f"SELECT version_num FROM {_ALEMBIC_VERSION_TABLE}")).scalar()
