"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from typing import Protocol

from shipyard.domain import ApplicationRecord, HealthStatus, ServiceBinding, SourceReference


class DatabaseHealthPort(Protocol):
    """Port definition for database readiness verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.
        """

    def db_check_health(self) -> HealthStatus:
        """Check connectivity and lifecycle schema presence.

        Returns:
            HealthStatus: `ok`, or `schema_incomplete` with the missing tables.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class OrganizationRepositoryPort(Protocol):
    """Port definition for organization existence and creation."""

    def db_organization_exists(self, name: str) -> bool:
        """Return whether the organization exists.

        Args:
            name: Organization name.

        Returns:
            bool: True when present.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_organization_create(self, name: str) -> None:
        """Create one organization.

        Args:
            name: Organization name.

        Raises:
            ConflictError: Raised when the organization already exists.
            InfrastructureError: Raised when the write fails.
        """

    def db_organization_list(self) -> list[str]:
        """List organization names in creation order.

        Returns:
            list[str]: Organization names.

        Raises:
            InfrastructureError: Raised when the read fails.
        """


class ApplicationRepositoryPort(Protocol):
    """Port definition for application record persistence."""

    def db_application_get(self, organization: str, name: str) -> ApplicationRecord | None:
        """Fetch one application record.

        Args:
            organization: Organization name.
            name: Application name.

        Returns:
            ApplicationRecord | None: Record with bound services, or None.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_application_list(self, organization: str) -> list[ApplicationRecord]:
        """List application records of an organization in creation order.

        Args:
            organization: Organization name.

        Returns:
            list[ApplicationRecord]: Ordered records.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_application_upsert_instances(self, organization: str, name: str, desired_instances: int) -> ApplicationRecord:
        """Create the record if absent, otherwise set its desired instances.

        Args:
            organization: Organization name.
            name: Application name.
            desired_instances: Desired instance count.

        Returns:
            ApplicationRecord: Resulting record.

        Raises:
            InfrastructureError: Raised when the write fails.
        """

    def db_application_set_instances(self, organization: str, name: str, desired_instances: int) -> bool:
        """Set desired instances on an existing record.

        Args:
            organization: Organization name.
            name: Application name.
            desired_instances: Desired instance count.

        Returns:
            bool: False when the record does not exist.

        Raises:
            InfrastructureError: Raised when the write fails.
        """

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
            source_reference: Source that was submitted for build.
            image_reference: Image identifier of the build.

        Returns:
            bool: False when the record does not exist.

        Raises:
            InfrastructureError: Raised when the write fails.
        """

    def db_application_delete(self, organization: str, name: str) -> bool:
        """Delete one application record.

        Args:
            organization: Organization name.
            name: Application name.

        Returns:
            bool: False when the record did not exist.

        Raises:
            InfrastructureError: Raised when the write fails.
        """


class ServiceCatalogPort(Protocol):
    """Port definition for backing-service catalog and binding relations."""

    def db_service_exists(self, organization: str, name: str) -> bool:
        """Return whether a service exists in the organization.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_service_create(self, organization: str, name: str) -> None:
        """Create one service catalog entry.

        Raises:
            ConflictError: Raised when the service already exists.
            InfrastructureError: Raised when the write fails.
        """

    def db_service_list(self, organization: str) -> list[str]:
        """List service names of an organization in creation order.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_binding_list(self, organization: str, application_name: str) -> list[str]:
        """List service names bound to one application.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_binding_list_for_organization(self, organization: str) -> list[ServiceBinding]:
        """List every binding of an organization.

        Raises:
            InfrastructureError: Raised when the read fails.
        """

    def db_binding_attach(self, organization: str, application_name: str, service_names: list[str]) -> None:
        """Attach services to an application in one transaction.

        Raises:
            NotFoundError: Raised when the application record does not exist.
            ConflictError: Raised when a binding already exists.
            InfrastructureError: Raised when the write fails.
        """

    def db_binding_detach(self, organization: str, application_name: str, service_name: str) -> bool:
        """Detach one service from an application.

        Returns:
            bool: False when no such binding existed.

        Raises:
            InfrastructureError: Raised when the write fails.
        """
