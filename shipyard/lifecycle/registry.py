"""Application registry composing the lifecycle managers behind one facade."""

from __future__ import annotations

from typing import BinaryIO

from shipyard.db import ApplicationRepositoryPort, OrganizationRepositoryPort
from shipyard.domain import (
    ApplicationRecord,
    ApplicationSnapshot,
    IngestResult,
    InvalidStagingRequestError,
    NotFoundError,
    RequestContext,
    ServiceBinding,
    ShipyardError,
    StagingRequest,
    domain_raise_collected,
    domain_require_instances,
    domain_validate_resource_name,
)

from .bindings import ServiceBindingManager
from .ingestor import CodePackageIngestor
from .reconciler import InstanceReconciler
from .staging import StagingCoordinator


class ApplicationRegistry:
    """Entry point for every application lifecycle operation.

    Input validation runs before any external call. Organization existence is
    checked before application existence, so any application under a missing
    organization is reported as a missing organization.
    """

    def __init__(
        self,
        organization_repository: OrganizationRepositoryPort,
        application_repository: ApplicationRepositoryPort,
        ingestor: CodePackageIngestor,
        staging_coordinator: StagingCoordinator,
        reconciler: InstanceReconciler,
        binding_manager: ServiceBindingManager,
    ):
        """Initialize the registry.

        Args:
            organization_repository: Organization directory.
            application_repository: Application record persistence.
            ingestor: Code package ingestor.
            staging_coordinator: Staging coordinator.
            reconciler: Instance reconciler.
            binding_manager: Service binding manager.

        Raises:
            ValueError: Raised when a dependency is missing.
        """

        dependencies = {
            "organization_repository": organization_repository,
            "application_repository": application_repository,
            "ingestor": ingestor,
            "staging_coordinator": staging_coordinator,
            "reconciler": reconciler,
            "binding_manager": binding_manager,
        }
        for dependency_name, dependency in dependencies.items():
            if dependency is None:
                raise ValueError(f"{dependency_name} must not be None")

        self._organization_repository = organization_repository
        self._application_repository = application_repository
        self._ingestor = ingestor
        self._staging_coordinator = staging_coordinator
        self._reconciler = reconciler
        self._binding_manager = binding_manager

    def registry_create_organization(self, context: RequestContext, name: str) -> None:
        """Create an organization.

        Raises:
            ValidationError: Raised when the name is invalid.
            ConflictError: Raised when the organization exists.
        """

        domain_validate_resource_name(name, "organization")
        self._organization_repository.db_organization_create(name)
        context.logger.info("created organization %s", name)

    def registry_list_organizations(self) -> list[str]:
        return self._organization_repository.db_organization_list()

    def registry_list_applications(self, context: RequestContext, organization: str) -> list[ApplicationSnapshot]:
        """List applications of an organization with live status.

        Args:
            context: Request context.
            organization: Organization name.

        Returns:
            list[ApplicationSnapshot]: Snapshots in creation order.

        Raises:
            NotFoundError: Raised when the organization does not exist.
            InfrastructureError: Raised when the database or cluster fails.
        """

        self._registry_require_organization(organization)
        return [
            self._registry_snapshot(context, record)
            for record in self._application_repository.db_application_list(organization)
        ]

    def registry_get_application(self, context: RequestContext, organization: str, name: str) -> ApplicationSnapshot:
        """Return one application with live status.

        Raises:
            NotFoundError: Raised when the organization or application is missing.
            InfrastructureError: Raised when the database or cluster fails.
        """

        record = self._registry_require_application(organization, name)
        return self._registry_snapshot(context, record)

    def registry_upload(
        self,
        context: RequestContext,
        organization: str,
        name: str,
        archive_stream: BinaryIO,
        requested_instances: str | None,
    ) -> IngestResult:
        """Ingest a code package for an application.

        Raises:
            ValidationError: Raised for invalid instances or names.
            NotFoundError: Raised when the organization does not exist.
            UnpackError: Raised when the archive cannot be extracted.
        """

        return self._ingestor.ingest_code_package(
            context=context,
            organization=organization,
            application_name=name,
            archive_stream=archive_stream,
            requested_instances=requested_instances,
        )

    def registry_update_instances(
        self,
        context: RequestContext,
        organization: str,
        name: str,
        requested_instances: str | int | None,
    ) -> None:
        """Change the desired instance count of an application.

        Raises:
            ValidationError: Raised with the contractual instances titles.
            NotFoundError: Raised when the organization or application is missing.
            InfrastructureError: Raised when the cluster or database fails.
        """

        desired_instances = domain_require_instances(requested_instances)
        self._registry_require_application(organization, name)
        self._reconciler.reconciler_set_instances(context, organization, name, desired_instances)

    def registry_stage(self, context: RequestContext, organization: str, name: str, request: StagingRequest) -> bool:
        """Trigger a build for an application.

        The request body must address the same application as the route.

        Raises:
            ValidationError: Raised for malformed or mismatching requests.
            InfrastructureError: Raised when the pipeline engine fails.
        """

        self._staging_coordinator.stage_validate(request)
        problems: list[ShipyardError] = []
        if request.organization != organization:
            problems.append(
                InvalidStagingRequestError(
                    "org parameter from staging request does not match the route",
                    f"route names '{organization}', request names '{request.organization}'",
                )
            )
        if request.name != name:
            problems.append(
                InvalidStagingRequestError(
                    "name parameter from staging request does not match the route",
                    f"route names '{name}', request names '{request.name}'",
                )
            )
        domain_raise_collected(problems)
        return self._staging_coordinator.stage_application(context, request)

    def registry_delete(self, context: RequestContext, organization: str, name: str) -> list[str]:
        """Delete an application after detaching its services.

        Detach failures do not fail the deletion; only detached names are
        reported.

        Args:
            context: Request context.
            organization: Organization name.
            name: Application name.

        Returns:
            list[str]: Service names that were unbound.

        Raises:
            NotFoundError: Raised when the organization or application is missing.
            InfrastructureError: Raised when the workload or record deletion fails.
        """

        self._registry_require_application(organization, name)
        report = self._binding_manager.binding_unbind_all(context, organization, name)
        if report.failed:
            context.logger.warning(
                "deleting %s/%s with %d binding(s) left behind: %s",
                organization,
                name,
                len(report.failed),
                ", ".join(sorted(report.failed)),
            )
        self._reconciler.reconciler_remove_workload(context, organization, name)
        self._application_repository.db_application_delete(organization, name)
        self._ingestor.ingest_remove_content(context, organization, name)
        context.logger.info("deleted application %s/%s", organization, name)
        return report.unbound

    def registry_bind_services(
        self,
        context: RequestContext,
        organization: str,
        name: str,
        service_names: list[str],
    ) -> list[str]:
        self._registry_require_application(organization, name)
        return self._binding_manager.binding_bind(context, organization, name, service_names)

    def registry_unbind_service(self, context: RequestContext, organization: str, name: str, service_name: str) -> None:
        self._registry_require_application(organization, name)
        self._binding_manager.binding_unbind(context, organization, name, service_name)

    def registry_list_bindings(self, organization: str) -> list[ServiceBinding]:
        self._registry_require_organization(organization)
        return self._binding_manager.binding_list_for_organization(organization)

    def registry_create_service(self, context: RequestContext, organization: str, service_name: str) -> None:
        self._registry_require_organization(organization)
        self._binding_manager.binding_create_service(context, organization, service_name)

    def registry_list_services(self, organization: str) -> list[str]:
        self._registry_require_organization(organization)
        return self._binding_manager.binding_list_services(organization)

    def _registry_require_organization(self, organization: str) -> None:
        if not self._organization_repository.db_organization_exists(organization):
            raise NotFoundError(f"organization '{organization}' does not exist")

    def _registry_require_application(self, organization: str, name: str) -> ApplicationRecord:
        self._registry_require_organization(organization)
        record = self._application_repository.db_application_get(organization, name)
        if record is None:
            raise NotFoundError(f"application '{name}' does not exist in organization '{organization}'")
        return record

    def _registry_snapshot(self, context: RequestContext, record: ApplicationRecord) -> ApplicationSnapshot:
        status = self._reconciler.reconciler_compute_status(
            context,
            record.organization,
            record.name,
            record.desired_instances,
        )
        return ApplicationSnapshot(record=record, status=status)
