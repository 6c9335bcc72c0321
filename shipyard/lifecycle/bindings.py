"""Service binding management between applications and backing services."""

from __future__ import annotations

from shipyard.db import ServiceCatalogPort
from shipyard.domain import (
    ConflictError,
    NotFoundError,
    RequestContext,
    ServiceBinding,
    ShipyardError,
    UnbindReport,
    ValidationError,
    domain_raise_collected,
    domain_resource_name_error,
    domain_validate_resource_name,
)


class ServiceBindingManager:
    """Attach and detach services, including bulk detach before deletion."""

    def __init__(self, service_catalog: ServiceCatalogPort):
        """Initialize the binding manager.

        Args:
            service_catalog: Service and binding persistence.

        Raises:
            ValueError: Raised when the catalog is missing.
        """

        if service_catalog is None:
            raise ValueError("service_catalog must not be None")

        self._service_catalog = service_catalog

    def binding_unbind_all(self, context: RequestContext, organization: str, application_name: str) -> UnbindReport:
        """Detach every service bound to an application.

        A failing detach is logged and skipped so the remaining services are
        still detached.

        Args:
            context: Request context.
            organization: Organization name.
            application_name: Application name.

        Returns:
            UnbindReport: Detached names in binding order and failures by name.

        Raises:
            InfrastructureError: Raised when the bindings cannot be listed.
        """

        report = UnbindReport()
        for service_name in self._service_catalog.db_binding_list(organization, application_name):
            try:
                detached = self._service_catalog.db_binding_detach(organization, application_name, service_name)
            except ShipyardError as error:
                context.logger.warning(
                    "failed to unbind service %s from %s/%s: %s",
                    service_name,
                    organization,
                    application_name,
                    error.details or error.title,
                )
                report.failed[service_name] = error.details or error.title
                continue
            if detached:
                report.unbound.append(service_name)
        return report

    def binding_bind(
        self,
        context: RequestContext,
        organization: str,
        application_name: str,
        service_names: list[str],
    ) -> list[str]:
        """Bind services to an application, all or nothing.

        Args:
            context: Request context.
            organization: Organization name.
            application_name: Application name.
            service_names: Services to bind.

        Returns:
            list[str]: Bound service names, duplicates removed.

        Raises:
            ValidationError: Raised when no usable names are given.
            NotFoundError: Raised for services missing from the catalog.
            ConflictError: Raised for services already bound.
        """

        requested = list(dict.fromkeys(service_names))
        if not requested:
            raise ValidationError("no services given to bind")

        problems: list[ShipyardError] = []
        already_bound = set(self._service_catalog.db_binding_list(organization, application_name))
        for service_name in requested:
            name_error = domain_resource_name_error(service_name, "service")
            if name_error is not None:
                problems.append(name_error)
            elif not self._service_catalog.db_service_exists(organization, service_name):
                problems.append(NotFoundError(f"service '{service_name}' does not exist in organization '{organization}'"))
            elif service_name in already_bound:
                problems.append(ConflictError(f"service '{service_name}' is already bound to '{application_name}'"))
        domain_raise_collected(problems)

        self._service_catalog.db_binding_attach(organization, application_name, requested)
        context.logger.info("bound %s to %s/%s", ", ".join(requested), organization, application_name)
        return requested

    def binding_unbind(
        self,
        context: RequestContext,
        organization: str,
        application_name: str,
        service_name: str,
    ) -> None:
        """Detach one service from an application.

        Raises:
            NotFoundError: Raised when the service is not bound.
        """

        if not self._service_catalog.db_binding_detach(organization, application_name, service_name):
            raise NotFoundError(f"service '{service_name}' is not bound to '{application_name}'")
        context.logger.info("unbound %s from %s/%s", service_name, organization, application_name)

    def binding_list_for_organization(self, organization: str) -> list[ServiceBinding]:
        return self._service_catalog.db_binding_list_for_organization(organization)

    def binding_create_service(self, context: RequestContext, organization: str, service_name: str) -> None:
        """Register a backing service in an organization.

        Raises:
            ValidationError: Raised when the name is invalid.
            ConflictError: Raised when the service already exists.
        """

        domain_validate_resource_name(service_name, "service")
        self._service_catalog.db_service_create(organization, service_name)
        context.logger.info("created service %s/%s", organization, service_name)

    def binding_list_services(self, organization: str) -> list[str]:
        return self._service_catalog.db_service_list(organization)
