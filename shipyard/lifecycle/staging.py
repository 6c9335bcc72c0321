"""Staging coordination: request validation and build submission."""

from __future__ import annotations

from dataclasses import dataclass
from secrets import token_hex

from shipyard.adapters import PipelineEnginePort
from shipyard.db import ApplicationRepositoryPort
from shipyard.domain import (
    BuildRequest,
    InfrastructureError,
    InvalidStagingRequestError,
    RequestContext,
    ShipyardError,
    StagingRequest,
    domain_raise_collected,
    domain_resource_name_error,
)


@dataclass(frozen=True)
class StagingCoordinatorConfig:
    """Configuration values for staging.

    Attributes:
        route_domain: Domain suffix for default routes.
        image_registry: Registry prefix of built images.
        default_instances: Replica count for applications without a record.
    """

    route_domain: str
    image_registry: str
    default_instances: int = 1


class StagingCoordinator:
    """Validate staging requests and hand them to the pipeline engine."""

    _IMAGE_ID_LENGTH = 8

    def __init__(
        self,
        pipeline_engine: PipelineEnginePort,
        application_repository: ApplicationRepositoryPort,
        config: StagingCoordinatorConfig,
    ):
        """Initialize the coordinator.

        Args:
            pipeline_engine: Build submission port.
            application_repository: Application record persistence.
            config: Staging configuration.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if pipeline_engine is None:
            raise ValueError("pipeline_engine must not be None")
        if application_repository is None:
            raise ValueError("application_repository must not be None")
        if not config.route_domain.strip():
            raise ValueError("config.route_domain must not be blank")
        if not config.image_registry.strip():
            raise ValueError("config.image_registry must not be blank")

        self._pipeline_engine = pipeline_engine
        self._application_repository = application_repository
        self._config = config

    def stage_validate(self, request: StagingRequest) -> None:
        """Check that a staging request names everything a build needs.

        Args:
            request: Staging request to check.

        Raises:
            ValidationError: Raised with one entry per problem found.
        """

        problems: list[ShipyardError] = []
        if not request.name.strip():
            problems.append(InvalidStagingRequestError("name parameter from staging request is empty"))
        else:
            name_error = domain_resource_name_error(request.name, "application")
            if name_error is not None:
                problems.append(name_error)
        if not request.organization.strip():
            problems.append(InvalidStagingRequestError("org parameter from staging request is empty"))
        if not request.source_reference.url.strip():
            problems.append(InvalidStagingRequestError("repository url from staging request is empty"))
        domain_raise_collected(problems)

    def stage_application(self, context: RequestContext, request: StagingRequest) -> bool:
        """Validate a request, trigger its build and remember what was staged.

        Args:
            context: Request context.
            request: Staging request.

        Returns:
            bool: True once the pipeline engine accepted the build.

        Raises:
            ValidationError: Raised when required fields are missing.
            InfrastructureError: Raised when the engine refuses or fails.
        """

        self.stage_validate(request)

        route = request.route.strip() or f"{request.name}.{self._config.route_domain}"
        image_reference = request.image_reference.strip() or self._stage_default_image_id(request)
        record = self._application_repository.db_application_get(request.organization, request.name)
        instances = record.desired_instances if record is not None else self._config.default_instances

        image_repository = f"{self._config.image_registry.rstrip('/')}/{request.organization}-{request.name}"
        build_request = BuildRequest(
            organization=request.organization,
            application_name=request.name,
            source_reference=request.source_reference,
            route=route,
            image_target=f"{image_repository}:{image_reference}",
            instances=instances,
        )
        if not self._pipeline_engine.adapter_trigger_build(build_request):
            raise InfrastructureError("failed to submit build", "pipeline engine did not accept the build")

        if record is None:
            context.logger.warning(
                "staged %s/%s without an application record",
                request.organization,
                request.name,
            )
            return True

        self._application_repository.db_application_record_stage(
            organization=request.organization,
            name=request.name,
            route=route,
            source_reference=request.source_reference,
            image_reference=image_reference,
        )
        context.logger.info(
            "staging requested for %s/%s image=%s route=%s",
            request.organization,
            request.name,
            image_reference,
            route,
        )
        return True

    def _stage_default_image_id(self, request: StagingRequest) -> str:
        revision = request.source_reference.revision.strip()
        if revision:
            return revision[: self._IMAGE_ID_LENGTH]
        return token_hex(self._IMAGE_ID_LENGTH // 2)
