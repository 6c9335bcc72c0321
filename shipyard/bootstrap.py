"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from shipyard.adapters import (
    KubernetesClusterRuntimeAdapter,
    TektonPipelineAdapter,
    adapter_create_kubernetes_api_client,
)
from shipyard.api import create_api_application
from shipyard.config import AppSettings, config_load_settings, config_setup_logging
from shipyard.db import (
    SQLAlchemyApplicationService,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyOrganizationService,
    SQLAlchemyServiceCatalogService,
    db_create_engine,
)
from shipyard.lifecycle import (
    ApplicationRegistry,
    CodePackageIngestor,
    CodePackageIngestorConfig,
    InstanceReconciler,
    ServiceBindingManager,
    StagingCoordinator,
    StagingCoordinatorConfig,
)


def bootstrap_create_registry(settings: AppSettings, engine: Engine) -> ApplicationRegistry:
    """Assemble the application registry with database and cluster adapters.

    Args:
        settings: Validated runtime settings.
        engine: SQLAlchemy engine shared by the db services.

    Returns:
        ApplicationRegistry: Fully wired registry.

    Raises:
        ClusterRuntimeError: Raised when cluster credentials cannot be loaded.
    """

    organization_repository = SQLAlchemyOrganizationService(engine=engine)
    application_repository = SQLAlchemyApplicationService(engine=engine)
    service_catalog = SQLAlchemyServiceCatalogService(engine=engine)

    api_client = adapter_create_kubernetes_api_client(
        kubeconfig_path=settings.kubeconfig_path,
        in_cluster=settings.kubernetes_in_cluster,
    )
    cluster_runtime = KubernetesClusterRuntimeAdapter.adapter_from_api_client(
        api_client,
        request_timeout_seconds=settings.cluster_request_timeout_seconds,
    )
    pipeline_engine = TektonPipelineAdapter.adapter_from_api_client(
        api_client,
        pipeline_name=settings.pipeline_name,
        namespace=settings.pipeline_namespace,
        request_timeout_seconds=settings.cluster_request_timeout_seconds,
    )

    ingestor = CodePackageIngestor(
        organization_repository=organization_repository,
        application_repository=application_repository,
        config=CodePackageIngestorConfig(
            staging_root=settings.staging_root,
            source_base_url=settings.source_base_url,
            route_domain=settings.route_domain,
            default_instances=settings.default_instances,
            upload_max_bytes=settings.upload_max_bytes,
        ),
    )
    staging_coordinator = StagingCoordinator(
        pipeline_engine=pipeline_engine,
        application_repository=application_repository,
        config=StagingCoordinatorConfig(
            route_domain=settings.route_domain,
            image_registry=settings.image_registry,
            default_instances=settings.default_instances,
        ),
    )
    return ApplicationRegistry(
        organization_repository=organization_repository,
        application_repository=application_repository,
        ingestor=ingestor,
        staging_coordinator=staging_coordinator,
        reconciler=InstanceReconciler(cluster_runtime=cluster_runtime, application_repository=application_repository),
        binding_manager=ServiceBindingManager(service_catalog=service_catalog),
    )


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    config_setup_logging(settings.log_level)
    engine = db_create_engine(database_url=settings.database_url)
    return create_api_application(
        settings=settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        registry=bootstrap_create_registry(settings=settings, engine=engine),
    )
