"""FastAPI application factory for the control plane API."""

from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, FastAPI

from shipyard.config import AppSettings
from shipyard.db import DatabaseHealthPort
from shipyard.lifecycle import ApplicationRegistry

from .responses import api_register_error_handlers
from .routers import (
    api_create_application_router,
    api_create_health_router,
    api_create_info_router,
    api_create_organization_router,
    api_create_service_router,
)

API_PREFIX = "/api/v1"
DISTRIBUTION_NAME = "shipyard-control-plane"


def api_resolve_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0+local"


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    registry: ApplicationRegistry,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        registry: Application registry serving every lifecycle route.

    Returns:
        FastAPI: Framework application with envelope error handling installed.
    """

    application = FastAPI(title="Shipyard Control Plane")
    api_register_error_handlers(application)

    api_router = APIRouter(prefix=API_PREFIX)
    api_router.include_router(api_create_info_router(settings=settings, version=api_resolve_version()))
    api_router.include_router(api_create_organization_router(registry=registry))
    api_router.include_router(api_create_application_router(registry=registry))
    api_router.include_router(api_create_service_router(registry=registry))

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(api_router)

    return application
