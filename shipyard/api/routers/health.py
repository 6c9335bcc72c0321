"""Health and platform info routers."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from shipyard.config import AppSettings
from shipyard.db import DatabaseHealthPort
from shipyard.domain import HealthStatus

from ..responses import api_ok_return


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Create the readiness router.

    The endpoint answers 200 only when the database is reachable and carries
    the full lifecycle schema; otherwise it answers 503 with the reason.

    Args:
        db_health_service: DB-layer health service interface.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when db_health_service is invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        target = db_health_service.db_connection_label()
        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload = {"status": "degraded", "app": "up", "database": "down", "detail": str(error), "target": target}
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        payload = api_serialize_health(db_health, target)
        if db_health.status != "ok":
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


def api_serialize_health(db_health: HealthStatus, target: str) -> dict[str, Any]:
    """Serialize a reachable database's readiness.

    Args:
        db_health: Readiness reported by the db layer.
        target: Masked database URL.

    Returns:
        dict[str, Any]: Health payload including schema diagnostics.
    """

    return {
        "status": "ok" if db_health.status == "ok" else "degraded",
        "app": "up",
        "database": db_health.status,
        "detail": db_health.detail,
        "target": target,
        "schema": {
            "revision": db_health.schema_revision,
            "missing_tables": list(db_health.missing_tables),
        },
    }


def api_create_info_router(settings: AppSettings, version: str) -> APIRouter:
    """Create router reporting the platform version and environment.

    Args:
        settings: Runtime settings.
        version: Installed control plane version.

    Returns:
        APIRouter: Router exposing `/info`.

    Raises:
        ValueError: Raised when settings are missing.
    """

    if settings is None:
        raise ValueError("settings must not be None")

    router = APIRouter(tags=["info"])

    @router.get("/info")
    def api_info() -> JSONResponse:
        return api_ok_return({"version": version, "environment": settings.environment_name})

    return router
