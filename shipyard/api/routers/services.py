"""Service catalog and service binding API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shipyard.domain import RequestContext, ServiceBinding
from shipyard.lifecycle import ApplicationRegistry

from ..context import api_request_context
from ..responses import api_created_response, api_ok_response, api_ok_return


class ServiceCreateBody(BaseModel):
    name: str


class BindBody(BaseModel):
    names: list[str]


def api_create_service_router(registry: ApplicationRegistry) -> APIRouter:
    """Create router for services and their bindings to applications.

    Args:
        registry: Application registry.

    Returns:
        APIRouter: Router exposing service and binding endpoints.

    Raises:
        ValueError: Raised when registry is missing.
    """

    if registry is None:
        raise ValueError("registry must not be None")

    router = APIRouter(prefix="/orgs/{org}", tags=["services"])

    @router.get("/services")
    def api_service_list(org: str) -> JSONResponse:
        return api_ok_return(registry.registry_list_services(org))

    @router.post("/services")
    def api_service_create(
        org: str,
        body: ServiceCreateBody,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        registry.registry_create_service(context, org, body.name.strip())
        return api_created_response()

    @router.get("/servicebindings")
    def api_binding_list(org: str) -> JSONResponse:
        bindings = registry.registry_list_bindings(org)
        return api_ok_return([api_serialize_service_binding(binding) for binding in bindings])

    @router.post("/applications/{app}/servicebindings")
    def api_binding_create(
        org: str,
        app: str,
        body: BindBody,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        """Bind services to an application.

        Returns:
            JSONResponse: 201 when every service was bound; otherwise an
                envelope with one entry per rejected service.
        """

        registry.registry_bind_services(context, org, app, [name.strip() for name in body.names])
        return api_created_response()

    @router.delete("/applications/{app}/servicebindings/{service}")
    def api_binding_delete(
        org: str,
        app: str,
        service: str,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        registry.registry_unbind_service(context, org, app, service)
        return api_ok_response()

    return router


def api_serialize_service_binding(binding: ServiceBinding) -> dict[str, str]:
    return {
        "Organization": binding.organization,
        "App": binding.application_name,
        "Service": binding.service_name,
    }
