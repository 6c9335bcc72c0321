"""Organization API router."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shipyard.domain import RequestContext
from shipyard.lifecycle import ApplicationRegistry

from ..context import api_request_context
from ..responses import api_created_response, api_ok_return


class OrganizationCreateBody(BaseModel):
    name: str


def api_create_organization_router(registry: ApplicationRegistry) -> APIRouter:
    """Create organization router with list and create endpoints.

    Args:
        registry: Application registry.

    Returns:
        APIRouter: Router exposing `/orgs`.

    Raises:
        ValueError: Raised when registry is missing.
    """

    if registry is None:
        raise ValueError("registry must not be None")

    router = APIRouter(prefix="/orgs", tags=["organizations"])

    @router.get("")
    def api_organization_list() -> JSONResponse:
        return api_ok_return(registry.registry_list_organizations())

    @router.post("")
    def api_organization_create(
        body: OrganizationCreateBody,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        """Create an organization.

        Returns:
            JSONResponse: 201 on success; 400 or 409 envelope otherwise.
        """

        registry.registry_create_organization(context, body.name.strip())
        return api_created_response()

    return router
