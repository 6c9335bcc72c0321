"""Application lifecycle API router: list, show, upload, stage, scale and delete."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Header, UploadFile
from fastapi.responses import JSONResponse, Response
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from shipyard.domain import ApplicationSnapshot, IngestResult, RequestContext, SourceReference, StagingRequest
from shipyard.lifecycle import ApplicationRegistry

from ..context import api_request_context
from ..responses import api_accepts_yaml, api_ok_response, api_ok_return, api_ok_yaml


class InstancesUpdateBody(BaseModel):
    """PATCH body; the count may arrive as JSON string or number."""

    instances: Any = Field(default=None, validation_alias=AliasChoices("instances", "Instances"))


class StageRepositoryBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(default="", alias="URL")
    revision: str = Field(default="", alias="Revision")


class StageBody(BaseModel):
    """Staging request as submitted by clients."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", alias="Name")
    org: str = Field(default="", alias="Org")
    repo: StageRepositoryBody = Field(default_factory=StageRepositoryBody, alias="Repo")
    route: str = Field(default="", alias="Route")
    image_id: str = Field(default="", alias="ImageID")


def api_create_application_router(registry: ApplicationRegistry) -> APIRouter:
    """Create application router.

    Args:
        registry: Application registry.

    Returns:
        APIRouter: Router exposing `/orgs/{org}/applications` endpoints.

    Raises:
        ValueError: Raised when registry is missing.
    """

    if registry is None:
        raise ValueError("registry must not be None")

    router = APIRouter(prefix="/orgs/{org}/applications", tags=["applications"])

    @router.get("")
    def api_application_list(org: str, context: RequestContext = Depends(api_request_context)) -> JSONResponse:
        snapshots = registry.registry_list_applications(context, org)
        return api_ok_return([api_serialize_application_snapshot(snapshot) for snapshot in snapshots])

    @router.get("/{app}")
    def api_application_show(
        org: str,
        app: str,
        accept: str | None = Header(default=None),
        context: RequestContext = Depends(api_request_context),
    ) -> Response:
        """Return one application as JSON, or as YAML when the client asks for it."""

        payload = api_serialize_application_snapshot(registry.registry_get_application(context, org, app))
        if api_accepts_yaml(accept):
            return api_ok_yaml(payload)
        return api_ok_return(payload)

    @router.patch("/{app}")
    def api_application_update(
        org: str,
        app: str,
        body: InstancesUpdateBody,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        """Change the desired instance count.

        Returns:
            JSONResponse: `{"Status": "OK"}` or an error envelope.
        """

        requested_instances = body.instances
        if requested_instances is not None and not isinstance(requested_instances, (str, int)):
            requested_instances = str(requested_instances)
        registry.registry_update_instances(context, org, app, requested_instances)
        return api_ok_response()

    @router.delete("/{app}")
    def api_application_delete(
        org: str,
        app: str,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        unbound_services = registry.registry_delete(context, org, app)
        return api_ok_return({"UnboundServices": unbound_services})

    @router.post("/{app}/store")
    def api_application_upload(
        org: str,
        app: str,
        file: UploadFile = File(...),
        instances: str | None = Form(default=None),
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        """Accept a code package for an application.

        Returns:
            JSONResponse: Upload result with the prospective route and source.
        """

        try:
            ingest_result = registry.registry_upload(context, org, app, file.file, instances)
        finally:
            file.file.close()
        return api_ok_return(api_serialize_upload_result(ingest_result))

    @router.post("/{app}/stage")
    def api_application_stage(
        org: str,
        app: str,
        body: StageBody,
        context: RequestContext = Depends(api_request_context),
    ) -> JSONResponse:
        staging_request = StagingRequest(
            name=body.name,
            organization=body.org,
            source_reference=SourceReference(url=body.repo.url, revision=body.repo.revision),
            route=body.route,
            image_reference=body.image_id,
        )
        registry.registry_stage(context, org, app, staging_request)
        return api_ok_response()

    return router


def api_serialize_application_snapshot(snapshot: ApplicationSnapshot) -> dict[str, Any]:
    """Serialize an application snapshot to its JSON payload.

    Args:
        snapshot: Application record with live status.

    Returns:
        dict[str, Any]: Response payload.
    """

    record = snapshot.record
    repo = None
    if record.source_reference is not None:
        repo = {"URL": record.source_reference.url, "Revision": record.source_reference.revision}
    return {
        "Name": record.name,
        "Organization": record.organization,
        "Status": snapshot.status,
        "Route": record.route,
        "Instances": record.desired_instances,
        "Repo": repo,
        "ImageID": record.image_reference or "",
        "BoundServices": list(record.bound_services),
    }


def api_serialize_upload_result(ingest_result: IngestResult) -> dict[str, Any]:
    record = ingest_result.record
    return {
        "message": "ok",
        "app": {
            "route": ingest_result.route,
            "name": record.name,
            "org": record.organization,
            "repo": {
                "url": ingest_result.source_reference.url,
                "revision": ingest_result.source_reference.revision,
            },
            "instances": record.desired_instances,
        },
    }
