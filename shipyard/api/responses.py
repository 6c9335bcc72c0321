"""Response envelope helpers and exception handlers for the HTTP API.

Every failure is rendered as `{"Errors": [{"Status", "Title", "Details"}]}`
with the HTTP status of the first entry.
"""

from __future__ import annotations

import logging
from typing import Any, Final

import yaml
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from shipyard.domain import ShipyardError

logger = logging.getLogger(__name__)

_SECURITY_HEADERS: Final[dict[str, str]] = {"X-Content-Type-Options": "nosniff"}
YAML_MEDIA_TYPE: Final[str] = "application/x-yaml"


def api_ok_response() -> JSONResponse:
    return api_ok_return({"Status": "OK"})


def api_created_response() -> JSONResponse:
    return api_ok_return({"Status": "OK"}, status_code=status.HTTP_201_CREATED)


def api_ok_return(payload: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Render a success payload.

    Args:
        payload: JSON-serializable response body.
        status_code: Success status code.

    Returns:
        JSONResponse: Response carrying the security headers.
    """

    return JSONResponse(content=jsonable_encoder(payload), status_code=status_code, headers=_SECURITY_HEADERS)


def api_ok_yaml(payload: Any, status_code: int = status.HTTP_200_OK) -> Response:
    """Render a success payload as YAML, keeping field order."""

    return Response(
        content=yaml.safe_dump(jsonable_encoder(payload), sort_keys=False, default_flow_style=False),
        status_code=status_code,
        media_type=YAML_MEDIA_TYPE,
        headers=_SECURITY_HEADERS,
    )


def api_accepts_yaml(accept: str | None) -> bool:
    return bool(accept) and "yaml" in accept.lower()


def api_error_response(error: ShipyardError) -> JSONResponse:
    """Render a project error as an error envelope.

    Args:
        error: Error, possibly aggregating several entries.

    Returns:
        JSONResponse: Envelope response with the first entry's status.
    """

    entries = error.errors()
    return api_error_entries_response(
        [api_serialize_error_entry(entry.status, entry.title, entry.details) for entry in entries]
    )


def api_error_entries_response(entries: list[dict[str, Any]]) -> JSONResponse:
    return JSONResponse(
        content={"Errors": entries},
        status_code=entries[0]["Status"],
        headers=_SECURITY_HEADERS,
    )


def api_serialize_error_entry(status_code: int, title: str, details: str | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {"Status": status_code, "Title": title}
    if details:
        entry["Details"] = details
    return entry


def api_register_error_handlers(application: FastAPI) -> None:
    """Install envelope rendering for project, validation and routing errors.

    Args:
        application: FastAPI application to configure.
    """

    @application.exception_handler(ShipyardError)
    async def api_handle_shipyard_error(request: Request, error: ShipyardError) -> JSONResponse:
        _api_log_error(request, f"{error.status} {error.title}: {error.details or ''}")
        return api_error_response(error)

    @application.exception_handler(RequestValidationError)
    async def api_handle_request_validation_error(request: Request, error: RequestValidationError) -> JSONResponse:
        entries = []
        for problem in error.errors():
            location = ".".join(str(part) for part in problem.get("loc", ()))
            entries.append(
                api_serialize_error_entry(
                    status.HTTP_400_BAD_REQUEST,
                    f"invalid request: {location}" if location else "invalid request",
                    problem.get("msg"),
                )
            )
        if not entries:
            entries.append(api_serialize_error_entry(status.HTTP_400_BAD_REQUEST, "invalid request"))
        _api_log_error(request, f"request validation failed with {len(entries)} problem(s)")
        return api_error_entries_response(entries)

    @application.exception_handler(StarletteHTTPException)
    async def api_handle_http_exception(request: Request, error: StarletteHTTPException) -> JSONResponse:
        _api_log_error(request, f"{error.status_code} {error.detail}")
        return api_error_entries_response([api_serialize_error_entry(error.status_code, str(error.detail))])


def _api_log_error(request: Request, message: str) -> None:
    context = getattr(request.state, "request_context", None)
    if context is not None:
        context.logger.debug("%s origin=%s", message, context.origin)
        return
    logger.debug("%s origin=%s", message, request.url)
