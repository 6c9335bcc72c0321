"""Request context dependency for API route handlers."""

from fastapi import Request

from shipyard.domain import RequestContext, domain_build_request_context

REQUEST_ID_HEADER = "X-Request-ID"


def api_request_context(request: Request) -> RequestContext:
    """Build the request context and keep it on the request state.

    Args:
        request: Inbound request.

    Returns:
        RequestContext: Context tagged with the caller's or a fresh request id.
    """

    context = domain_build_request_context(
        request_id=request.headers.get(REQUEST_ID_HEADER),
        origin=f"{request.method} {request.url.path}",
    )
    request.state.request_context = context
    return context
