"""Request-scoped context passed explicitly into lifecycle operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, MutableMapping
from uuid import uuid4


class RequestLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter prefixing every message with the request id."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        kwargs["extra"] = {**extra, **kwargs.get("extra", {})}
        return f"[{extra.get('request_id', '-')}] {msg}", kwargs


@dataclass(frozen=True)
class RequestContext:
    """Identity and logging scope of one inbound request.

    Attributes:
        request_id: Correlation id from `X-Request-ID` or generated.
        origin: Request origin label, usually the request URL.
        logger: Logger adapter tagging records with the request id.
    """

    request_id: str
    origin: str
    logger: logging.LoggerAdapter


def domain_build_request_context(
    request_id: str | None = None,
    origin: str = "internal",
    logger_name: str = "shipyard",
) -> RequestContext:
    """Build a request context with a request-id tagged logger.

    Args:
        request_id: Optional caller-supplied correlation id.
        origin: Request origin label.
        logger_name: Base logger name for the adapter.

    Returns:
        RequestContext: Context ready to pass into lifecycle operations.
    """

    resolved_request_id = (request_id or "").strip() or uuid4().hex
    logger = RequestLoggerAdapter(
        logging.getLogger(logger_name),
        {"request_id": resolved_request_id, "origin": origin},
    )
    return RequestContext(request_id=resolved_request_id, origin=origin, logger=logger)
