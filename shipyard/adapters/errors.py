"""Project-native typed exceptions for cluster and pipeline adapter failures."""

from __future__ import annotations

from urllib3.exceptions import NewConnectionError
from urllib3.exceptions import TimeoutError as TransportTimeoutError

from shipyard.domain import InfrastructureError


class ClusterRuntimeError(InfrastructureError):
    """Cluster runtime call failed.

    Attributes:
        status_code: Optional HTTP status reported by the cluster API.
    """

    def __init__(self, title: str, details: str | None = None, status_code: int | None = None):
        super().__init__(title, details)
        self.status_code = status_code


class ClusterRuntimeTimeoutError(ClusterRuntimeError, TimeoutError):
    """Cluster runtime call exceeded its request timeout."""


class WorkloadNotFoundError(LookupError):
    """Application workload does not exist in the cluster yet.

    Not an infrastructure failure: the reconciler absorbs it, so it never
    reaches the error envelope.
    """


class PipelineEngineError(InfrastructureError):
    """Pipeline engine refused or failed to accept a build trigger."""


class PipelineEngineTimeoutError(PipelineEngineError, TimeoutError):
    """Pipeline engine call exceeded its request timeout."""


def adapter_is_transport_timeout(error: BaseException) -> bool:
    """Return whether a urllib3 error, or the cause it wraps, is a timeout.

    `NewConnectionError` derives from the urllib3 timeout hierarchy but means
    the endpoint refused or could not be reached.

    Args:
        error: urllib3 exception raised by the Kubernetes client.

    Returns:
        bool: True for read and connect timeouts.
    """

    for candidate in (error, getattr(error, "reason", None)):
        if isinstance(candidate, TransportTimeoutError) and not isinstance(candidate, NewConnectionError):
            return True
    return False
