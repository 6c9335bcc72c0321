"""Kubernetes cluster runtime adapter for application deployments.

Each application runs as one `Deployment` named after the application inside
the namespace named after its organization.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Final, TypeVar

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from .errors import (
    ClusterRuntimeError,
    ClusterRuntimeTimeoutError,
    WorkloadNotFoundError,
    adapter_is_transport_timeout,
)
from .interfaces import ClusterRuntimePort, ReplicaCounts

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


def adapter_create_kubernetes_api_client(
    kubeconfig_path: str | None = None,
    in_cluster: bool = False,
) -> client.ApiClient:
    """Load cluster credentials and build a Kubernetes API client.

    Args:
        kubeconfig_path: Optional kubeconfig file; None uses the default lookup.
        in_cluster: Whether to use the pod service account instead of kubeconfig.

    Returns:
        kubernetes.client.ApiClient: Configured API client.

    Raises:
        ClusterRuntimeError: Raised when no usable cluster configuration is found.
    """

    client_configuration = client.Configuration()
    try:
        if in_cluster:
            config.load_incluster_config(client_configuration=client_configuration)
        else:
            config.load_kube_config(config_file=kubeconfig_path, client_configuration=client_configuration)
    except config.ConfigException as error:
        raise ClusterRuntimeError("cluster configuration could not be loaded", str(error)) from error
    return client.ApiClient(configuration=client_configuration)


class KubernetesClusterRuntimeAdapter(ClusterRuntimePort):
    """Cluster runtime adapter backed by the Kubernetes `apps/v1` API."""

    _DELETE_PROPAGATION_POLICY: Final[str] = "Background"

    def __init__(self, apps_api: Any, request_timeout_seconds: float = 10.0):
        """Initialize the Kubernetes runtime adapter.

        Args:
            apps_api: `kubernetes.client.AppsV1Api` compatible object.
            request_timeout_seconds: Timeout applied to every cluster call.

        Raises:
            ValueError: Raised when dependencies or timeouts are invalid.
        """

        if apps_api is None:
            raise ValueError("apps_api must not be None")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._apps_api = apps_api
        self._request_timeout_seconds = request_timeout_seconds

    @classmethod
    def adapter_from_api_client(
        cls,
        api_client: client.ApiClient,
        request_timeout_seconds: float = 10.0,
    ) -> KubernetesClusterRuntimeAdapter:
        """Build the adapter from a configured API client.

        Args:
            api_client: Configured Kubernetes API client.
            request_timeout_seconds: Timeout applied to every cluster call.

        Returns:
            KubernetesClusterRuntimeAdapter: Ready adapter.
        """

        return cls(apps_api=client.AppsV1Api(api_client), request_timeout_seconds=request_timeout_seconds)

    def adapter_set_desired_replicas(self, organization: str, application_name: str, replicas: int) -> None:
        """Patch the deployment scale subresource with the replica target.

        Args:
            organization: Namespace of the deployment.
            application_name: Deployment name.
            replicas: Desired replica count.

        Raises:
            ValueError: Raised when replicas is negative.
            WorkloadNotFoundError: Raised when the deployment does not exist.
            ClusterRuntimeError: Raised when the cluster call fails or times out.
        """

        if replicas < 0:
            raise ValueError("replicas must be >= 0")

        self._adapter_call(
            action="scale workload",
            organization=organization,
            application_name=application_name,
            call=lambda: self._apps_api.patch_namespaced_deployment_scale(
                name=application_name,
                namespace=organization,
                body={"spec": {"replicas": replicas}},
                _request_timeout=self._request_timeout_seconds,
            ),
        )
        logger.debug("scaled deployment %s/%s to %d replicas", organization, application_name, replicas)

    def adapter_get_replica_counts(self, organization: str, application_name: str) -> ReplicaCounts:
        """Read ready and desired replica counts from the deployment.

        Args:
            organization: Namespace of the deployment.
            application_name: Deployment name.

        Returns:
            ReplicaCounts: Instantaneous counts; missing fields count as zero.

        Raises:
            WorkloadNotFoundError: Raised when the deployment does not exist.
            ClusterRuntimeError: Raised when the cluster call fails or times out.
        """

        deployment = self._adapter_call(
            action="read workload",
            organization=organization,
            application_name=application_name,
            call=lambda: self._apps_api.read_namespaced_deployment(
                name=application_name,
                namespace=organization,
                _request_timeout=self._request_timeout_seconds,
            ),
        )
        spec = getattr(deployment, "spec", None)
        status = getattr(deployment, "status", None)
        desired = getattr(spec, "replicas", None)
        ready = getattr(status, "ready_replicas", None)
        return ReplicaCounts(ready=int(ready or 0), desired=int(desired or 0))

    def adapter_delete_workload(self, organization: str, application_name: str) -> bool:
        """Delete the deployment of an application.

        Args:
            organization: Namespace of the deployment.
            application_name: Deployment name.

        Returns:
            bool: False when no deployment existed.

        Raises:
            ClusterRuntimeError: Raised when the cluster call fails or times out.
        """

        try:
            self._adapter_call(
                action="delete workload",
                organization=organization,
                application_name=application_name,
                call=lambda: self._apps_api.delete_namespaced_deployment(
                    name=application_name,
                    namespace=organization,
                    body=client.V1DeleteOptions(propagation_policy=self._DELETE_PROPAGATION_POLICY),
                    _request_timeout=self._request_timeout_seconds,
                ),
            )
        except WorkloadNotFoundError:
            return False
        return True

    def _adapter_call(
        self,
        action: str,
        organization: str,
        application_name: str,
        call: Callable[[], _ResultT],
    ) -> _ResultT:
        """Run one cluster call and translate transport failures.

        Args:
            action: Human-readable action label for error titles.
            organization: Namespace of the workload.
            application_name: Workload name.
            call: Zero-argument callable performing the request.

        Returns:
            object: Result of the call.

        Raises:
            WorkloadNotFoundError: Raised on HTTP 404.
            ClusterRuntimeTimeoutError: Raised when the call timed out.
            ClusterRuntimeError: Raised for every other API or transport failure.
        """

        target = f"{organization}/{application_name}"
        try:
            return call()
        except ApiException as error:
            if error.status == 404:
                raise WorkloadNotFoundError(f"workload {target} not found") from error
            raise ClusterRuntimeError(
                f"failed to {action}",
                f"cluster API returned HTTP {error.status} for {target}: {error.reason}",
                status_code=error.status,
            ) from error
        except TransportError as error:
            if adapter_is_transport_timeout(error):
                raise ClusterRuntimeTimeoutError(
                    f"failed to {action}",
                    f"cluster API timed out after {self._request_timeout_seconds}s for {target}",
                ) from error
            raise ClusterRuntimeError(f"failed to {action}", f"cluster API unreachable for {target}: {error}") from error
