"""Tekton pipeline engine adapter submitting staging `PipelineRun` objects."""

from __future__ import annotations

import logging
from typing import Any, Final

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError as TransportError

from shipyard.domain import BuildRequest

from .errors import PipelineEngineError, PipelineEngineTimeoutError, adapter_is_transport_timeout
from .interfaces import PipelineEnginePort

logger = logging.getLogger(__name__)


class TektonPipelineAdapter(PipelineEnginePort):
    """Pipeline engine adapter creating Tekton `PipelineRun` custom objects.

    Submission is fire-and-forget: the adapter returns as soon as the API server
    stored the run. Build progress is observed through the cluster runtime.
    """

    _GROUP: Final[str] = "tekton.dev"
    _VERSION: Final[str] = "v1"
    _PLURAL: Final[str] = "pipelineruns"
    _APPLICATION_LABEL: Final[str] = "shipyard.io/application"
    _ORGANIZATION_LABEL: Final[str] = "shipyard.io/organization"

    def __init__(
        self,
        custom_objects_api: Any,
        pipeline_name: str,
        namespace: str,
        request_timeout_seconds: float = 10.0,
    ):
        """Initialize the Tekton adapter.

        Args:
            custom_objects_api: `kubernetes.client.CustomObjectsApi` compatible object.
            pipeline_name: Pipeline referenced by every run.
            namespace: Namespace where runs are created.
            request_timeout_seconds: Timeout applied to every API call.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        normalized_pipeline_name = pipeline_name.strip()
        normalized_namespace = namespace.strip()

        if custom_objects_api is None:
            raise ValueError("custom_objects_api must not be None")
        if not normalized_pipeline_name:
            raise ValueError("pipeline_name must not be blank")
        if not normalized_namespace:
            raise ValueError("namespace must not be blank")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._custom_objects_api = custom_objects_api
        self._pipeline_name = normalized_pipeline_name
        self._namespace = normalized_namespace
        self._request_timeout_seconds = request_timeout_seconds

    @classmethod
    def adapter_from_api_client(
        cls,
        api_client: client.ApiClient,
        pipeline_name: str,
        namespace: str,
        request_timeout_seconds: float = 10.0,
    ) -> TektonPipelineAdapter:
        """Build the adapter from a configured API client.

        Returns:
            TektonPipelineAdapter: Ready adapter.
        """

        return cls(
            custom_objects_api=client.CustomObjectsApi(api_client),
            pipeline_name=pipeline_name,
            namespace=namespace,
            request_timeout_seconds=request_timeout_seconds,
        )

    def adapter_trigger_build(self, build_request: BuildRequest) -> bool:
        """Supersede pending runs of the application and submit a new one.

        Args:
            build_request: Fully resolved build submission.

        Returns:
            bool: True when the API server stored the new run, False when its
            response carries no run name.

        Raises:
            PipelineEngineError: Raised when listing, deleting or creating runs fails.
        """

        label_selector = (
            f"{self._APPLICATION_LABEL}={build_request.application_name},"
            f"{self._ORGANIZATION_LABEL}={build_request.organization}"
        )
        existing_runs = self._adapter_call(
            action="list pending builds",
            call=lambda: self._custom_objects_api.list_namespaced_custom_object(
                group=self._GROUP,
                version=self._VERSION,
                namespace=self._namespace,
                plural=self._PLURAL,
                label_selector=label_selector,
                _request_timeout=self._request_timeout_seconds,
            ),
        )
        for run in existing_runs.get("items", []):
            if not self._adapter_run_is_pending(run):
                continue
            run_name = run["metadata"]["name"]
            self._adapter_delete_run(run_name)
            logger.info(
                "superseded pending build %s of %s/%s",
                run_name,
                build_request.organization,
                build_request.application_name,
            )

        created_run = self._adapter_call(
            action="submit build",
            call=lambda: self._custom_objects_api.create_namespaced_custom_object(
                group=self._GROUP,
                version=self._VERSION,
                namespace=self._namespace,
                plural=self._PLURAL,
                body=self._adapter_build_pipeline_run(build_request),
                _request_timeout=self._request_timeout_seconds,
            ),
        )
        run_name = (created_run.get("metadata") or {}).get("name")
        if not run_name:
            logger.warning(
                "pipeline engine stored no run for %s/%s",
                build_request.organization,
                build_request.application_name,
            )
            return False
        logger.info(
            "submitted build %s for %s/%s",
            run_name,
            build_request.organization,
            build_request.application_name,
        )
        return True

    def _adapter_delete_run(self, run_name: str) -> None:
        """Delete one pipeline run, ignoring runs that already vanished.

        Args:
            run_name: PipelineRun name.

        Raises:
            PipelineEngineTimeoutError: Raised when deletion timed out.
            PipelineEngineError: Raised when deletion fails otherwise.
        """

        try:
            self._custom_objects_api.delete_namespaced_custom_object(
                group=self._GROUP,
                version=self._VERSION,
                namespace=self._namespace,
                plural=self._PLURAL,
                name=run_name,
                _request_timeout=self._request_timeout_seconds,
            )
        except ApiException as error:
            if error.status == 404:
                return
            raise PipelineEngineError(
                "failed to supersede pending build",
                f"pipeline engine returned HTTP {error.status}: {error.reason}",
            ) from error
        except TransportError as error:
            if adapter_is_transport_timeout(error):
                raise PipelineEngineTimeoutError(
                    "failed to supersede pending build",
                    f"pipeline engine timed out after {self._request_timeout_seconds}s",
                ) from error
            raise PipelineEngineError("failed to supersede pending build", str(error)) from error

    def _adapter_run_is_pending(self, run: dict[str, Any]) -> bool:
        """Return whether a run has not finished yet.

        A run without a `Succeeded` condition, or with status `Unknown`, is
        still queued or running.

        Args:
            run: PipelineRun object as returned by the API.

        Returns:
            bool: True when the run is pending.
        """

        conditions = (run.get("status") or {}).get("conditions") or []
        for condition in conditions:
            if condition.get("type") == "Succeeded":
                return condition.get("status") == "Unknown"
        return True

    def _adapter_build_pipeline_run(self, build_request: BuildRequest) -> dict[str, Any]:
        """Render the PipelineRun manifest for one build.

        Args:
            build_request: Fully resolved build submission.

        Returns:
            dict[str, Any]: PipelineRun manifest.
        """

        params = {
            "APP_NAME": build_request.application_name,
            "ORGANIZATION": build_request.organization,
            "ROUTE": build_request.route,
            "IMAGE": build_request.image_target,
            "SOURCE_URL": build_request.source_reference.url,
            "SOURCE_REVISION": build_request.source_reference.revision,
            "INSTANCES": str(build_request.instances),
        }
        return {
            "apiVersion": f"{self._GROUP}/{self._VERSION}",
            "kind": "PipelineRun",
            "metadata": {
                "generateName": f"{build_request.application_name}-",
                "namespace": self._namespace,
                "labels": {
                    self._APPLICATION_LABEL: build_request.application_name,
                    self._ORGANIZATION_LABEL: build_request.organization,
                },
            },
            "spec": {
                "pipelineRef": {"name": self._pipeline_name},
                "params": [{"name": name, "value": value} for name, value in params.items()],
            },
        }

    def _adapter_call(self, action: str, call) -> dict[str, Any]:
        """Run one API call and translate failures into pipeline errors.

        Args:
            action: Human-readable action label for error titles.
            call: Zero-argument callable performing the request.

        Returns:
            dict[str, Any]: Decoded API response.

        Raises:
            PipelineEngineTimeoutError: Raised when the call timed out.
            PipelineEngineError: Raised for every other API or transport failure.
        """

        try:
            return call()
        except ApiException as error:
            raise PipelineEngineError(
                f"failed to {action}",
                f"pipeline engine returned HTTP {error.status}: {error.reason}",
            ) from error
        except TransportError as error:
            if adapter_is_transport_timeout(error):
                raise PipelineEngineTimeoutError(
                    f"failed to {action}",
                    f"pipeline engine timed out after {self._request_timeout_seconds}s",
                ) from error
            raise PipelineEngineError(f"failed to {action}", str(error)) from error
