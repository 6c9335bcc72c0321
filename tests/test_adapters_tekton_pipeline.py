"""Regression tests for Tekton build submission and pending-run supersede."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from kubernetes.client.rest import ApiException
from urllib3.exceptions import NewConnectionError, ReadTimeoutError

from shipyard.adapters import PipelineEngineError, PipelineEngineTimeoutError, TektonPipelineAdapter
from shipyard.domain import BuildRequest, SourceReference


def _build_request() -> BuildRequest:
    """Build a deterministic build request.

    Returns:
        BuildRequest: Build request for application `a1` in `o1`.
    """

    return BuildRequest(
        organization="o1",
        application_name="a1",
        source_reference=SourceReference(url="http://source/o1/a1", revision="f00dfeed"),
        route="a1.example.test",
        image_target="registry.test/apps/o1-a1:f00dfeed",
        instances=2,
    )


def _build_adapter(custom_objects_api: Mock) -> TektonPipelineAdapter:
    return TektonPipelineAdapter(
        custom_objects_api=custom_objects_api,
        pipeline_name="staging-pipeline",
        namespace="shipyard-staging",
        request_timeout_seconds=5.0,
    )


def test_adapters_tekton_submits_pipeline_run_with_build_params() -> None:
    """Create a PipelineRun carrying every build parameter.

    Returns:
        None: Assertions validate the submitted manifest.

    Raises:
        AssertionError: Raised when the manifest differs.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.return_value = {"items": []}
    custom_objects_api.create_namespaced_custom_object.return_value = {"metadata": {"name": "a1-x7k2p"}}

    assert _build_adapter(custom_objects_api).adapter_trigger_build(_build_request()) is True

    create_kwargs = custom_objects_api.create_namespaced_custom_object.call_args.kwargs
    manifest = create_kwargs["body"]
    params = {param["name"]: param["value"] for param in manifest["spec"]["params"]}
    assert create_kwargs["namespace"] == "shipyard-staging"
    assert create_kwargs["_request_timeout"] == 5.0
    assert manifest["kind"] == "PipelineRun"
    assert manifest["spec"]["pipelineRef"] == {"name": "staging-pipeline"}
    assert manifest["metadata"]["labels"] == {"shipyard.io/application": "a1", "shipyard.io/organization": "o1"}
    assert params == {
        "APP_NAME": "a1",
        "ORGANIZATION": "o1",
        "ROUTE": "a1.example.test",
        "IMAGE": "registry.test/apps/o1-a1:f00dfeed",
        "SOURCE_URL": "http://source/o1/a1",
        "SOURCE_REVISION": "f00dfeed",
        "INSTANCES": "2",
    }


def test_adapters_tekton_supersedes_only_pending_runs() -> None:
    """Delete queued and running runs of the application, keep finished ones.

    Returns:
        None: Assertions validate deleted run names.

    Raises:
        AssertionError: Raised when the wrong runs are deleted.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.return_value = {
        "items": [
            {"metadata": {"name": "a1-queued"}},
            {
                "metadata": {"name": "a1-running"},
                "status": {"conditions": [{"type": "Succeeded", "status": "Unknown"}]},
            },
            {
                "metadata": {"name": "a1-done"},
                "status": {"conditions": [{"type": "Succeeded", "status": "True"}]},
            },
            {
                "metadata": {"name": "a1-gone"},
                "status": {"conditions": [{"type": "Succeeded", "status": "Unknown"}]},
            },
        ]
    }

    def _delete(**kwargs: object) -> None:
        if kwargs["name"] == "a1-gone":
            raise ApiException(status=404, reason="Not Found")

    custom_objects_api.delete_namespaced_custom_object.side_effect = _delete
    custom_objects_api.create_namespaced_custom_object.return_value = {"metadata": {"name": "a1-new"}}

    _build_adapter(custom_objects_api).adapter_trigger_build(_build_request())

    deleted_names = [call.kwargs["name"] for call in custom_objects_api.delete_namespaced_custom_object.call_args_list]
    assert deleted_names == ["a1-queued", "a1-running", "a1-gone"]
    assert (
        custom_objects_api.list_namespaced_custom_object.call_args.kwargs["label_selector"]
        == "shipyard.io/application=a1,shipyard.io/organization=o1"
    )


def test_adapters_tekton_refused_submission_raises_pipeline_error() -> None:
    """Raise a pipeline error when the API server refuses the run.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when mapping differs.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.return_value = {"items": []}
    custom_objects_api.create_namespaced_custom_object.side_effect = ApiException(status=403, reason="Forbidden")

    with pytest.raises(PipelineEngineError) as error_info:
        _build_adapter(custom_objects_api).adapter_trigger_build(_build_request())

    assert error_info.value.status == 500
    assert "HTTP 403" in error_info.value.details


def test_adapters_tekton_timeout_maps_to_timeout_error() -> None:
    """Map listing timeouts to pipeline timeout errors.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when mapping differs.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.side_effect = ReadTimeoutError(None, "/apis", "timed out")

    with pytest.raises(PipelineEngineTimeoutError):
        _build_adapter(custom_objects_api).adapter_trigger_build(_build_request())


def test_adapters_tekton_supersede_timeout_maps_to_timeout_error() -> None:
    """Map a timed out delete of a pending run to a timeout error and submit nothing.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when mapping differs.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "a1-queued"}}]}
    custom_objects_api.delete_namespaced_custom_object.side_effect = ReadTimeoutError(None, "/apis", "timed out")

    with pytest.raises(PipelineEngineTimeoutError) as error_info:
        _build_adapter(custom_objects_api).adapter_trigger_build(_build_request())

    assert error_info.value.title == "failed to supersede pending build"
    custom_objects_api.create_namespaced_custom_object.assert_not_called()


def test_adapters_tekton_supersede_connection_failure_is_not_a_timeout() -> None:
    """Keep refused connections during supersede as plain pipeline errors.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when mapping differs.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.return_value = {"items": [{"metadata": {"name": "a1-queued"}}]}
    custom_objects_api.delete_namespaced_custom_object.side_effect = NewConnectionError(None, "connection refused")

    with pytest.raises(PipelineEngineError) as error_info:
        _build_adapter(custom_objects_api).adapter_trigger_build(_build_request())

    assert not isinstance(error_info.value, PipelineEngineTimeoutError)


def test_adapters_tekton_response_without_run_name_is_not_accepted() -> None:
    """Report a submission whose response names no run as not accepted.

    Returns:
        None: Assertions validate the returned flag.

    Raises:
        AssertionError: Raised when the flag differs.
    """

    custom_objects_api = Mock()
    custom_objects_api.list_namespaced_custom_object.return_value = {"items": []}
    custom_objects_api.create_namespaced_custom_object.return_value = {"metadata": {}}

    assert _build_adapter(custom_objects_api).adapter_trigger_build(_build_request()) is False
