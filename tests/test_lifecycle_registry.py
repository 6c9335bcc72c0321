"""Regression tests for staging, reconciliation, bindings and registry orchestration."""
# pylint: disable=duplicate-code

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest

from shipyard.adapters import ClusterRuntimeError, ReplicaCounts, WorkloadNotFoundError
from shipyard.db import (
    SQLAlchemyApplicationService,
    SQLAlchemyOrganizationService,
    SQLAlchemyServiceCatalogService,
    db_create_engine,
    db_create_schema,
)
from shipyard.domain import (
    BuildRequest,
    ConflictError,
    ErrorGroup,
    InfrastructureError,
    InvalidInstancesFormatError,
    InvalidInstancesRangeError,
    InvalidStagingRequestError,
    NotFoundError,
    SourceReference,
    StagingRequest,
    domain_build_request_context,
)
from shipyard.lifecycle import (
    ApplicationRegistry,
    CodePackageIngestor,
    CodePackageIngestorConfig,
    InstanceReconciler,
    ServiceBindingManager,
    StagingCoordinator,
    StagingCoordinatorConfig,
)


class _ClusterRuntimeStub:
    """In-memory cluster runtime recording every call."""

    def __init__(self):
        self.workloads: dict[tuple[str, str], int] = {}
        self.calls: list[str] = []
        self.unreachable = False

    def adapter_set_desired_replicas(self, organization: str, application_name: str, replicas: int) -> None:
        self._check_reachable()
        self.calls.append(f"scale {organization}/{application_name} {replicas}")
        if (organization, application_name) not in self.workloads:
            raise WorkloadNotFoundError(application_name)
        self.workloads[(organization, application_name)] = replicas

    def adapter_get_replica_counts(self, organization: str, application_name: str) -> ReplicaCounts:
        self._check_reachable()
        if (organization, application_name) not in self.workloads:
            raise WorkloadNotFoundError(application_name)
        replicas = self.workloads[(organization, application_name)]
        return ReplicaCounts(ready=replicas, desired=replicas)

    def adapter_delete_workload(self, organization: str, application_name: str) -> bool:
        self._check_reachable()
        self.calls.append(f"delete {organization}/{application_name}")
        return self.workloads.pop((organization, application_name), None) is not None

    def _check_reachable(self) -> None:
        if self.unreachable:
            raise ClusterRuntimeError("failed to read workload", "cluster API timed out")


class _PipelineEngineStub:
    """Pipeline engine stub deploying the workload immediately."""

    def __init__(self, cluster_runtime: _ClusterRuntimeStub, accept: bool = True):
        self.cluster_runtime = cluster_runtime
        self.accept = accept
        self.builds: list[BuildRequest] = []

    def adapter_trigger_build(self, build_request: BuildRequest) -> bool:
        self.builds.append(build_request)
        if self.accept:
            key = (build_request.organization, build_request.application_name)
            self.cluster_runtime.workloads[key] = build_request.instances
        return self.accept


class _FlakyServiceCatalog(SQLAlchemyServiceCatalogService):
    """Service catalog failing detach for selected services."""

    failing_services: set[str] = set()

    def db_binding_detach(self, organization: str, application_name: str, service_name: str) -> bool:
        if service_name in self.failing_services:
            raise InfrastructureError("failed to unbind service", "database is locked")
        return super().db_binding_detach(organization, application_name, service_name)


class _Wiring:
    """Registry wired on in-memory SQLite and stub cluster adapters."""

    def __init__(self, tmp_path: Path):
        engine = db_create_engine("sqlite:///:memory:")
        db_create_schema(engine)
        self.organizations = SQLAlchemyOrganizationService(engine=engine)
        self.applications = SQLAlchemyApplicationService(engine=engine)
        self.catalog = _FlakyServiceCatalog(engine=engine)
        self.catalog.failing_services = set()
        self.cluster = _ClusterRuntimeStub()
        self.pipeline = _PipelineEngineStub(self.cluster)
        self.staging_root = tmp_path / "staging"
        self.registry = ApplicationRegistry(
            organization_repository=self.organizations,
            application_repository=self.applications,
            ingestor=CodePackageIngestor(
                organization_repository=self.organizations,
                application_repository=self.applications,
                config=CodePackageIngestorConfig(
                    staging_root=str(self.staging_root),
                    source_base_url="http://source.test",
                    route_domain="apps.example.test",
                ),
            ),
            staging_coordinator=StagingCoordinator(
                pipeline_engine=self.pipeline,
                application_repository=self.applications,
                config=StagingCoordinatorConfig(route_domain="apps.example.test", image_registry="registry.test/apps"),
            ),
            reconciler=InstanceReconciler(cluster_runtime=self.cluster, application_repository=self.applications),
            binding_manager=ServiceBindingManager(service_catalog=self.catalog),
        )
        self.context = domain_build_request_context(request_id="test")

    def upload(self, organization: str, name: str, instances: str | None = "1") -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, mode="w") as archive:
            archive.writestr("main.py", "print('hi')\n")
        buffer.seek(0)
        self.registry.registry_upload(self.context, organization, name, buffer, instances)

    def stage(self, organization: str, name: str, revision: str = "0123456789abcdef") -> None:
        self.registry.registry_stage(
            self.context,
            organization,
            name,
            StagingRequest(
                name=name,
                organization=organization,
                source_reference=SourceReference(url=f"http://source.test/{organization}/{name}", revision=revision),
            ),
        )


@pytest.fixture
def wiring(tmp_path: Path) -> _Wiring:
    """Provide a registry with organization `o1`.

    Args:
        tmp_path: Pytest temporary directory.

    Returns:
        _Wiring: Wired registry and stubs.
    """

    wired = _Wiring(tmp_path)
    wired.registry.registry_create_organization(wired.context, "o1")
    return wired


def test_lifecycle_stage_defaults_route_and_image_and_records_them(wiring: _Wiring) -> None:
    """Derive route and image id and store them on the record.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate build request and record.

    Raises:
        AssertionError: Raised when defaults differ.
    """

    wiring.upload("o1", "a1", "2")
    wiring.stage("o1", "a1")

    build_request = wiring.pipeline.builds[0]
    assert build_request.route == "a1.apps.example.test"
    assert build_request.image_target == "registry.test/apps/o1-a1:01234567"
    assert build_request.instances == 2

    snapshot = wiring.registry.registry_get_application(wiring.context, "o1", "a1")
    assert snapshot.status == "2/2"
    assert snapshot.record.route == "a1.apps.example.test"
    assert snapshot.record.image_reference == "01234567"
    assert snapshot.record.source_reference.revision == "0123456789abcdef"


def test_lifecycle_stage_reports_every_missing_field(wiring: _Wiring) -> None:
    """Aggregate missing name, org and repository into one error group.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised entries.

    Raises:
        AssertionError: Raised when entries differ.
    """

    with pytest.raises(ErrorGroup) as error_info:
        wiring.registry.registry_stage(
            wiring.context,
            "o1",
            "a1",
            StagingRequest(name="", organization="", source_reference=SourceReference(url="", revision="")),
        )

    entries = error_info.value.errors()
    assert len(entries) == 3
    assert all(isinstance(entry, InvalidStagingRequestError) for entry in entries)
    assert wiring.pipeline.builds == []


def test_lifecycle_stage_rejects_body_that_names_another_application(wiring: _Wiring) -> None:
    """Reject staging requests addressing a different application than the route.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when mismatch is accepted.
    """

    with pytest.raises(InvalidStagingRequestError):
        wiring.registry.registry_stage(
            wiring.context,
            "o1",
            "a1",
            StagingRequest(name="a2", organization="o1", source_reference=SourceReference(url="http://s", revision="")),
        )


def test_lifecycle_stage_refused_trigger_is_infrastructure_error(wiring: _Wiring) -> None:
    """Surface a refused build trigger as a 500.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised error and unchanged record.

    Raises:
        AssertionError: Raised when behavior differs.
    """

    wiring.upload("o1", "a1")
    wiring.pipeline.accept = False

    with pytest.raises(InfrastructureError):
        wiring.stage("o1", "a1")

    assert wiring.applications.db_application_get("o1", "a1").route == ""


def test_lifecycle_update_instances_before_deploy_only_updates_record(wiring: _Wiring) -> None:
    """Store the count when no workload exists and report `0/<desired>`.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate record and status.

    Raises:
        AssertionError: Raised when behavior differs.
    """

    wiring.upload("o1", "a1")

    wiring.registry.registry_update_instances(wiring.context, "o1", "a1", "3")

    snapshot = wiring.registry.registry_get_application(wiring.context, "o1", "a1")
    assert snapshot.record.desired_instances == 3
    assert snapshot.status == "0/3"


def test_lifecycle_update_instances_validates_before_cluster_calls(wiring: _Wiring) -> None:
    """Reject malformed and negative counts without touching the cluster.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised errors and call log.

    Raises:
        AssertionError: Raised when the cluster is called.
    """

    wiring.upload("o1", "a1")
    wiring.stage("o1", "a1")

    with pytest.raises(InvalidInstancesRangeError):
        wiring.registry.registry_update_instances(wiring.context, "o1", "a1", "-3")
    with pytest.raises(InvalidInstancesFormatError):
        wiring.registry.registry_update_instances(wiring.context, "o1", "a1", "2.5")
    with pytest.raises(NotFoundError):
        wiring.registry.registry_update_instances(wiring.context, "o1", "missing", "2")

    assert wiring.cluster.calls == []
    assert wiring.registry.registry_get_application(wiring.context, "o1", "a1").status == "1/1"


def test_lifecycle_status_is_infrastructure_error_when_cluster_unreachable(wiring: _Wiring) -> None:
    """Report cluster outages as 500 rather than validation errors.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when mapping differs.
    """

    wiring.upload("o1", "a1")
    wiring.cluster.unreachable = True

    with pytest.raises(InfrastructureError) as error_info:
        wiring.registry.registry_get_application(wiring.context, "o1", "a1")

    assert error_info.value.status == 500


def test_lifecycle_get_under_missing_organization_is_not_found(wiring: _Wiring) -> None:
    """Report a missing organization even when the name exists elsewhere.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when the lookup succeeds.
    """

    wiring.upload("o1", "a1")

    with pytest.raises(NotFoundError, match="organization 'o2'"):
        wiring.registry.registry_get_application(wiring.context, "o2", "a1")


def test_lifecycle_delete_unbinds_then_removes_workload_record_and_content(wiring: _Wiring) -> None:
    """Delete in order and report the unbound services.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate teardown results.

    Raises:
        AssertionError: Raised when artifacts remain.
    """

    wiring.upload("o1", "a1")
    wiring.stage("o1", "a1")
    wiring.registry.registry_create_service(wiring.context, "o1", "db")
    wiring.registry.registry_bind_services(wiring.context, "o1", "a1", ["db"])

    unbound = wiring.registry.registry_delete(wiring.context, "o1", "a1")

    assert unbound == ["db"]
    assert wiring.registry.registry_list_bindings("o1") == []
    assert wiring.cluster.calls[-1] == "delete o1/a1"
    assert wiring.applications.db_application_get("o1", "a1") is None
    assert not (wiring.staging_root / "o1" / "a1").exists()
    with pytest.raises(NotFoundError):
        wiring.registry.registry_delete(wiring.context, "o1", "a1")


def test_lifecycle_delete_is_best_effort_when_a_detach_fails(wiring: _Wiring) -> None:
    """Continue deleting and report only the services actually unbound.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate partial unbind report.

    Raises:
        AssertionError: Raised when deletion aborts.
    """

    wiring.upload("o1", "a1")
    for service_name in ("db", "mq", "cache"):
        wiring.registry.registry_create_service(wiring.context, "o1", service_name)
    wiring.registry.registry_bind_services(wiring.context, "o1", "a1", ["db", "mq", "cache"])
    wiring.catalog.failing_services = {"mq"}

    unbound = wiring.registry.registry_delete(wiring.context, "o1", "a1")

    assert unbound == ["db", "cache"]
    assert wiring.applications.db_application_get("o1", "a1") is None


def test_lifecycle_reuploaded_application_does_not_inherit_failed_detach(wiring: _Wiring) -> None:
    """Start a re-created application without bindings left by a failed detach.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate the new record's bindings.

    Raises:
        AssertionError: Raised when leftover bindings reappear.
    """

    wiring.upload("o1", "a1")
    wiring.registry.registry_create_service(wiring.context, "o1", "db")
    wiring.registry.registry_bind_services(wiring.context, "o1", "a1", ["db"])
    wiring.catalog.failing_services = {"db"}

    assert wiring.registry.registry_delete(wiring.context, "o1", "a1") == []

    wiring.catalog.failing_services = set()
    wiring.upload("o1", "a1")

    assert wiring.registry.registry_get_application(wiring.context, "o1", "a1").record.bound_services == ()
    assert wiring.registry.registry_list_bindings("o1") == []
    assert wiring.registry.registry_delete(wiring.context, "o1", "a1") == []


def test_lifecycle_bind_aggregates_missing_and_duplicate_services(wiring: _Wiring) -> None:
    """Reject the whole bind with one entry per problem.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate entries and unchanged bindings.

    Raises:
        AssertionError: Raised when a partial bind happens.
    """

    wiring.upload("o1", "a1")
    wiring.registry.registry_create_service(wiring.context, "o1", "db")
    wiring.registry.registry_create_service(wiring.context, "o1", "mq")
    wiring.registry.registry_bind_services(wiring.context, "o1", "a1", ["db"])

    with pytest.raises(ErrorGroup) as error_info:
        wiring.registry.registry_bind_services(wiring.context, "o1", "a1", ["mq", "nope", "db"])

    assert [entry.status for entry in error_info.value.errors()] == [404, 409]
    assert wiring.catalog.db_binding_list("o1", "a1") == ["db"]

    with pytest.raises(NotFoundError):
        wiring.registry.registry_unbind_service(wiring.context, "o1", "a1", "mq")
    wiring.registry.registry_unbind_service(wiring.context, "o1", "a1", "db")
    assert wiring.catalog.db_binding_list("o1", "a1") == []


def test_lifecycle_organization_and_service_creation_conflicts(wiring: _Wiring) -> None:
    """Reject duplicate organizations and services.

    Args:
        wiring: Registry fixture.

    Returns:
        None: Assertions validate raised errors.

    Raises:
        AssertionError: Raised when duplicates are accepted.
    """

    with pytest.raises(ConflictError):
        wiring.registry.registry_create_organization(wiring.context, "o1")
    wiring.registry.registry_create_service(wiring.context, "o1", "db")
    with pytest.raises(ConflictError):
        wiring.registry.registry_create_service(wiring.context, "o1", "db")
    with pytest.raises(NotFoundError):
        wiring.registry.registry_create_service(wiring.context, "o2", "db")

    assert wiring.registry.registry_list_organizations() == ["o1"]
    assert wiring.registry.registry_list_services("o1") == ["db"]
