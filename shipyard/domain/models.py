"""Typed domain models shared across runtime layers.

These contracts travel between the API, lifecycle, adapter and db layers and
carry no persistence or transport concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class HealthStatus:
    """Database readiness reported by the health endpoint.

    Attributes:
        status: `ok` when the database is reachable and the schema is complete,
            `schema_incomplete` when lifecycle tables are missing.
        detail: Additional message suitable for operational diagnostics.
        schema_revision: Applied alembic revision, None for unversioned schemas.
        missing_tables: Lifecycle tables absent from the database.
    """

    status: str
    detail: str
    schema_revision: str | None = None
    missing_tables: tuple[str, ...] = ()


@dataclass(frozen=True)
class SourceReference:
    """Code location used to build an application.

    Attributes:
        url: Location the build pipeline fetches source from.
        revision: Revision identifier of the source content.
    """

    url: str
    revision: str


@dataclass(frozen=True)
class ApplicationRecord:
    """Persisted application aggregate state.

    Status is intentionally absent; it is computed from the cluster on read.

    Attributes:
        organization: Isolation scope owning the application.
        name: Application name, unique within the organization.
        desired_instances: User-requested replica count.
        route: Hostname assigned at staging time, empty before.
        source_reference: Source used for the last accepted stage.
        image_reference: Build artifact identifier of the last accepted stage.
        bound_services: Names of services bound to the application.
        created_at_utc: Record creation timestamp.
        updated_at_utc: Last mutation timestamp.
    """

    organization: str
    name: str
    desired_instances: int
    route: str = ""
    source_reference: SourceReference | None = None
    image_reference: str | None = None
    bound_services: tuple[str, ...] = ()
    created_at_utc: datetime | None = None
    updated_at_utc: datetime | None = None


@dataclass(frozen=True)
class ApplicationSnapshot:
    """Read projection of an application with its live status.

    Attributes:
        record: Persisted application state.
        status: Live `"<ready>/<desired>"` status string.
    """

    record: ApplicationRecord
    status: str


@dataclass(frozen=True)
class StagingRequest:
    """Transient request to build an application from a source reference.

    Attributes:
        name: Application name.
        organization: Organization name.
        source_reference: Source to build.
        route: Target hostname; blank selects the default route.
        image_reference: Target image identifier; blank derives one.
    """

    name: str
    organization: str
    source_reference: SourceReference
    route: str = ""
    image_reference: str = ""


@dataclass(frozen=True)
class BuildRequest:
    """Fully resolved pipeline submission.

    Attributes:
        organization: Organization (cluster namespace) of the workload.
        application_name: Application name.
        source_reference: Source to build.
        route: Resolved hostname.
        image_target: Fully qualified image the pipeline must produce.
        instances: Replica count to deploy with.
    """

    organization: str
    application_name: str
    source_reference: SourceReference
    route: str
    image_target: str
    instances: int


@dataclass(frozen=True)
class IngestResult:
    """Outcome of a successful code package upload.

    Attributes:
        record: Created or updated application record.
        source_reference: Content reference for the unpacked package.
        route: Route the application will get when staged.
    """

    record: ApplicationRecord
    source_reference: SourceReference
    route: str


@dataclass(frozen=True)
class ServiceBinding:
    """Relation between an application and a backing service.

    Attributes:
        organization: Shared organization of both sides.
        application_name: Bound application.
        service_name: Bound service.
    """

    organization: str
    application_name: str
    service_name: str


@dataclass(frozen=True)
class UnbindReport:
    """Result of detaching every binding of an application.

    Attributes:
        unbound: Names detached successfully.
        failed: Names whose detach failed, mapped to the failure text.
    """

    unbound: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
