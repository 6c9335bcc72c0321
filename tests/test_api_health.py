"""Tests for API health and info endpoint behavior.

These tests validate deterministic response behavior for healthy and
database-unavailable states.
"""

from fastapi.testclient import TestClient

from shipyard.api.application import create_api_application
from shipyard.config import AppSettings
from shipyard.domain import HealthStatus


class _HealthyDatabaseService:
    """Test double that simulates a healthy database target."""

    def db_connection_label(self) -> str:
        """Return deterministic target label.

        Returns:
            str: Health target label.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return "postgresql://test"

    def db_check_health(self) -> HealthStatus:
        """Return healthy database result.

        Returns:
            HealthStatus: Healthy DB response.

        Raises:
            ConnectionError: Never raised by this test double.
        """

        return HealthStatus(status="ok", detail="database connectivity verified")


class _FailingDatabaseService:
    """Test double that simulates a database connectivity failure."""

    def db_connection_label(self) -> str:
        return "postgresql://test"

    def db_check_health(self) -> HealthStatus:
        """Raise deterministic connection error.

        Raises:
            ConnectionError: Always raised by this test double.
        """

        raise ConnectionError("database connectivity check failed")


class _UnmigratedDatabaseService:
    """Test double for a reachable database without lifecycle tables."""

    def db_connection_label(self) -> str:
        return "postgresql://test"

    def db_check_health(self) -> HealthStatus:
        return HealthStatus(
            status="schema_incomplete",
            detail="missing lifecycle tables: application",
            missing_tables=("application",),
        )


class _RegistryStub:
    """Minimal registry stub for API factory dependency injection."""

    def registry_list_organizations(self) -> list[str]:
        return ["o1"]


def _build_settings() -> AppSettings:
    """Create test settings object.

    Returns:
        AppSettings: Deterministic test settings for API creation.

    Raises:
        ValueError: Raised by AppSettings when values are invalid.
    """

    return AppSettings(
        environment_name="test",
        database_url="sqlite:///:memory:",
        route_domain="apps.example.test",
    )


def test_api_health_returns_success_when_database_is_available() -> None:
    """Return HTTP 200 and healthy payload when DB service reports success.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _HealthyDatabaseService(), _RegistryStub())
    client = TestClient(application)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["app"] == "up"
    assert response.json()["database"] == "ok"
    assert response.json()["schema"]["missing_tables"] == []


def test_api_health_returns_service_unavailable_when_database_is_down() -> None:
    """Return HTTP 503 and degraded payload when DB service reports failure.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _FailingDatabaseService(), _RegistryStub())
    client = TestClient(application)

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "down"


def test_api_info_reports_version_and_environment() -> None:
    """Return platform info under the versioned prefix with security headers.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _HealthyDatabaseService(), _RegistryStub())
    client = TestClient(application)

    response = client.get("/api/v1/info")

    assert response.status_code == 200
    assert response.json()["environment"] == "test"
    assert response.json()["version"]
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_api_unknown_route_renders_error_envelope() -> None:
    """Render routing misses through the error envelope.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _HealthyDatabaseService(), _RegistryStub())
    client = TestClient(application)

    response = client.get("/api/v1/nowhere")

    assert response.status_code == 404
    assert response.json()["Errors"][0]["Status"] == 404
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_api_health_returns_service_unavailable_when_schema_is_incomplete() -> None:
    """Return HTTP 503 with the missing tables when migrations were not applied.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(_build_settings(), _UnmigratedDatabaseService(), _RegistryStub())
    client = TestClient(application)

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "schema_incomplete"
    assert response.json()["schema"] == {"revision": None, "missing_tables": ["application"]}
