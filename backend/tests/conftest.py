# =============================================================================
# HELPDESK API - TEST CONFIGURATION
# =============================================================================
# Global fixtures and pytest configuration.
# Every test runs against a fresh SQLite database with the external
# collaborators (storage, AI, enrichment queue) replaced by local fakes.
# =============================================================================

import os
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient

# Test environment BEFORE importing the app
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("GEMINI_API_KEY", "")

from helpdesk.auth.models import Role
from helpdesk.auth.security import create_access_token
from helpdesk.config import config
from helpdesk.database import init_database, db_session
from helpdesk.main import app
from helpdesk.services import users
from helpdesk.services.enrichment import SynchronousEnrichmentQueue
from helpdesk.services.registry import registry
from helpdesk.services.storage import LocalStorage

from factories import TicketFactory, UserFactory
from fakes import FakeAnalyzer


# =============================================================================
# DATABASE AND SERVICES
# =============================================================================

@pytest.fixture(autouse=True)
def test_database(tmp_path, monkeypatch) -> str:
    """Fresh SQLite file per test, schema created, no bootstrap admin."""
    db_path = str(tmp_path / "helpdesk_test.db")
    monkeypatch.setattr(config, "DB_TYPE", "sqlite")
    monkeypatch.setattr(config, "DB_PATH", db_path)
    monkeypatch.setattr(config, "ADMIN_EMAIL", "")
    monkeypatch.setattr(config, "ADMIN_PASSWORD", "")
    init_database()
    return db_path


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(base_dir=str(tmp_path / "uploads"), base_url="http://testserver/uploads")


@pytest.fixture
def analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def enrichment_queue(analyzer) -> SynchronousEnrichmentQueue:
    return SynchronousEnrichmentQueue(analyzer=analyzer)


@pytest.fixture(autouse=True)
def service_overrides(storage, analyzer, enrichment_queue):
    """Route every collaborator lookup to the fakes."""
    registry.override('storage', storage)
    registry.override('ai', analyzer)
    registry.override('enrichment_queue', enrichment_queue)
    yield
    registry.clear_all_overrides()


@pytest.fixture
def db():
    """Connection for direct service-level tests."""
    with db_session() as conn:
        yield conn


# =============================================================================
# CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    TestClient for synchronous API calls.
    Function scope: the auth cookie must not leak between tests.
    """
    c = TestClient(app)
    yield c


# =============================================================================
# USERS AND TOKENS
# =============================================================================

def _create_user(role: Role, **overrides) -> Dict:
    data = UserFactory(role=role.value, **overrides)
    with db_session() as conn:
        return users.create_user(
            conn,
            email=data["email"],
            password=data["password"],
            name=data["name"],
            role=role,
            phone=data["phone"],
        )


def _headers(user: Dict) -> Dict[str, str]:
    token, _ = create_access_token(user["id"], user["email"], Role(user["role"]))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user():
    """Factory fixture: make_user(Role.TEAM, name="...") -> user dict."""
    return _create_user


@pytest.fixture
def customer() -> Dict:
    return _create_user(Role.CUSTOMER, name="Alice Customer")


@pytest.fixture
def other_customer() -> Dict:
    return _create_user(Role.CUSTOMER, name="Bob Customer")


@pytest.fixture
def team_member() -> Dict:
    return _create_user(Role.TEAM, name="Tom Agent")


@pytest.fixture
def admin() -> Dict:
    return _create_user(Role.ADMIN, name="Ada Admin")


@pytest.fixture
def customer_headers(customer) -> Dict[str, str]:
    return _headers(customer)


@pytest.fixture
def other_customer_headers(other_customer) -> Dict[str, str]:
    return _headers(other_customer)


@pytest.fixture
def team_headers(team_member) -> Dict[str, str]:
    return _headers(team_member)


@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return _headers(admin)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def create_ticket(client: TestClient):
    """
    Factory fixture posting a ticket through the API.

    Usage:
        ticket = create_ticket(customer_headers, title="Login broken")
    """
    def _create(headers: Dict[str, str], **fields) -> Dict:
        payload = TicketFactory(**fields)
        response = client.post("/api/v1/tickets", data=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


# =============================================================================
# MARKER CONFIGURATION
# =============================================================================

def pytest_configure(config):
    """
    Register custom markers.
    """
    config.addinivalue_line(
        "markers", "slow: tests that take longer"
    )
    config.addinivalue_line(
        "markers", "integration: API tests against the database"
    )
    config.addinivalue_line(
        "markers", "unit: isolated unit tests"
    )
