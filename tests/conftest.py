import pytest
from fastapi.testclient import TestClient

from core.security import Roles, create_access_token
from main import create_app


@pytest.fixture(scope="session")
def app():
    return create_app()


@pytest.fixture(scope="session")
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Factory for bearer headers carrying the given roles."""
    def make(*roles: str, subject: str = "test-user") -> dict[str, str]:
        token = create_access_token(subject, roles)
        return {"Authorization": f"Bearer {token}"}
    return make


@pytest.fixture
def reader(auth_headers):
    return auth_headers(Roles.READER)


@pytest.fixture
def writer(auth_headers):
    return auth_headers(Roles.WRITER)
