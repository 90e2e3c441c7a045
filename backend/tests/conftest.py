import pytest
from fastapi.testclient import TestClient

from saintfest.main import app


@pytest.fixture(name="client")
def client_fixture():
    """Provide a test client; the API is stateless so no overrides are needed"""
    with TestClient(app) as client:
        yield client
