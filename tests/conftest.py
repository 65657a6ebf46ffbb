# tests/conftest.py
import os

# Must be set before the application (and its cached settings) is imported.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///./okr_committees_test.db")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from okr_committees.main import create_app  # noqa: E402


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for the HTTP tests.

    Entering the client runs the startup hook, which creates the schema.
    """
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
