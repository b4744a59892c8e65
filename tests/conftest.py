"""
Global pytest configuration and fixtures for the LeadFlow API test suite.
"""

from typing import Any, Dict, Iterator
from unittest.mock import AsyncMock, Mock

import jwt
import pytest
from fastapi.testclient import TestClient

from leadflow.core.database import RowGateway
from leadflow.main import app

# Import fixtures from fixture modules
from tests.fixtures.authorization_fixtures import *  # noqa: F403, F401


@pytest.fixture
def mock_gateway() -> Mock:
    """
    Mock RowGateway for unit tests that assert on the exact remote calls.
    """
    gateway = Mock(spec=RowGateway)
    gateway.select = AsyncMock(return_value=[])
    gateway.select_one = AsyncMock(return_value=None)
    gateway.insert = AsyncMock(return_value=[])
    gateway.update = AsyncMock(return_value=[])
    gateway.delete = AsyncMock(return_value=[])
    gateway.rpc = AsyncMock(return_value=None)
    return gateway


@pytest.fixture
def test_jwt_secret() -> str:
    """JWT secret for generating test tokens."""
    return "test-secret-key-for-testing-only-32-chars"


@pytest.fixture
def valid_jwt_payload() -> Dict[str, Any]:
    """Valid JWT payload for testing."""
    return {
        "sub": "user-manager",
        "email": "manager@example.com",
        "aud": "authenticated",
        "iss": "supabase",
        "role": "authenticated",
    }


@pytest.fixture
def valid_jwt_token(test_jwt_secret: str, valid_jwt_payload: Dict[str, Any]) -> str:
    return jwt.encode(valid_jwt_payload, test_jwt_secret, algorithm="HS256")


@pytest.fixture
def auth_headers(valid_jwt_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {valid_jwt_token}"}


@pytest.fixture
def client() -> Iterator[TestClient]:
    """FastAPI test client; dependency overrides are cleared afterwards."""
    yield TestClient(app)
    app.dependency_overrides.clear()
