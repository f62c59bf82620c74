# Test Configuration
"""Pytest fixtures for Kalk API tests."""

from types import SimpleNamespace
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from kalk_api.main import app
from kalk_api.models import AuthUser
from kalk_api.services.supabase_client import supabase_client
from kalk_api.services.table_names import table_name_resolver

TEST_TOKEN = "test-access-token"
TEST_EMAIL = "pilot@example.no"


def make_select(responses: Optional[Dict[str, Any]] = None):
    """
    Build a fake ``select`` that answers per table.

    Each value is either a list of rows or an exception instance to raise.
    Tables not listed return no rows.
    """
    responses = responses or {}

    async def _select(table, columns="*", filters=None, limit=None, token=None, use_service_key=False):
        answer = responses.get(table, [])
        if isinstance(answer, Exception):
            raise answer
        return answer

    return _select


@pytest.fixture(autouse=True)
def _reset_table_name_cache():
    table_name_resolver.clear()
    yield
    table_name_resolver.clear()


@pytest.fixture
def client():
    """Test client (lifespan not started)."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {TEST_TOKEN}"}


@pytest.fixture
def auth_user():
    return AuthUser(id="5f0c6a9e-0000-4000-8000-000000000001", email=TEST_EMAIL)


@pytest.fixture
def mock_supabase(auth_user):
    """Patch the global database client's methods with AsyncMocks."""
    with patch.object(supabase_client, "get_user", AsyncMock(return_value=auth_user)) as get_user, \
            patch.object(supabase_client, "select", AsyncMock(side_effect=make_select())) as select, \
            patch.object(supabase_client, "update", AsyncMock(return_value=[])) as update:
        yield SimpleNamespace(get_user=get_user, select=select, update=update)


@pytest.fixture
def editor_rows():
    """users-table answer for a user allowed to edit markers."""
    return [{"email": TEST_EMAIL, "can_edit_markers": True}]


@pytest.fixture
def sample_water_rows():
    return [
        {"id": 1, "name": "Storvatnet", "latitude": 61.2, "longitude": 9.1, "fylke": "Innlandet"},
        {"id": 2, "name": "Fjellvatn", "latitude": 61.4, "longitude": 9.3, "fylke": "Innlandet"},
        {"id": 3, "name": "Vatn", "latitude": 61.5, "longitude": 9.0, "fylke": "Innlandet"},
    ]


@pytest.fixture
def sample_landing_rows():
    return [
        {"id": 10, "lp": "LP 12", "kode": "AK-01", "latitude": 61.3, "longitude": 9.2},
        {"id": 11, "lp": "Vatnsenden", "kode": None, "latitude": 61.1, "longitude": 9.4},
    ]
