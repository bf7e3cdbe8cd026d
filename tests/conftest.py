"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import patch
from freezegun import freeze_time

from tests.utils.helpers import FakeSupabase

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")


@pytest.fixture
def fake_supabase():
    """Install a scripted Supabase client; call with {table: [responses...]}."""
    patchers = []

    def install(tables: dict) -> FakeSupabase:
        client = FakeSupabase(tables)
        patcher = patch(
            "brokerage.services.supabase_client.get_supabase_client",
            return_value=client,
        )
        patcher.start()
        patchers.append(patcher)
        return client

    yield install

    for patcher in patchers:
        patcher.stop()


@pytest.fixture
def digital_required(monkeypatch):
    monkeypatch.setenv("PROPERTY_PUBLISH_REQUIRE_DIGITAL_AUTHORIZATION", "true")


@pytest.fixture
def digital_optional(monkeypatch):
    monkeypatch.setenv("PROPERTY_PUBLISH_REQUIRE_DIGITAL_AUTHORIZATION", "false")


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
