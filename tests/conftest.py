"""Shared test fixtures for pytest."""

from unittest.mock import AsyncMock, Mock

import pytest

import core.dependencies as deps_module
from products.models import LookupOutcome
from tests.factories import make_product_record


@pytest.fixture(autouse=True)
def reset_dependency_singletons():
    """Drop module-level service instances so each test wires its own."""
    names = ("_product_client", "_coordinator", "_capture_session", "_posthog_client")
    for name in names:
        setattr(deps_module, name, None)
    yield
    for name in names:
        setattr(deps_module, name, None)


@pytest.fixture
def mock_product_client():
    """Create a mock OpenFoodFacts client."""
    client = AsyncMock()
    client.fetch_product = AsyncMock(return_value=LookupOutcome.not_found("0"))
    client.check_api = AsyncMock(return_value=True)
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_posthog_client():
    """Mock PostHog client."""
    client = Mock()
    client.capture = Mock()
    client.flush = Mock()
    client.shutdown = Mock()
    return client


@pytest.fixture
def sample_product_record():
    """Create a sample product record for testing."""
    return make_product_record()
