"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import asyncio
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from carson.core.exceptions import ModelUnavailableError  # noqa: E402
from carson.core.models import Session  # noqa: E402
from carson.integrations.model_gateway import ModelResponse, PromptPayload  # noqa: E402
from config import Settings  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


# =============================================================================
# Test gateways
# =============================================================================


class FailingGateway:
    """Gateway whose backend is always down."""

    def __init__(self):
        self.calls: list[PromptPayload] = []

    async def invoke(self, payload: PromptPayload) -> ModelResponse:
        self.calls.append(payload)
        raise ModelUnavailableError("backend down")


class StaticGateway:
    """Gateway that answers by prompt purpose from a fixed table."""

    def __init__(self, responses: dict[str, str]):
        self.responses = responses
        self.calls: list[PromptPayload] = []

    async def invoke(self, payload: PromptPayload) -> ModelResponse:
        self.calls.append(payload)
        return ModelResponse(content=self.responses.get(payload.purpose, ""), model="static")


class SlowGateway:
    """Gateway that never answers within any reasonable timeout."""

    async def invoke(self, payload: PromptPayload) -> ModelResponse:
        await asyncio.sleep(10)
        return ModelResponse(content='{"quality": "excellent"}')


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def rng():
    """Seeded random source for reproducible phrase-bank choices."""
    return random.Random(42)


@pytest.fixture
def settings():
    """Settings with a short model timeout and a fixed seed."""
    return Settings(llm_timeout_seconds=0.5, random_seed=7, retention_probability=0.0)


@pytest.fixture
def failing_gateway():
    return FailingGateway()


@pytest.fixture
def slow_gateway():
    return SlowGateway()


@pytest.fixture
def make_static_gateway():
    """Factory for StaticGateway instances."""
    return StaticGateway


@pytest.fixture
def ectopic_session():
    """Fresh session on ectopic pregnancy."""
    return Session.create(
        "Ectopic Pregnancy",
        ["Risk Factors", "Clinical Presentation", "Management"],
        session_id="session-ectopic-001",
    )


@pytest.fixture
def aki_session():
    """Fresh session on acute kidney injury."""
    return Session.create(
        "Acute Kidney Injury",
        ["Pathophysiology", "Diagnosis", "Management"],
        session_id="session-aki-001",
    )
