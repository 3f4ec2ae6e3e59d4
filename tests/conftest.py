"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add app and test directories to path
TEST_DIR = Path(__file__).parent
APP_DIR = TEST_DIR.parent / "app"
sys.path.insert(0, str(APP_DIR))
sys.path.insert(0, str(TEST_DIR))

from cloud_mcp.tools import ToolServices
from fakes import FakeClientFactory, FakeExecutor


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as an async test"
    )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def fake_clients() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def services(fake_executor: FakeExecutor, fake_clients: FakeClientFactory) -> ToolServices:
    return ToolServices(executor=fake_executor, clients=fake_clients)
