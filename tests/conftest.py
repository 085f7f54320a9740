"""Shared pytest configuration and fixtures for the WayTooLoud test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a real microphone or speaker"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require physical audio hardware",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


# =============================================================================
# Mock Fixtures
# =============================================================================

@pytest.fixture
def fake_stream_factory():
    """Input-stream factory that records the streams it opens."""
    from tests.infrastructure.mocks.audio_mocks import FakeInputStreamFactory
    return FakeInputStreamFactory()


@pytest.fixture
def fake_player():
    """Alert player that records requests and completes them on demand."""
    from tests.infrastructure.mocks.audio_mocks import FakePlayer
    return FakePlayer()


@pytest.fixture
def fake_level_source():
    """Level source with settable activity and level."""
    from tests.infrastructure.mocks.audio_mocks import FakeLevelSource
    return FakeLevelSource()
