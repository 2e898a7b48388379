"""Test configuration."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv
from pytest import Config

# Settings are read from the environment at import time of app modules
os.environ["TESTING"] = "true"
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("SITE_URL", "https://example.com")

from app.core.logging import configure_logging  # noqa: E402

# Load .env.test file for tests when present
env_test_file = Path(__file__).parent.parent / ".env.test"
if env_test_file.exists():
    load_dotenv(env_test_file, override=True)

fixture = pytest.fixture
mark = pytest.mark


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


pytest_plugins: list[str] = [
    "tests.fixtures.content",
    "tests.fixtures.api",
]


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    # Configure logging for test environment
    configure_logging(testing=True)
