"""
Pytest configuration and fixtures for pspk tests.

Provides common fixtures and test utilities for unit and integration tests.
"""

import os
import tempfile
import shutil
from pathlib import Path
from typing import Generator
import pytest

from pspk.client import PspkClient
from pspk.directory import MemoryDirectory
from pspk.identity import IdentityStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test data.

    Yields:
        Path: Temporary directory path

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp(prefix="pspk_test_"))
    try:
        yield tmp
    finally:
        shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def directory() -> MemoryDirectory:
    """An empty in-memory public key directory."""
    return MemoryDirectory()


@pytest.fixture
def store(temp_dir: Path) -> IdentityStore:
    """Identity store rooted in the temporary directory."""
    return IdentityStore(temp_dir / "keys")


@pytest.fixture
def client(directory: MemoryDirectory, store: IdentityStore) -> PspkClient:
    """Client sharing one directory and one local store for all identities."""
    return PspkClient(directory, store)


@pytest.fixture
def config_env(monkeypatch):
    """Clear PSPK_* environment overrides for the duration of a test."""
    for key in list(os.environ):
        if key.startswith("PSPK_"):
            monkeypatch.delenv(key)
    return monkeypatch


# Pytest marks
def pytest_configure(config):
    """
    Configure pytest markers.

    Args:
        config: Pytest configuration object
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# Test collection hooks
def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to add markers based on test location.

    Args:
        config: Pytest configuration
        items: List of collected test items
    """
    for item in items:
        # Add unit marker to tests in unit/ directory
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
