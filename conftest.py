import shutil
from pathlib import Path

import pytest

from backend import storage
from copyworx.kv import MemoryKeyValueStore
from copyworx.models import Project
from copyworx.storage import LocalStorage

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe and re-init data-tests/ before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    storage.init_storage(TEST_DATA_DIR)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture
def local() -> LocalStorage:
    """Fresh in-memory local storage."""
    return LocalStorage(MemoryKeyValueStore())


@pytest.fixture
def project(local: LocalStorage) -> Project:
    return local.projects.create_project("Acme")
