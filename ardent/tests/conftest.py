"""Global pytest configuration and fixtures."""

import pytest

from ardent.core.settings.settings import configure, reload_settings
from ardent.entity.environment import reset_environment
from ardent.orm.store import MemoryStore, get_default_store, set_default_store


@pytest.fixture(autouse=True)
def ardent_environment(monkeypatch):
    """Give every test a fresh store, fast hashing settings and a new environment."""
    monkeypatch.delenv("ARDENT_CONFIG_FILE", raising=False)
    previous_store = get_default_store()
    set_default_store(MemoryStore("test"))
    configure(hash_iterations=1000)
    reset_environment()

    yield

    reset_environment()
    set_default_store(previous_store)
    reload_settings()


@pytest.fixture
def store():
    """The default store of the current test."""
    return get_default_store()
