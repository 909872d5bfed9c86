import pytest

from rightstudy.config import Settings
from rightstudy.seed import create_store
from rightstudy.store import DataStore


@pytest.fixture
def store():
    """Provide a freshly seeded store for tests."""
    return create_store()


@pytest.fixture
def empty_store():
    return DataStore()


@pytest.fixture
def settings():
    return Settings(api_key="test-key", chat_model="chat-model", voice_model="voice-model", voice_name="Zephyr")


@pytest.fixture
def no_key_settings():
    return Settings(api_key=None)
