"""
Shared test fixtures and configuration.
"""

import asyncio
import os

import pytest

# Set test environment variables before importing app modules
os.environ["GEMINI_API_KEY"] = ""
os.environ["GROQ_API_KEY"] = ""
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/tibrah_test_data")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient

from tibrah_assistant.config import settings
from tibrah_assistant.core import ConversationStore, HealthMemory
from tibrah_assistant.llm.base import LLMProvider, LLMResponse
from tibrah_assistant.main import app
from tibrah_assistant.storage import LocalStorage


class FakeProvider(LLMProvider):
    """Scripted provider: answers `reply`, or raises `error`, after `delay` seconds."""

    def __init__(self, name: str, reply: str = "", error: Exception = None, delay: float = 0.0):
        super().__init__(api_key="test-key", model=f"{name}-test")
        self.name = name
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []

    async def chat_completion(self, messages, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=self.model)


@pytest.fixture
def fake_provider():
    return FakeProvider


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def conversation_store(storage):
    return ConversationStore(storage)


@pytest.fixture
def health_memory(storage):
    return HealthMemory(storage)


@pytest.fixture
def client(tmp_path, monkeypatch):
    """App client with the lifespan run against an empty storage directory."""
    monkeypatch.setattr(settings, "local_storage_path", str(tmp_path / "app_data"))
    with TestClient(app) as test_client:
        yield test_client
