"""Shared pytest fixtures for DemandCast tests."""

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from demandcast.core.config import get_settings
from demandcast.main import app


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def settings_override(monkeypatch):
    """Apply environment overrides to a fresh Settings instance.

    Usage: settings_override(FORECAST_TEST_RATIO="0.5")
    """

    def _override(**env: str):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()
        return get_settings()

    yield _override
    get_settings.cache_clear()


class FakeChatClient:
    """Stand-in for the OpenAI client recording chat.completions calls."""

    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        usage = SimpleNamespace(prompt_tokens=12, completion_tokens=8, total_tokens=20)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            model=f"{kwargs['model']}-2024-08-06",
            usage=usage,
        )


@pytest.fixture
def fake_chat_client():
    """Factory for FakeChatClient instances."""
    return FakeChatClient
