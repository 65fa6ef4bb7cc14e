"""Pytest configuration and fixtures."""

import os
from typing import List

import httpx
import pytest

from llm_backend.backends.base import BaseBackend
from llm_backend.config import get_settings
from llm_backend.config.settings import BackendConfig
from llm_backend.schemas.llm import BackendType


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep host env vars and .env files out of settings."""
    for key in list(os.environ):
        if key.upper().startswith("LLM_BACKEND_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_config(name: str, type: BackendType = BackendType.OPENAI, **kwargs) -> BackendConfig:
    kwargs.setdefault("base_url", "http://backend.test/v1")
    return BackendConfig(name=name, type=type, **kwargs)


class ScriptedBackend(BaseBackend):
    """Backend whose answers come from a list of outcomes.

    ``"ok"`` produces a success, any other string a failed response, and an
    exception instance is raised. The last outcome repeats.
    """

    def __init__(self, name: str, outcomes=None, priority: int = 100, enabled: bool = True):
        super().__init__(
            make_config(name, priority=priority, enabled=enabled),
            transport=httpx.MockTransport(lambda request: httpx.Response(200)),
        )
        self.outcomes = list(outcomes or ["ok"])
        self.calls = 0
        self.available = True

    async def _probe(self, timeout: float) -> bool:
        if isinstance(self.available, BaseException):
            raise self.available
        return self.available

    async def _next(self, request):
        self.calls += 1
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome == "ok":
            return self.success_response(f"{self.name} answered", prompt_tokens=3, completion_tokens=4)
        return self.error_response(outcome)

    _complete = _next
    _chat = _next


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def scripted_backend():
    return ScriptedBackend


@pytest.fixture
def backend_config():
    return make_config
