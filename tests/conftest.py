"""
Shared fixtures for proxy tests.

Every test starts from an environment with no provider variables set and
no .env file loaded. Backends are faked at the client boundary:
- httpx requests go through an httpx.MockTransport
- openai.AsyncOpenAI is replaced by a recording fake
- llama.cpp model loading returns an in-memory fake model
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from llm_proxy.adapters import llama_cpp
from llm_proxy.adapters.llama_cpp import LlamaChatSession, LlamaCppAdapter
from llm_proxy.config import ENV_VARIABLES, LEGACY_PROVIDER_ENV, PROVIDER_ENV
from llm_proxy.router import reset_router

PROXY_VARIABLES = [PROVIDER_ENV, LEGACY_PROVIDER_ENV, *ENV_VARIABLES.values()]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Remove provider variables and skip .env loading."""
    for name in PROXY_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("dotenv.load_dotenv", lambda *args, **kwargs: False)
    reset_router()
    yield
    reset_router()


@pytest.fixture
def cloudflare_env() -> dict[str, str]:
    """A complete set of Cloudflare variables."""
    return {
        "CLOUDFLARE_ACCOUNT_ID": "acct-123",
        "CLOUDFLARE_AUTH_KEY": "cf-token",  # allow-secret
        "CLOUDFLARE_MODEL": "@cf/meta/llama-3-8b-instruct",
    }


class FakeHTTPBackend:
    """Answers every HTTP request with a canned JSON payload."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = {}
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def http_backend(monkeypatch: pytest.MonkeyPatch) -> FakeHTTPBackend:
    """Route all httpx.AsyncClient traffic to a fake backend."""
    backend = FakeHTTPBackend()
    transport = httpx.MockTransport(backend.handler)
    real_client = httpx.AsyncClient

    def client_factory(*args: Any, **kwargs: Any) -> httpx.AsyncClient:
        kwargs["transport"] = transport
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)
    return backend


def chat_completion(role: str = "assistant", content: str | None = "Hello from OpenAI") -> Any:
    """Build an object shaped like an OpenAI chat completion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(role=role, content=content))]
    )


@pytest.fixture
def openai_client(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Replace openai.AsyncOpenAI with a fake that records its usage."""
    import openai

    fake = SimpleNamespace(
        create=AsyncMock(return_value=chat_completion()),
        init_kwargs=[],
        open_clients=0,
    )

    class FakeAsyncOpenAI:
        def __init__(self, **kwargs: Any) -> None:
            fake.init_kwargs.append(kwargs)
            self.chat = SimpleNamespace(completions=SimpleNamespace(create=fake.create))

        async def __aenter__(self) -> FakeAsyncOpenAI:
            fake.open_clients += 1
            return self

        async def __aexit__(self, *args: Any) -> None:
            fake.open_clients -= 1

    monkeypatch.setattr(openai, "AsyncOpenAI", FakeAsyncOpenAI)
    return fake


class FakeLlama:
    """Stands in for llama_cpp.Llama."""

    def __init__(self, model_path: str, reply: str) -> None:
        self.model_path = model_path
        self.reply = reply
        self.calls: list[list[dict[str, str]]] = []

    def create_chat_completion(self, messages: list[dict[str, str]], **kwargs: Any) -> dict[str, Any]:
        self.calls.append(messages)
        return {"choices": [{"message": {"role": "assistant", "content": self.reply}}]}


@pytest.fixture
def llama_runtime(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Fake model loading and record every session the adapter creates."""
    runtime = SimpleNamespace(reply="Hello from llama.cpp", models=[], sessions=[], error=None)

    def load_model(self: LlamaCppAdapter, model_path: str) -> FakeLlama:
        if runtime.error is not None:
            raise runtime.error
        model = FakeLlama(model_path, runtime.reply)
        runtime.models.append(model)
        return model

    class RecordingSession(LlamaChatSession):
        def __init__(self, model: Any) -> None:
            super().__init__(model)
            self.seeded: list[dict[str, Any]] | None = None
            self.prompts: list[str] = []
            runtime.sessions.append(self)

        def set_chat_history(self, history: list[dict[str, Any]]) -> None:
            self.seeded = list(history)
            super().set_chat_history(history)

        def prompt(self, text: str) -> str:
            self.prompts.append(text)
            return super().prompt(text)

    monkeypatch.setattr(LlamaCppAdapter, "_load_model", load_model)
    monkeypatch.setattr(llama_cpp, "LlamaChatSession", RecordingSession)
    return runtime
