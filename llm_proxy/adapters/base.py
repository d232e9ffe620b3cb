"""
Provider Adapters - One interface over every supported backend.

Each adapter takes the full conversation and returns a single assistant
message, performing exactly one call against its backend:
- OpenAI chat completions (hosted)
- Cloudflare Workers AI (edge)
- Ollama (local server)

The in-process llama.cpp adapter lives in adapters.llama_cpp so that its
runtime is only imported when it is actually used.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from llm_proxy.config import ProviderConfig
from llm_proxy.errors import BackendError, ConfigurationError

logger = logging.getLogger("llm_proxy.adapters")


class Provider(str, Enum):
    """Supported providers, by canonical override name."""

    OPENAI = "openai"
    CLOUDFLARE = "cloudflare"
    OLLAMA = "ollama"
    LLAMA_CPP = "llama.cpp"


# Default models per provider
DEFAULT_MODELS: dict[Provider, str] = {
    Provider.OPENAI: "gpt-4o-mini",
    Provider.OLLAMA: "llama3.1",
}

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"


@dataclass(frozen=True)
class Message:
    """A message in the conversation."""

    role: str  # "user", "assistant", "system"
    content: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        return cls(role=str(data["role"]), content=str(data.get("content") or ""))

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def to_messages(messages: Sequence[Message | Mapping[str, Any]]) -> list[Message]:
    """Normalize a mixed sequence of messages and plain mappings."""
    return [m if isinstance(m, Message) else Message.from_dict(m) for m in messages]


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Implementations provide respond(), which turns a conversation into one
    assistant message. Errors from the underlying client propagate as-is.
    """

    provider: Provider

    def __init__(self, config: ProviderConfig) -> None:
        self.config = config

    @abstractmethod
    async def respond(self, messages: Sequence[Message]) -> Message:
        """
        Generate the next assistant message.

        Args:
            messages: Conversation messages, oldest first

        Returns:
            Assistant reply
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} provider={self.provider.value}>"


# ============================================================================
# Provider Implementations
# ============================================================================


class OpenAIAdapter(ProviderAdapter):
    """Adapter for the OpenAI chat completions API."""

    provider = Provider.OPENAI

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self.model = config.openai_model or DEFAULT_MODELS[Provider.OPENAI]

    async def respond(self, messages: Sequence[Message]) -> Message:
        from openai import AsyncOpenAI

        async with AsyncOpenAI(
            api_key=self.config.openai_api_key,  # allow-secret
            base_url=self.config.openai_base_url,
        ) as client:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[msg.to_dict() for msg in messages],
            )

        if not response.choices:
            raise BackendError(
                f"{self.provider.value} returned no choices",
                provider=self.provider.value,
            )

        message = response.choices[0].message
        return Message(role=message.role, content=message.content or "")


class CloudflareAdapter(ProviderAdapter):
    """Adapter for Cloudflare Workers AI (edge inference)."""

    provider = Provider.CLOUDFLARE

    @property
    def url(self) -> str:
        return (
            f"{CLOUDFLARE_API_BASE}/accounts/{self.config.cloudflare_account_id}"
            f"/ai/run/{self.config.cloudflare_model}"
        )

    async def respond(self, messages: Sequence[Message]) -> Message:
        import httpx

        async with httpx.AsyncClient(timeout=None) as client:
            response = await client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.config.cloudflare_auth_key}",
                    "Content-Type": "application/json",
                },
                json={"messages": [msg.to_dict() for msg in messages]},
            )
            response.raise_for_status()
            data = response.json()

        # A logical failure degrades to an empty reply instead of raising
        if not data.get("success"):
            logger.warning(
                f"{self.provider.value} reported failure, returning empty reply: "
                f"{data.get('errors') or 'no details'}"
            )
            return Message(role="assistant", content="")

        return Message(role="assistant", content=data["result"]["response"])


class OllamaAdapter(ProviderAdapter):
    """Adapter for an Ollama server."""

    provider = Provider.OLLAMA

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        if not config.ollama_uri:
            raise ConfigurationError(
                "OLLAMA_URI is not set.",
                missing=["OLLAMA_URI"],
                provider=self.provider.value,
            )
        self.base_url = config.ollama_uri.rstrip("/")
        self.model = config.ollama_model or DEFAULT_MODELS[Provider.OLLAMA]

    async def respond(self, messages: Sequence[Message]) -> Message:
        import httpx

        async with httpx.AsyncClient(timeout=None) as client:
            response = await client.post(
                f"{self.base_url}/api/chat",
                json={
                    "model": self.model,
                    "messages": [msg.to_dict() for msg in messages],
                    "stream": False,
                },
            )
            response.raise_for_status()
            data = response.json()

        return Message.from_dict(data["message"])
