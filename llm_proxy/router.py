"""
Provider Router - Picks the one backend that answers a request.

Selection:
- An explicit override (LLM_PROXY_PROVIDER, or the legacy PROVIDER) always
  wins and never falls through to automatic selection
- Otherwise the first fully configured provider in precedence order
  (openai, cloudflare, ollama, llama.cpp) is used

Configuration is re-read and selection re-evaluated on every call.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from llm_proxy.adapters.base import (
    CloudflareAdapter,
    Message,
    OllamaAdapter,
    OpenAIAdapter,
    Provider,
    ProviderAdapter,
    to_messages,
)
from llm_proxy.adapters.llama_cpp import LlamaCppAdapter
from llm_proxy.config import ProviderConfig
from llm_proxy.errors import (
    ConfigurationError,
    NoProviderAvailableError,
    UnrecognizedProviderError,
)

logger = logging.getLogger("llm_proxy.router")


# Automatic selection order, with the variables each provider needs
SELECTION_RULES: tuple[tuple[Provider, tuple[str, ...]], ...] = (
    (Provider.OPENAI, ("OPENAI_API_KEY",)),
    (
        Provider.CLOUDFLARE,
        ("CLOUDFLARE_ACCOUNT_ID", "CLOUDFLARE_AUTH_KEY", "CLOUDFLARE_MODEL"),
    ),
    (Provider.OLLAMA, ("OLLAMA_URI",)),
    (Provider.LLAMA_CPP, ("LLAMA_CPP_MODEL_PATH",)),
)

ADAPTER_FACTORIES: dict[Provider, Callable[[ProviderConfig], ProviderAdapter]] = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.CLOUDFLARE: CloudflareAdapter,
    Provider.OLLAMA: OllamaAdapter,
    Provider.LLAMA_CPP: LlamaCppAdapter,
}


class ProviderRouter:
    """
    Routes each request to exactly one provider.

    Holds only the (immutable) selection rules and adapter factories, so a
    single router can serve concurrent requests.
    """

    def __init__(
        self,
        rules: Sequence[tuple[Provider, tuple[str, ...]]] = SELECTION_RULES,
        factories: Mapping[Provider, Callable[[ProviderConfig], ProviderAdapter]] | None = None,
    ) -> None:
        self.rules = tuple(rules)
        self.factories = dict(factories or ADAPTER_FACTORIES)

    def required(self, provider: Provider) -> tuple[str, ...]:
        """Variables a provider needs before it can be selected."""
        for candidate, variables in self.rules:
            if candidate == provider:
                return variables
        return ()

    def missing(self, provider: Provider, config: ProviderConfig) -> list[str]:
        """List the required variables that are unset or empty."""
        return [name for name in self.required(provider) if not config.value(name)]

    def select(self, config: ProviderConfig) -> Provider:
        """
        Choose the provider for a request.

        Args:
            config: Configuration snapshot for this request

        Returns:
            Selected provider

        Raises:
            UnrecognizedProviderError: Override names no known provider
            ConfigurationError: Overridden provider is not fully configured
            NoProviderAvailableError: No provider is fully configured
        """
        override = (config.provider or "").strip().lower()

        if override:
            try:
                provider = Provider(override)
            except ValueError:
                raise UnrecognizedProviderError(
                    config.provider or "",
                    [p.value for p in Provider],
                ) from None

            missing = self.missing(provider, config)
            if missing:
                raise ConfigurationError.for_provider(provider.value, missing)

            logger.debug(f"Provider forced by override: {provider.value}")
            return provider

        for provider, _ in self.rules:
            if not self.missing(provider, config):
                logger.debug(f"Provider selected: {provider.value}")
                return provider

        raise NoProviderAvailableError()

    def get_adapter(self, provider: Provider, config: ProviderConfig) -> ProviderAdapter:
        """Create a fresh adapter for a provider."""
        return self.factories[provider](config)

    async def generate(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        *,
        config: ProviderConfig | None = None,
    ) -> Message:
        """
        Generate an assistant reply with the selected provider.

        Args:
            messages: Conversation messages (Message or role/content mappings)
            config: Configuration to use. Read from the environment if omitted.

        Returns:
            Assistant message
        """
        if config is None:
            config = ProviderConfig.from_env()
        provider = self.select(config)
        adapter = self.get_adapter(provider, config)
        return await adapter.respond(to_messages(messages))

    def __repr__(self) -> str:
        order = [p.value for p, _ in self.rules]
        return f"<ProviderRouter order={order}>"


# Singleton router
_default_router: ProviderRouter | None = None


def get_router() -> ProviderRouter:
    """Get the default provider router."""
    global _default_router
    if _default_router is None:
        _default_router = ProviderRouter()
    return _default_router


def reset_router() -> None:
    """Reset the default router."""
    global _default_router
    _default_router = None


async def generate(
    messages: Sequence[Message | Mapping[str, Any]],
    *,
    config: ProviderConfig | None = None,
) -> Message:
    """Generate a response using whichever LLM the configuration selects."""
    return await get_router().generate(messages, config=config)
