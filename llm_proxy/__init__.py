"""
LLM Proxy - One call, whichever LLM is configured.

generate() takes a conversation and returns the assistant's reply from
exactly one backend, chosen from the environment:
- OpenAI (OPENAI_API_KEY)
- Cloudflare Workers AI (CLOUDFLARE_ACCOUNT_ID, CLOUDFLARE_AUTH_KEY, CLOUDFLARE_MODEL)
- Ollama (OLLAMA_URI)
- llama.cpp (LLAMA_CPP_MODEL_PATH)

Set LLM_PROXY_PROVIDER to force one of them.
"""

from llm_proxy.adapters.base import Message, Provider
from llm_proxy.config import ProviderConfig
from llm_proxy.errors import (
    BackendError,
    ConfigurationError,
    LLMProxyError,
    NoProviderAvailableError,
    UnrecognizedProviderError,
)
from llm_proxy.router import ProviderRouter, generate, get_router

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "ConfigurationError",
    "LLMProxyError",
    "Message",
    "NoProviderAvailableError",
    "Provider",
    "ProviderConfig",
    "ProviderRouter",
    "UnrecognizedProviderError",
    "generate",
    "get_router",
    "__version__",
]
