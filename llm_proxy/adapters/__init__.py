"""
Provider Adapters - Uniform interface over the supported LLM backends:
- OpenAI (hosted API)
- Cloudflare Workers AI (edge inference)
- Ollama (local server)
- llama.cpp (in-process GGUF model)
"""

from llm_proxy.adapters.base import (
    CloudflareAdapter,
    Message,
    OllamaAdapter,
    OpenAIAdapter,
    Provider,
    ProviderAdapter,
)
from llm_proxy.adapters.llama_cpp import LlamaCppAdapter, convert_messages_to_chat_history

__all__ = [
    "CloudflareAdapter",
    "LlamaCppAdapter",
    "Message",
    "OllamaAdapter",
    "OpenAIAdapter",
    "Provider",
    "ProviderAdapter",
    "convert_messages_to_chat_history",
]
