"""
llama.cpp Adapter - In-process inference from a local GGUF model.

llama.cpp sessions keep prior turns apart from the prompt being answered,
so the conversation is split: everything but the last message becomes the
session's chat history, the last message becomes the prompt.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from llm_proxy.adapters.base import Message, Provider, ProviderAdapter
from llm_proxy.errors import ConfigurationError

logger = logging.getLogger("llm_proxy.adapters")


def convert_messages_to_chat_history(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """
    Convert messages to llama.cpp chat history items.

    System and user turns become ``{"type": role, "text": content}``,
    assistant turns become ``{"type": "model", "response": [content]}``.
    Any other role is dropped.
    """
    history: list[dict[str, Any]] = []
    for message in messages:
        if message.role in ("system", "user"):
            history.append({"type": message.role, "text": message.content})
        elif message.role == "assistant":
            history.append({"type": "model", "response": [message.content]})
    return history


class LlamaChatSession:
    """A single-use chat session over a loaded llama.cpp model."""

    def __init__(self, model: Any) -> None:
        self.model = model
        self.history: list[dict[str, Any]] = []

    def set_chat_history(self, history: list[dict[str, Any]]) -> None:
        self.history = list(history)

    def _chat_messages(self, text: str) -> list[dict[str, str]]:
        chat_messages = []
        for item in self.history:
            if item["type"] == "model":
                chat_messages.append(
                    {"role": "assistant", "content": "".join(item["response"])}
                )
            else:
                chat_messages.append({"role": item["type"], "content": item["text"]})
        chat_messages.append({"role": "user", "content": text})
        return chat_messages

    def prompt(self, text: str) -> str:
        """Answer ``text`` given the session history and record the exchange."""
        completion = self.model.create_chat_completion(messages=self._chat_messages(text))
        answer = completion["choices"][0]["message"]["content"] or ""
        self.history.append({"type": "user", "text": text})
        self.history.append({"type": "model", "response": [answer]})
        return answer


class LlamaCppAdapter(ProviderAdapter):
    """
    Adapter for a llama.cpp model loaded in-process.

    The model is loaded from disk and a new session created on every call;
    nothing is pooled between requests.
    """

    provider = Provider.LLAMA_CPP

    def _load_model(self, model_path: str) -> Any:
        from llama_cpp import Llama

        logger.debug(f"Loading llama.cpp model from {model_path}")
        # n_ctx=0 takes the context size from the model
        return Llama(model_path=model_path, n_ctx=0, verbose=False)

    def _run(self, model_path: str, messages: Sequence[Message]) -> str:
        model = self._load_model(model_path)
        session = LlamaChatSession(model)
        if len(messages) > 1:
            session.set_chat_history(convert_messages_to_chat_history(messages[:-1]))
        return session.prompt(messages[-1].content if messages else "")

    async def respond(self, messages: Sequence[Message]) -> Message:
        model_path = self.config.llama_cpp_model_path
        if not model_path:
            raise ConfigurationError(
                "LLAMA_CPP_MODEL_PATH is not set.",
                missing=["LLAMA_CPP_MODEL_PATH"],
                provider=self.provider.value,
            )

        # Loading and inference are blocking
        content = await asyncio.to_thread(self._run, model_path, list(messages))
        return Message(role="assistant", content=content)
