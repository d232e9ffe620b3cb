"""Provider configuration read from the process environment.

A fresh ProviderConfig is built for every request, so changes to the
environment between calls are always picked up.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping

# Override switch. The legacy name is still honoured when the new one is unset.
PROVIDER_ENV = "LLM_PROXY_PROVIDER"
LEGACY_PROVIDER_ENV = "PROVIDER"

# Field name -> environment variable
ENV_VARIABLES: dict[str, str] = {
    "openai_api_key": "OPENAI_API_KEY",  # allow-secret
    "openai_base_url": "OPENAI_BASE_URL",
    "openai_model": "OPENAI_MODEL",
    "cloudflare_account_id": "CLOUDFLARE_ACCOUNT_ID",
    "cloudflare_auth_key": "CLOUDFLARE_AUTH_KEY",  # allow-secret
    "cloudflare_model": "CLOUDFLARE_MODEL",
    "ollama_uri": "OLLAMA_URI",
    "ollama_model": "OLLAMA_MODEL",
    "llama_cpp_model_path": "LLAMA_CPP_MODEL_PATH",
}


def _read(environ: Mapping[str, str], name: str) -> str | None:
    # Empty means unset
    return environ.get(name) or None


def _read_override(environ: Mapping[str, str], name: str) -> str | None:
    # Blank means unset
    return (environ.get(name) or "").strip() or None


@dataclass(frozen=True)
class ProviderConfig:
    """Configuration values for every supported provider."""

    # Explicit provider override (raw value, matched case-insensitively)
    provider: str | None = None

    # Hosted API
    openai_api_key: str | None = None  # allow-secret
    openai_base_url: str | None = None
    openai_model: str | None = None

    # Edge inference
    cloudflare_account_id: str | None = None
    cloudflare_auth_key: str | None = None  # allow-secret
    cloudflare_model: str | None = None

    # Local server
    ollama_uri: str | None = None
    ollama_model: str | None = None

    # Embedded runtime
    llama_cpp_model_path: str | None = None

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        load_env_file: bool = True,
    ) -> ProviderConfig:
        """
        Build a config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.
            load_env_file: When reading os.environ, first load a .env file
                without overriding variables that are already set.

        Returns:
            Provider configuration snapshot
        """
        if environ is None:
            if load_env_file:
                from dotenv import load_dotenv

                load_dotenv(override=False)
            environ = os.environ

        values = {field: _read(environ, name) for field, name in ENV_VARIABLES.items()}
        provider = _read_override(environ, PROVIDER_ENV) or _read_override(
            environ, LEGACY_PROVIDER_ENV
        )
        return cls(provider=provider, **values)

    def value(self, variable: str) -> str | None:
        """Look up a value by its environment variable name."""
        for field in fields(self):
            if ENV_VARIABLES.get(field.name) == variable:
                return getattr(self, field.name)
        raise KeyError(variable)

    def __repr__(self) -> str:
        # Keep secrets out of tracebacks and logs
        shown = []
        for field in fields(self):
            value = getattr(self, field.name)
            if value is not None and field.name.endswith("_key"):
                value = "***"
            shown.append(f"{field.name}={value!r}")
        return f"ProviderConfig({', '.join(shown)})"
