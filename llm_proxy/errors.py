"""
LLM Proxy - Error Hierarchy

Errors raised by the proxy itself. Failures from the underlying clients
(httpx, openai, llama_cpp) are not wrapped and reach the caller as-is.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"  # Nothing can be served


class LLMProxyError(Exception):
    """
    Base exception for all proxy errors.

    Carries a stable error code, a severity and, where known, the provider
    the error relates to.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "LLM_PROXY_ERROR",
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = severity
        self.provider = provider

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "provider": self.provider,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"code={self.code!r}, "
            f"message={self.message!r}, "
            f"severity={self.severity.value})"
        )


class ConfigurationError(LLMProxyError):
    """Required configuration for a provider is missing or empty."""

    def __init__(
        self,
        message: str,
        *,
        missing: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.missing = list(missing or [])

    @classmethod
    def for_provider(cls, provider: str, missing: list[str]) -> ConfigurationError:
        """Build the error raised when a forced provider is not fully configured."""
        return cls(
            f'Provider override is "{provider}" but {", ".join(missing)} '
            f'{"is" if len(missing) == 1 else "are"} not configured.',
            missing=missing,
            provider=provider,
        )


class UnrecognizedProviderError(LLMProxyError):
    """Override value does not name a known provider."""

    def __init__(self, value: str, valid: list[str], **kwargs: Any) -> None:
        super().__init__(
            f'Invalid provider override: "{value}". Valid options are: {", ".join(valid)}',
            code="UNRECOGNIZED_PROVIDER",
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.value = value
        self.valid = list(valid)


class NoProviderAvailableError(LLMProxyError):
    """Automatic selection found no fully configured provider."""

    def __init__(self, message: str = "No available LLM found.", **kwargs: Any) -> None:
        super().__init__(
            message,
            code="NO_PROVIDER_AVAILABLE",
            severity=ErrorSeverity.CRITICAL,
            **kwargs,
        )


class BackendError(LLMProxyError):
    """A backend answered, but with nothing usable as a reply."""

    def __init__(self, message: str, *, provider: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            message,
            code="BACKEND_ERROR",
            severity=ErrorSeverity.HIGH,
            provider=provider,
            **kwargs,
        )
