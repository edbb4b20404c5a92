"""Provider error hierarchy."""

from __future__ import annotations


class ProviderError(Exception):
    """Base class for generation provider failures."""


class ProviderConfigurationError(ProviderError):
    """Provider cannot be used: unknown name or missing credentials. Never retried."""


class ProviderTransportError(ProviderError):
    """Non-success HTTP status, timeout or network failure talking to a provider."""

    def __init__(self, message: str, status: int | None = None, retryable: bool = False):
        super().__init__(message)
        self.status = status
        self.retryable = retryable
