"""Generation provider backends."""

from expander.llm.base_client import Generation, GenerationBackend
from expander.llm.errors import ProviderConfigurationError, ProviderError, ProviderTransportError

__all__ = [
    "Generation",
    "GenerationBackend",
    "ProviderConfigurationError",
    "ProviderError",
    "ProviderTransportError",
]
