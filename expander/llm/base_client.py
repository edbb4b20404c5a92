"""Provider-agnostic generation protocol used by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from expander.models.enums import StopReason


@dataclass(frozen=True)
class Generation:
    """One provider response."""

    text: str
    stop_reason: StopReason = StopReason.END_TURN
    model: str = ""
    tokens_in: int = 0
    tokens_out: int = 0

    @property
    def truncated(self) -> bool:
        return self.stop_reason == StopReason.MAX_TOKENS


@runtime_checkable
class GenerationBackend(Protocol):
    """Structural protocol satisfied by any client that can produce text or JSON.

    Callers pass json_schema to request structured JSON output; the returned
    text is then expected (not guaranteed) to be a JSON document. Callers must
    parse it fallibly. Implementors apply retry on transient transport errors
    and raise ProviderConfigurationError / ProviderTransportError otherwise.
    """

    name: str

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float = 0.7,
        json_schema: dict | None = None,
    ) -> Generation:
        ...
