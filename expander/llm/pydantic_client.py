"""PydanticAI-backed generation client implementing GenerationBackend.

Supports every provider PydanticAI supports. The provider is inferred from the
model string prefix used in config/settings.yaml (e.g. "google-gla:",
"anthropic:", "openai:", "groq:").

Structured output strategy per provider:
- Gemini (google-gla:, google-vertex:): NativeOutput, schema enforced at the API level.
- All other providers: default ToolOutput, schema enforced via tool calling.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic_ai import Agent, NativeOutput, StructuredDict
from pydantic_ai.exceptions import ModelHTTPError, UserError
from pydantic_ai.settings import ModelSettings

from expander.llm.base_client import Generation
from expander.llm.errors import ProviderConfigurationError, ProviderTransportError
from expander.models.enums import StopReason
from expander.utils.retry_strategies import RETRYABLE_STATUS_CODES, create_provider_retry

logger = logging.getLogger(__name__)

_GEMINI_PREFIXES = ("google-gla:", "google-vertex:")

# Substrings found in exception messages for retryable conditions.
_RETRYABLE_MSGS = {"unavailable", "resource_exhausted", "overloaded", "gateway", "quota", "timeout"}


def _is_gemini(model: str) -> bool:
    return model.startswith(_GEMINI_PREFIXES)


def _map_stop_reason(result: Any) -> StopReason:
    response = getattr(result, "response", None)
    finish = getattr(response, "finish_reason", None)
    if finish == "length":
        return StopReason.MAX_TOKENS
    if finish in (None, "stop"):
        return StopReason.END_TURN
    return StopReason.OTHER


@create_provider_retry()
async def _run_agent(agent: Agent[Any, Any], prompt: str, *, model_settings: ModelSettings) -> Any:
    """Run *agent*, translating PydanticAI failures into provider errors."""
    try:
        return await agent.run(prompt, model_settings=model_settings)
    except UserError as exc:
        raise ProviderConfigurationError(str(exc)) from exc
    except ModelHTTPError as exc:
        raise ProviderTransportError(
            str(exc), status=exc.status_code, retryable=exc.status_code in RETRYABLE_STATUS_CODES
        ) from exc
    except (ConnectionError, TimeoutError) as exc:
        raise ProviderTransportError(str(exc), retryable=True) from exc
    except Exception as exc:
        lowered = str(exc).lower()
        if any(m in lowered for m in _RETRYABLE_MSGS):
            raise ProviderTransportError(str(exc), retryable=True) from exc
        raise


class PydanticAIBackend:
    """Provider-agnostic backend backed by a PydanticAI Agent.

    Switching the underlying model is a one-line change in config/settings.yaml.
    """

    def __init__(self, name: str, *, model: str):
        self.name = name
        self.model = model

    def _build_agent(self, json_schema: dict | None) -> Agent[Any, Any]:
        try:
            if json_schema is None:
                return Agent(self.model, output_type=str)
            if _is_gemini(self.model):
                output_type: Any = NativeOutput(StructuredDict(json_schema))
            else:
                output_type = StructuredDict(json_schema)
            return Agent(self.model, output_type=output_type)
        except UserError as exc:
            # Raised when the provider's API key env var is missing.
            raise ProviderConfigurationError(str(exc)) from exc

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float = 0.7,
        json_schema: dict | None = None,
    ) -> Generation:
        settings = ModelSettings(temperature=temperature, max_tokens=max_tokens)
        agent = self._build_agent(json_schema)
        result = await _run_agent(agent, prompt, model_settings=settings)
        output = result.output
        text = json.dumps(output) if isinstance(output, dict) else str(output)
        usage = result.usage()
        return Generation(
            text=text,
            stop_reason=_map_stop_reason(result),
            model=self.model,
            tokens_in=usage.input_tokens or 0,
            tokens_out=usage.output_tokens or 0,
        )
