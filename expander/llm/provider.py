"""Provider registry, cost estimation and audit logging hooks."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from genai_prices import Usage as GPUsage
from genai_prices import calc_price

from expander.llm.base_client import Generation, GenerationBackend
from expander.llm.errors import ProviderConfigurationError, ProviderError
from expander.llm.http_clients import AnthropicBackend, ChatCompletionsBackend
from expander.llm.pydantic_client import PydanticAIBackend
from expander.models import ProviderConfig, SettingsConfig
from expander.utils import structured_log

_log = logging.getLogger(__name__)

# Maps model-string prefix -> genai-prices provider_id.
_PROVIDER_ID_MAP: dict[str, str] = {
    "google-gla:": "google",
    "google-vertex:": "google",
    "anthropic:": "anthropic",
    "openai:": "openai",
    "deepseek:": "deepseek",
    "grok:": "x-ai",
    "perplexity:": "perplexity",
    "groq:": "groq",
    "mistral:": "mistral",
}


def _parse_model_ref(model: str) -> tuple[str, str | None]:
    """Split 'anthropic:claude-sonnet-4-5' -> ('claude-sonnet-4-5', 'anthropic')."""
    for prefix, provider_id in _PROVIDER_ID_MAP.items():
        if model.startswith(prefix):
            return model[len(prefix):], provider_id
    return model, None


def estimate_cost_usd(model: str, tokens_in: int, tokens_out: int) -> float:
    """Return cost (USD) via genai-prices; 0.0 for models it does not know."""
    model_ref, provider_id = _parse_model_ref(model)
    try:
        price = calc_price(
            GPUsage(input_tokens=tokens_in, output_tokens=tokens_out),
            model_ref,
            provider_id=provider_id,
        )
        return float(price.total_price)
    except Exception as exc:
        _log.debug("genai-prices: unknown model %r (%s) - cost set to 0.0", model, exc)
        return 0.0


@dataclass
class UsageTotals:
    calls: int = 0
    tokens_in: int = 0
    tokens_out: int = 0
    cost_usd: float = 0.0


class LoggedBackend:
    """Wraps a backend so every call lands in the audit trail with latency and cost."""

    def __init__(self, inner: GenerationBackend):
        self.inner = inner
        self.name = inner.name
        self.totals = UsageTotals()

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float = 0.7,
        json_schema: dict | None = None,
    ) -> Generation:
        start = time.perf_counter()
        try:
            result = await self.inner.generate(
                prompt, max_tokens=max_tokens, temperature=temperature, json_schema=json_schema
            )
        except ProviderError as exc:
            structured_log.log_llm_call(
                self.name,
                "error",
                latency_ms=int((time.perf_counter() - start) * 1000),
                error=str(exc),
            )
            raise
        latency_ms = int((time.perf_counter() - start) * 1000)
        cost = estimate_cost_usd(result.model, result.tokens_in, result.tokens_out)
        self.totals.calls += 1
        self.totals.tokens_in += result.tokens_in
        self.totals.tokens_out += result.tokens_out
        self.totals.cost_usd += cost
        structured_log.log_llm_call(
            self.name,
            "success",
            model=result.model,
            latency_ms=latency_ms,
            tokens_in=result.tokens_in,
            tokens_out=result.tokens_out,
            cost_usd=cost,
            stop_reason=result.stop_reason.value,
        )
        return result


def _instantiate(name: str, cfg: ProviderConfig) -> GenerationBackend:
    if cfg.kind == "anthropic":
        return AnthropicBackend(
            name,
            model=cfg.model,
            base_url=cfg.base_url or "https://api.anthropic.com/v1/messages",
            api_key_env=cfg.api_key_env or "ANTHROPIC_API_KEY",
            timeout_seconds=cfg.timeout_seconds,
        )
    if cfg.kind == "chat_completions":
        if not cfg.base_url:
            raise ProviderConfigurationError(f"Provider {name!r} has no base_url configured.")
        return ChatCompletionsBackend(
            name,
            model=cfg.model,
            base_url=cfg.base_url,
            api_key_env=cfg.api_key_env,
            timeout_seconds=cfg.timeout_seconds,
            json_mode=cfg.json_mode,
        )
    if cfg.kind == "pydantic_ai":
        return PydanticAIBackend(name, model=cfg.model)
    raise ProviderConfigurationError(f"Provider {name!r} has unknown kind {cfg.kind!r}.")


def build_backend(settings: SettingsConfig, provider: str | None = None) -> LoggedBackend:
    """Return the logged backend for *provider* (default: settings.default_provider).

    Credentials are not checked here; a missing key surfaces as
    ProviderConfigurationError on the first call.
    """
    name = (provider or settings.default_provider).lower()
    cfg = settings.providers.get(name)
    if cfg is None:
        known = ", ".join(sorted(settings.providers)) or "none"
        raise ProviderConfigurationError(f"Unknown provider {name!r} (configured: {known}).")
    return LoggedBackend(_instantiate(name, cfg))
