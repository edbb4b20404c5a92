"""Direct aiohttp clients for the Anthropic Messages API and OpenAI-compatible chat APIs.

OpenAI, DeepSeek, Grok (x.ai) and Perplexity all expose the same
``/chat/completions`` shape, so one client covers them; only the base URL,
model and key env var differ (see config/settings.yaml).
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

import aiohttp

from expander.llm.base_client import Generation
from expander.llm.errors import ProviderConfigurationError, ProviderTransportError
from expander.models.enums import StopReason
from expander.utils.retry_strategies import RETRYABLE_STATUS_CODES, create_provider_retry

logger = logging.getLogger(__name__)


def _schema_instruction(json_schema: dict) -> str:
    return (
        "\n\nReturn ONLY a valid JSON object (no markdown fences, no commentary) "
        f"matching this JSON schema:\n{json.dumps(json_schema)}"
    )


class _HTTPBackend:
    """Shared plumbing: lazy key lookup, one session per call, status mapping."""

    def __init__(
        self,
        name: str,
        *,
        model: str,
        base_url: str,
        api_key_env: str,
        timeout_seconds: int = 600,
    ):
        self.name = name
        self.model = model
        self.base_url = base_url
        self.api_key_env = api_key_env
        self.timeout_seconds = timeout_seconds

    def _api_key(self) -> str:
        api_key = os.getenv(self.api_key_env) if self.api_key_env else None
        if not api_key:
            raise ProviderConfigurationError(
                f"{self.name} API key not configured; set {self.api_key_env or 'an API key env var'}."
            )
        return api_key

    @create_provider_retry()
    async def _post(self, headers: dict[str, str], payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            ) as session:
                async with session.post(self.base_url, headers=headers, json=payload) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        raise ProviderTransportError(
                            f"{self.name} API error {resp.status}: {body[:300]}",
                            status=resp.status,
                            retryable=resp.status in RETRYABLE_STATUS_CODES,
                        )
                    return await resp.json(content_type=None)
        except asyncio.CancelledError:
            raise
        except ProviderTransportError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ProviderTransportError(
                f"{self.name} request failed: {exc!r}", retryable=True
            ) from exc


class AnthropicBackend(_HTTPBackend):
    """Anthropic Messages API (``stop_reason == "max_tokens"`` marks truncation)."""

    _API_VERSION = "2023-06-01"

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float = 0.7,
        json_schema: dict | None = None,
    ) -> Generation:
        headers = {
            "x-api-key": self._api_key(),
            "anthropic-version": self._API_VERSION,
            "content-type": "application/json",
        }
        if json_schema is not None:
            prompt = prompt + _schema_instruction(json_schema)
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        data = await self._post(headers, payload)
        blocks = data.get("content") or []
        text = "".join(str(b.get("text") or "") for b in blocks if b.get("type") == "text")
        usage = data.get("usage") or {}
        raw_stop = data.get("stop_reason")
        if raw_stop == "max_tokens":
            stop = StopReason.MAX_TOKENS
        elif raw_stop in ("end_turn", "stop_sequence"):
            stop = StopReason.END_TURN
        else:
            stop = StopReason.OTHER
        return Generation(
            text=text,
            stop_reason=stop,
            model=f"anthropic:{data.get('model') or self.model}",
            tokens_in=int(usage.get("input_tokens") or 0),
            tokens_out=int(usage.get("output_tokens") or 0),
        )


class ChatCompletionsBackend(_HTTPBackend):
    """OpenAI-compatible ``/chat/completions`` endpoint (``finish_reason == "length"`` marks truncation)."""

    def __init__(self, name: str, *, json_mode: bool = True, **kwargs: Any):
        super().__init__(name, **kwargs)
        self.json_mode = json_mode

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float = 0.7,
        json_schema: dict | None = None,
    ) -> Generation:
        headers = {
            "Authorization": f"Bearer {self._api_key()}",
            "Content-Type": "application/json",
        }
        if json_schema is not None:
            prompt = prompt + _schema_instruction(json_schema)
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if json_schema is not None and self.json_mode:
            payload["response_format"] = {"type": "json_object"}
        data = await self._post(headers, payload)
        choices = data.get("choices") or []
        if not choices:
            raise ProviderTransportError(f"{self.name} returned no choices.")
        choice = choices[0]
        text = str((choice.get("message") or {}).get("content") or "")
        finish = choice.get("finish_reason")
        if finish == "length":
            stop = StopReason.MAX_TOKENS
        elif finish == "stop":
            stop = StopReason.END_TURN
        else:
            stop = StopReason.OTHER
        usage = data.get("usage") or {}
        return Generation(
            text=text,
            stop_reason=stop,
            model=f"{self.name}:{data.get('model') or self.model}",
            tokens_in=int(usage.get("prompt_tokens") or 0),
            tokens_out=int(usage.get("completion_tokens") or 0),
        )
