"""
Unit tests for backend construction, call accounting and retry policy.
"""

import pytest

from expander.llm.base_client import Generation
from expander.llm.errors import ProviderConfigurationError, ProviderTransportError
from expander.llm.http_clients import AnthropicBackend, ChatCompletionsBackend
from expander.llm.provider import LoggedBackend, build_backend, estimate_cost_usd
from expander.llm.pydantic_client import PydanticAIBackend
from expander.models import ProviderConfig, SettingsConfig
from expander.utils.retry_strategies import RetryConfig, create_provider_retry, is_retryable
from tests.fixtures.stub_backend import StubBackend


def _settings(**providers):
    return SettingsConfig(default_provider="anthropic", providers=providers)


class TestBuildBackend:
    def test_unknown_provider(self):
        with pytest.raises(ProviderConfigurationError, match="Unknown provider 'nope'"):
            build_backend(_settings(anthropic=ProviderConfig(kind="anthropic", model="claude")), "nope")

    def test_default_provider_and_kind_dispatch(self):
        settings = _settings(
            anthropic=ProviderConfig(kind="anthropic", model="claude"),
            openai=ProviderConfig(model="gpt-4o", base_url="https://api.openai.com/v1/chat/completions"),
            gemini=ProviderConfig(kind="pydantic_ai", model="google-gla:gemini-2.5-pro"),
        )
        assert isinstance(build_backend(settings).inner, AnthropicBackend)
        assert isinstance(build_backend(settings, "OpenAI").inner, ChatCompletionsBackend)
        assert isinstance(build_backend(settings, "gemini").inner, PydanticAIBackend)

    def test_chat_completions_requires_base_url(self):
        with pytest.raises(ProviderConfigurationError, match="no base_url"):
            build_backend(_settings(openai=ProviderConfig(model="gpt-4o")), "openai")

    def test_unknown_kind(self):
        with pytest.raises(ProviderConfigurationError, match="unknown kind"):
            build_backend(_settings(odd=ProviderConfig(kind="carrier-pigeon", model="x")), "odd")

    @pytest.mark.asyncio
    async def test_missing_key_fails_on_first_call(self, monkeypatch):
        monkeypatch.delenv("EXPANDER_TEST_ANTHROPIC_KEY", raising=False)
        backend = AnthropicBackend(
            "anthropic", model="claude", base_url="http://localhost:9", api_key_env="EXPANDER_TEST_ANTHROPIC_KEY"
        )
        with pytest.raises(ProviderConfigurationError, match="EXPANDER_TEST_ANTHROPIC_KEY"):
            await backend.generate("hello", max_tokens=10)


class _CountingBackend:
    name = "counting"

    async def generate(self, prompt, *, max_tokens, temperature=0.7, json_schema=None):
        return Generation(text="ok", model="unknown-model-xyz", tokens_in=120, tokens_out=30)


class TestLoggedBackend:
    @pytest.mark.asyncio
    async def test_accumulates_usage(self):
        backend = LoggedBackend(_CountingBackend())
        await backend.generate("a", max_tokens=10)
        await backend.generate("b", max_tokens=10)
        assert backend.name == "counting"
        assert backend.totals.calls == 2
        assert backend.totals.tokens_in == 240
        assert backend.totals.tokens_out == 60

    @pytest.mark.asyncio
    async def test_errors_propagate_without_counting(self):
        backend = LoggedBackend(StubBackend(fail_on="boom"))
        with pytest.raises(ProviderTransportError):
            await backend.generate("boom", max_tokens=10)
        assert backend.totals.calls == 0

    def test_unknown_model_costs_nothing(self):
        assert estimate_cost_usd("unknown-model-xyz", 1000, 1000) == 0.0


class TestRetryPolicy:
    def test_is_retryable(self):
        assert is_retryable(ProviderTransportError("busy", status=503, retryable=True))
        assert not is_retryable(ProviderTransportError("bad request", status=400))
        assert not is_retryable(ProviderConfigurationError("no key"))
        assert not is_retryable(ValueError("other"))

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self):
        attempts = []

        @create_provider_retry(RetryConfig(max_attempts=3, initial_delay=0, max_delay=0))
        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ProviderTransportError("overloaded", status=529, retryable=True)
            return "done"

        assert await flaky() == "done"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_permanent_errors_are_not_retried(self):
        attempts = []

        @create_provider_retry(RetryConfig(max_attempts=3, initial_delay=0, max_delay=0))
        async def broken():
            attempts.append(1)
            raise ProviderTransportError("unauthorized", status=401)

        with pytest.raises(ProviderTransportError):
            await broken()
        assert len(attempts) == 1
