"""Tests for provider clients: request shape, error mapping, twopass."""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from bile_translator.errors import (
    ErrorKind,
    MalformedOutputError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
    parse_retry_hint,
)
from bile_translator.models import Chunk, ContentElement, Strategy
from bile_translator.providers import PROVIDERS, GroqClient, OpenRouterClient, create_provider

from .conftest import make_response

REQUEST = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")


def status_error(status, message="error", headers=None):
    response = httpx.Response(status, request=REQUEST, headers=headers or {})
    return openai.APIStatusError(message, response=response, body=None)


def chunk_of(*texts, title="Test"):
    return Chunk(index=0, title=title, elements=[ContentElement(text=t) for t in texts])


class TestRequests:
    """Tests for request construction."""

    def test_minimal_request_shape(self, make_groq):
        client = make_groq('{"sl":"de"}')
        chunk = chunk_of("Hallo Welt")

        output = client.translate(chunk, "en", Strategy.MINIMAL, "llama-3.3-70b-versatile")

        call = client.client.calls[0]
        assert call["model"] == "llama-3.3-70b-versatile"
        assert call["stream"] is False
        assert [m["role"] for m in call["messages"]] == ["system", "user"]
        assert json.loads(call["messages"][1]["content"]) == chunk.to_payload()
        assert "into en." in call["messages"][0]["content"]
        # Short content gets the prompt's minimum budget
        assert call["max_tokens"] == 800
        # Model default (0.1) is below the prompt ceiling (0.3)
        assert call["temperature"] == 0.1

        assert output.content == '{"sl":"de"}'
        assert output.provider == "groq"
        assert output.model == "llama-3.3-70b-versatile"
        assert output.usage["total_tokens"] == 30

    def test_budget_capped_by_model_limit(self, make_groq):
        client = make_groq("{}")
        chunk = chunk_of("Wort " * 2000)

        client.translate(chunk, "en", Strategy.BALANCED, "llama-3.3-70b-versatile")

        assert client.client.calls[0]["max_tokens"] == 3000

    def test_reasoning_field_is_returned(self, make_groq):
        client = make_groq(make_response("", reasoning='{"sl":"de"}'))

        output = client.translate(chunk_of("x"), "en", Strategy.MINIMAL, "qwen/qwen3-32b")

        assert output.content == ""
        assert output.reasoning == '{"sl":"de"}'

    def test_no_choices_is_malformed(self, make_groq):
        client = make_groq(SimpleNamespace(choices=[], usage=None))

        with pytest.raises(MalformedOutputError):
            client.translate(chunk_of("x"), "en", Strategy.MINIMAL, "qwen/qwen3-32b")

    def test_provider_endpoints(self):
        assert GroqClient.BASE_URL == "https://api.groq.com/openai/v1"
        assert OpenRouterClient.BASE_URL == "https://openrouter.ai/api/v1"
        assert set(PROVIDERS) == {"groq", "openrouter"}

    def test_missing_api_key(self):
        with pytest.raises(ValueError):
            GroqClient("")

    def test_create_provider(self, token_counter):
        client = create_provider("openrouter", "key", client=object(), token_counter=token_counter)
        assert isinstance(client, OpenRouterClient)
        assert client.models[0] == "qwen/qwen3-235b-a22b:free"

        with pytest.raises(ValueError, match="Unknown provider"):
            create_provider("nope", "key")


class TestErrorMapping:
    """Tests for mapping openai SDK errors onto ErrorKind."""

    @pytest.mark.parametrize("status,kind", [
        (401, ErrorKind.AUTH_FAILURE),
        (403, ErrorKind.AUTH_FAILURE),
        (402, ErrorKind.QUOTA_EXCEEDED),
        (502, ErrorKind.PROVIDER_UNAVAILABLE),
        (503, ErrorKind.PROVIDER_UNAVAILABLE),
        (500, ErrorKind.UNKNOWN),
        (400, ErrorKind.UNKNOWN),
    ])
    def test_status_codes(self, make_groq, status, kind):
        client = make_groq(status_error(status))

        with pytest.raises(ProviderError) as info:
            client.complete("llama-3.3-70b-versatile", [], max_tokens=10, temperature=0)

        assert info.value.kind == kind
        assert info.value.status_code == status
        assert info.value.provider == "groq"
        assert isinstance(info.value.__cause__, openai.APIStatusError)

    def test_rate_limit_hint_in_message(self, make_groq):
        message = "Rate limit reached. Please try again in 6m26.751s."
        client = make_groq(status_error(429, message))

        with pytest.raises(RateLimitedError) as info:
            client.complete("llama-3.3-70b-versatile", [], max_tokens=10, temperature=0)

        assert info.value.kind == ErrorKind.RATE_LIMITED
        assert info.value.retry_after == pytest.approx(386.751)

    def test_rate_limit_hint_in_milliseconds(self, make_groq):
        client = make_groq(status_error(429, "Rate limit reached. Please try again in 530ms."))

        with pytest.raises(RateLimitedError) as info:
            client.complete("llama-3.3-70b-versatile", [], max_tokens=10, temperature=0)

        assert info.value.retry_after == pytest.approx(0.53)

    @pytest.mark.parametrize("message,seconds", [
        ("Please try again in 530ms.", 0.53),
        ("Please try again in 1m2.5s.", 62.5),
        ("Please try again in 1h5m.", 3900.0),
    ])
    def test_parse_retry_hint_units(self, message, seconds):
        assert parse_retry_hint(message) == pytest.approx(seconds)

    def test_rate_limit_retry_after_header(self, make_groq):
        client = make_groq(status_error(429, "slow down", headers={"retry-after": "7"}))

        with pytest.raises(RateLimitedError) as info:
            client.complete("llama-3.3-70b-versatile", [], max_tokens=10, temperature=0)

        assert info.value.retry_after == 7.0

    def test_timeout_is_distinct(self, make_groq):
        client = make_groq(openai.APITimeoutError(request=REQUEST), timeout_ms=1234)

        with pytest.raises(ProviderTimeoutError) as info:
            client.complete("llama-3.3-70b-versatile", [], max_tokens=10, temperature=0)

        assert info.value.kind == ErrorKind.TIMEOUT
        assert info.value.timeout_ms == 1234
        assert info.value.elapsed_ms >= 0

    def test_connection_error_is_unknown(self, make_groq):
        client = make_groq(openai.APIConnectionError(request=REQUEST))

        with pytest.raises(ProviderError) as info:
            client.complete("llama-3.3-70b-versatile", [], max_tokens=10, temperature=0)

        assert info.value.kind == ErrorKind.UNKNOWN

    def test_connection_check(self, make_groq):
        assert make_groq("pong").test_connection() is True
        assert make_groq(status_error(401)).test_connection() is False


class TestTwoPass:
    """Tests for the twopass strategy."""

    FIRST_PASS = (
        '{"sl":"de","tl":"en","to":"T","tt":"T","content":[{"type":"paragraph",'
        '"o":"%s","t":"%s"}]}'
    )
    SLANG = '{"st":[{"i":0,"tm":"krass","tr":"wild","eo":"umgangssprachlich","et":"slang for intense"}]}'

    def test_second_pass_runs_for_cultural_content(self, make_groq):
        original = "Das Startup aus Berlin ist echt krass."
        client = make_groq(self.FIRST_PASS % (original, "The Berlin startup is really wild."), self.SLANG)

        output = client.translate(chunk_of(original), "en", Strategy.TWOPASS, "llama-3.3-70b-versatile")

        assert len(client.client.calls) == 2
        assert output.supplement == self.SLANG
        assert output.usage["total_tokens"] == 60
        assert "[0] Das Startup aus Berlin" in client.client.calls[1]["messages"][1]["content"]

    def test_second_pass_skipped_for_plain_content(self, make_groq):
        original = "Die Stadt hat sich stark verändert."
        client = make_groq(self.FIRST_PASS % (original, "The town has changed dramatically."))

        output = client.translate(chunk_of(original), "en", Strategy.TWOPASS, "llama-3.3-70b-versatile")

        assert len(client.client.calls) == 1
        assert output.supplement is None

    def test_failed_second_pass_keeps_first(self, make_groq):
        original = "Das Startup aus Berlin ist echt krass."
        client = make_groq(
            self.FIRST_PASS % (original, "The Berlin startup is really wild."),
            status_error(503),
        )

        output = client.translate(chunk_of(original), "en", Strategy.TWOPASS, "llama-3.3-70b-versatile")

        assert output.supplement is None
        assert '"o":"Das Startup' in output.content
