"""Shared fixtures: a fake OpenAI-compatible client and translator factories."""

import json
from types import SimpleNamespace

import pytest

from bile_translator.config import ProviderSettings, TranslatorConfig
from bile_translator.main import ArticleTranslator
from bile_translator.providers import GroqClient, OpenRouterClient


def make_response(content="", reasoning=None):
    """Chat completion response shaped like the openai SDK's."""
    message = SimpleNamespace(content=content, reasoning=reasoning)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=20, total_tokens=30),
    )


def result_json(original="Hallo Welt", translated="Hello World", target="en", **overrides):
    """Canonical result JSON text with one section."""
    data = {
        "sourceLanguage": "de",
        "targetLanguage": target,
        "titleOriginal": "Test",
        "titleTranslated": "Test",
        "sections": [{
            "kind": "paragraph",
            "original": original,
            "translated": translated,
            "slangTerms": [],
        }],
    }
    data.update(overrides)
    return json.dumps(data, ensure_ascii=False)


class FakeCompletions:
    """Replays scripted replies; the last one repeats once the script runs out.

    A reply may be a string (message content), a response object, an
    exception to raise, or a callable taking the request kwargs.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(kwargs)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            return make_response(reply)
        return reply


class FakeOpenAI:
    """Stand-in for ``openai.OpenAI`` exposing ``chat.completions.create``."""

    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls


def count_tokens(text):
    return len(text) // 4 + 1


@pytest.fixture
def token_counter():
    return count_tokens


@pytest.fixture
def sleeps():
    """No-op sleep that records requested delays in seconds."""
    recorded = []

    def sleep(seconds):
        recorded.append(seconds)

    sleep.calls = recorded
    return sleep


@pytest.fixture
def make_groq():
    def factory(*replies, **kwargs):
        return GroqClient("test-groq-key", client=FakeOpenAI(*replies), token_counter=count_tokens, **kwargs)
    return factory


@pytest.fixture
def make_openrouter():
    def factory(*replies, **kwargs):
        return OpenRouterClient(
            "test-openrouter-key", client=FakeOpenAI(*replies), token_counter=count_tokens, **kwargs
        )
    return factory


@pytest.fixture
def make_config():
    def factory(**translation):
        return TranslatorConfig(
            provider="groq",
            fallback_providers=["openrouter"],
            providers={
                "groq": ProviderSettings(api_key="test-groq-key"),
                "openrouter": ProviderSettings(api_key="test-openrouter-key"),
            },
            translation=translation,
        )
    return factory


@pytest.fixture
def make_translator(make_config, sleeps):
    def factory(providers, **translation):
        return ArticleTranslator(
            config=make_config(**translation),
            providers={client.name: client for client in providers},
            sleep=sleeps,
        )
    return factory
