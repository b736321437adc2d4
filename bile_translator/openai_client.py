"""OpenAI-compatible provider client with typed errors and strategy prompts."""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import openai
import tiktoken
from openai import OpenAI

from .content_classifier import looks_cultural
from .errors import (
    ErrorKind,
    MalformedOutputError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
    TranslationError,
    classify_status,
    parse_retry_hint,
)
from .model_config import get_profile
from .models import Chunk, ModelProfile, Strategy
from .prompt_loader import PromptLoader
from .response_parser import extract

logger = logging.getLogger(__name__)


@dataclass
class RawModelOutput:
    """Unparsed model response for one translation request.

    ``supplement`` holds the second-pass (slang) response of the twopass
    strategy, when that pass ran.
    """
    content: str
    reasoning: Optional[str] = None
    supplement: Optional[str] = None
    model: str = ""
    provider: str = ""
    latency_ms: int = 0
    usage: Dict[str, int] = field(default_factory=dict)


class TokenCounter:
    """Counts tokens with tiktoken; the encoding is loaded on first use."""

    def __init__(self, encoding_name: str = "cl100k_base"):
        self.encoding_name = encoding_name
        self._encoding = None

    def __call__(self, text: str) -> int:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
        return len(self._encoding.encode(text))


class ProviderClient:
    """Client for one OpenAI-compatible chat completion provider.

    Subclasses fix the provider name, base URL and model roster.
    """

    name = "openai"
    BASE_URL: Optional[str] = None
    DEFAULT_TIMEOUT_MS = 30000
    ROSTER: List[ModelProfile] = []

    PROMPTS = {
        Strategy.MINIMAL: "minimal",
        Strategy.BALANCED: "balanced",
        Strategy.TWOPASS: "twopass_translate",
    }
    SLANG_PROMPT = "twopass_slang"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        roster: Optional[List[ModelProfile]] = None,
        client: Any = None,
        token_counter: Optional[Callable[[str], int]] = None,
        prompt_loader: Optional[PromptLoader] = None,
    ):
        """Initialize provider client.

        Args:
            api_key: Bearer token for the provider
            base_url: Override of the provider's API base URL
            timeout_ms: Per-call timeout in milliseconds
            roster: Model profiles, fastest-observed-first
            client: Pre-built OpenAI-compatible client (used by tests)
            token_counter: Callable returning a token count for a string
            prompt_loader: Loader for strategy prompt files
        """
        if not api_key:
            raise ValueError(f"API key not provided for provider '{self.name}'")

        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.timeout_ms = timeout_ms or self.DEFAULT_TIMEOUT_MS
        self.roster = list(roster if roster is not None else self.ROSTER)
        self.prompt_loader = prompt_loader or PromptLoader()
        self.count_tokens = token_counter or TokenCounter()

        if client is None:
            client_kwargs = {
                "api_key": self.api_key,
                "timeout": self.timeout_ms / 1000,
                # Retries are owned by the orchestrator
                "max_retries": 0,
            }
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            client = OpenAI(**client_kwargs)
        self.client = client

    @property
    def models(self) -> List[str]:
        return [profile.id for profile in self.roster]

    def profile(self, model: str) -> Optional[ModelProfile]:
        for profile in self.roster:
            if profile.id == model:
                return profile
        return get_profile(model, self.name)

    def complete(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> RawModelOutput:
        """Make one chat completion request.

        Args:
            model: Model ID
            messages: List of message dicts with 'role' and 'content'
            max_tokens: Output token budget
            temperature: Sampling temperature

        Returns:
            RawModelOutput with content, reasoning, usage and latency

        Raises:
            ProviderError: Typed failure (timeout, rate limit, auth, ...)
            MalformedOutputError: If the response has no choices
        """
        started = time.monotonic()
        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                stream=False,
            )
        except openai.OpenAIError as e:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            raise self._map_error(e, model, elapsed_ms) from e

        latency_ms = int((time.monotonic() - started) * 1000)

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise MalformedOutputError(f"{self.name}/{model} returned no choices")

        message = choices[0].message
        content = getattr(message, "content", None) or ""
        reasoning = getattr(message, "reasoning", None) or None

        logger.debug(f"{self.name}/{model} answered in {latency_ms}ms: {content[:200]!r}")

        return RawModelOutput(
            content=content,
            reasoning=reasoning,
            model=model,
            provider=self.name,
            latency_ms=latency_ms,
            usage=_usage_dict(getattr(response, "usage", None)),
        )

    def translate(
        self,
        chunk: Chunk,
        target_language: str,
        strategy: Strategy,
        model: str,
        source_language: str = "auto",
    ) -> RawModelOutput:
        """Translate one chunk with the given strategy.

        Args:
            chunk: Chunk to translate
            target_language: Target language code
            strategy: Prompt/schema/token-budget profile
            model: Model ID
            source_language: Source language code or "auto"

        Returns:
            RawModelOutput; for twopass, ``supplement`` carries the slang pass
        """
        strategy = Strategy(strategy)
        payload = json.dumps(chunk.to_payload(), ensure_ascii=False)
        output = self._request(
            self.PROMPTS[strategy], model, target_language, source_language, payload=payload,
        )

        if strategy is Strategy.TWOPASS:
            self._add_slang_pass(output, chunk, target_language, source_language)

        return output

    def test_connection(self, model: Optional[str] = None) -> bool:
        """Check credentials and reachability with a tiny request."""
        model = model or (self.models[0] if self.models else None)
        if model is None:
            return False

        try:
            self.complete(model, [{"role": "user", "content": "ping"}], max_tokens=5, temperature=0)
        except TranslationError as e:
            logger.warning(f"Connection test failed for {self.name}/{model}: {e}")
            return False

        logger.info(f"Connection test passed for {self.name}/{model}")
        return True

    def _request(
        self,
        prompt_name: str,
        model: str,
        target_language: str,
        source_language: str,
        **template_vars,
    ) -> RawModelOutput:
        prompt = self.prompt_loader.load(prompt_name)
        variables = {
            "target_language": target_language,
            "source_language": source_language if source_language != "auto" else "detect it",
        }
        variables.update(template_vars)

        user_prompt = prompt.format_user_prompt(**variables)
        messages = [
            {"role": "system", "content": prompt.format_system_prompt(**variables)},
            {"role": "user", "content": user_prompt},
        ]

        profile = self.profile(model)
        params = self.prompt_loader.get_model_params(
            prompt_name,
            self.count_tokens(user_prompt),
            model_limit=profile.max_output_tokens if profile else None,
            model_temperature=profile.default_temperature if profile else None,
        )
        return self.complete(model, messages, **params)

    def _add_slang_pass(
        self,
        output: RawModelOutput,
        chunk: Chunk,
        target_language: str,
        source_language: str,
    ):
        first = extract(output.content) or extract(output.reasoning)
        sections = (first or {}).get("sections") or []
        if not sections:
            # Nothing to analyse; the engine reports the malformed first pass
            return

        source_text = " ".join(element.text for element in chunk.elements)
        translated_text = " ".join(section.get("translated", "") for section in sections)
        if not looks_cultural(source_text, translated_text):
            logger.debug(f"Skipping slang pass for chunk {chunk.index}: no cultural markers")
            return

        try:
            second = self._request(
                self.SLANG_PROMPT, output.model, target_language, source_language,
                sections=sections,
            )
        except TranslationError as e:
            # The first-pass translation stands on its own
            logger.warning(f"Slang pass failed for chunk {chunk.index} on {output.model}: {e}")
            return

        output.supplement = second.content or second.reasoning
        output.latency_ms += second.latency_ms
        for key, value in second.usage.items():
            output.usage[key] = output.usage.get(key, 0) + value

    def _map_error(self, error: Exception, model: str, elapsed_ms: int) -> ProviderError:
        """Translate an openai SDK exception into a typed provider error."""
        if isinstance(error, openai.APITimeoutError):
            return ProviderTimeoutError(elapsed_ms, self.timeout_ms, provider=self.name, model=model)

        if isinstance(error, openai.APIStatusError):
            status = error.status_code
            kind = classify_status(status)
            message = f"{self.name} API error {status}: {error}"
            if kind is ErrorKind.RATE_LIMITED:
                hint = parse_retry_hint(str(error)) or _retry_after_header(error)
                return RateLimitedError(message, retry_after=hint, provider=self.name, model=model)
            return ProviderError(message, kind, status_code=status, provider=self.name, model=model)

        if isinstance(error, openai.APIConnectionError):
            return ProviderError(
                f"{self.name} connection error: {error}", ErrorKind.UNKNOWN,
                provider=self.name, model=model,
            )

        return ProviderError(f"{self.name} error: {error}", provider=self.name, model=model)


def _retry_after_header(error: Exception) -> Optional[float]:
    response = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    value = headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


def _usage_dict(usage: Any) -> Dict[str, int]:
    if usage is None:
        return {}
    keys = ("prompt_tokens", "completion_tokens", "total_tokens")
    return {key: int(getattr(usage, key)) for key in keys if getattr(usage, key, None) is not None}
