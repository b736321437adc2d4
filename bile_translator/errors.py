"""Error taxonomy for translation sessions."""

import re
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of attempt and session failures."""
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    AUTH_FAILURE = "auth_failure"
    MALFORMED_OUTPUT = "malformed_output"
    QUALITY_REJECTED = "quality_rejected"
    MODELS_EXHAUSTED = "models_exhausted"
    CHUNK_TRANSLATION_FAILED = "chunk_translation_failed"
    UNKNOWN = "unknown"


# Kinds that fail over to another model of the same provider
RETRYABLE_KINDS = frozenset({
    ErrorKind.TIMEOUT,
    ErrorKind.RATE_LIMITED,
    ErrorKind.PROVIDER_UNAVAILABLE,
    ErrorKind.MALFORMED_OUTPUT,
    ErrorKind.QUALITY_REJECTED,
    ErrorKind.UNKNOWN,
})

# Kinds that disqualify the provider's credentials for the rest of the session
CREDENTIAL_KINDS = frozenset({
    ErrorKind.AUTH_FAILURE,
    ErrorKind.QUOTA_EXCEEDED,
})

_RETRY_HINT = re.compile(r"try again in\s+((?:\d+(?:\.\d+)?(?:ms|h|m|s))+)", re.IGNORECASE)
_HINT_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")


class TranslationError(Exception):
    """Base class for all translation failures."""

    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class ProviderError(TranslationError):
    """Failure reported by (or while talking to) a provider."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status_code: Optional[int] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        super().__init__(message, kind)
        self.status_code = status_code
        self.provider = provider
        self.model = model


class ProviderTimeoutError(ProviderError):
    """A single provider call exceeded its configured timeout."""

    def __init__(
        self,
        elapsed_ms: int,
        timeout_ms: int,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        super().__init__(
            f"{provider or 'provider'} request timed out after {elapsed_ms}ms "
            f"(limit {timeout_ms}ms)",
            ErrorKind.TIMEOUT,
            provider=provider,
            model=model,
        )
        self.elapsed_ms = elapsed_ms
        self.timeout_ms = timeout_ms


class RateLimitedError(ProviderError):
    """HTTP 429 from a provider, with an optional retry hint in seconds."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        super().__init__(message, ErrorKind.RATE_LIMITED, 429, provider, model)
        self.retry_after = retry_after


class MalformedOutputError(TranslationError):
    """No extraction or repair stage produced valid JSON."""

    kind = ErrorKind.MALFORMED_OUTPUT

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class QualityRejectedError(TranslationError):
    """A parsed candidate failed quality validation."""

    kind = ErrorKind.QUALITY_REJECTED

    def __init__(self, message: str, score: float = 0.0, reason: str = ""):
        super().__init__(message)
        self.score = score
        self.reason = reason


class ModelsExhaustedError(TranslationError):
    """No failover candidate is left across the configured providers."""

    kind = ErrorKind.MODELS_EXHAUSTED


class RetriesExhaustedError(TranslationError):
    """All attempts for a unit were used without an accepted result."""

    def __init__(self, attempts: int, last_error: Optional[TranslationError] = None):
        detail = f": {last_error}" if last_error else ""
        super().__init__(
            f"Translation failed after {attempts} attempt(s){detail}",
            last_error.kind if last_error else ErrorKind.UNKNOWN,
        )
        self.attempts = attempts
        self.last_error = last_error


class ChunkTranslationFailedError(TranslationError):
    """A chunk failed terminally, so the whole merge fails."""

    kind = ErrorKind.CHUNK_TRANSLATION_FAILED

    def __init__(self, chunk_index: int, chunk_count: int, cause: TranslationError):
        super().__init__(
            f"Chunk {chunk_index + 1}/{chunk_count} failed: {cause}"
        )
        self.chunk_index = chunk_index
        self.chunk_count = chunk_count


def classify_status(status_code: int) -> ErrorKind:
    """Map a non-2xx HTTP status to an error kind."""
    if status_code in (401, 403):
        return ErrorKind.AUTH_FAILURE
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code == 402:
        return ErrorKind.QUOTA_EXCEEDED
    if status_code in (502, 503):
        return ErrorKind.PROVIDER_UNAVAILABLE
    return ErrorKind.UNKNOWN


def parse_retry_hint(message: str) -> Optional[float]:
    """Parse a "try again in 6m26.751s" hint into seconds."""
    if not message:
        return None

    match = _RETRY_HINT.search(message)
    if not match:
        return None

    units = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}
    return sum(
        float(value) * units[unit]
        for value, unit in _HINT_PART.findall(match.group(1))
    )
