"""Model rosters and selection preference tables per provider.

Rosters are ordered fastest-observed-first. Preference tables map a
language code or content type to an ordered list of candidate model IDs.
"""

from typing import Dict, List, Optional

from .models import ContentType, ModelProfile

_EUROPEAN = frozenset({"en", "de", "fr", "es", "it", "pt", "nl", "pl", "sv", "da", "no", "fi", "cs", "ru", "uk", "tr"})
_ASIAN = frozenset({"zh", "ja", "ko", "vi", "th", "id", "hi"})

GROQ_MODELS: List[ModelProfile] = [
    ModelProfile(
        id="llama-3.3-70b-versatile",
        provider="groq",
        context_length=131072,
        supported_languages=_EUROPEAN | _ASIAN | {"ar"},
        preferred_content_types=frozenset({ContentType.NEWS, ContentType.PROFESSIONAL, ContentType.BLOG}),
        default_temperature=0.1,
        max_output_tokens=3000,
    ),
    ModelProfile(
        id="llama-3.1-8b-instant",
        provider="groq",
        context_length=131072,
        supported_languages=frozenset({"en", "de", "fr", "es", "it", "pt", "hi", "th"}),
        preferred_content_types=frozenset({ContentType.BLOG, ContentType.NEWS}),
        default_temperature=0.1,
        max_output_tokens=3000,
    ),
    ModelProfile(
        id="qwen/qwen3-32b",
        provider="groq",
        context_length=131072,
        supported_languages=_EUROPEAN | _ASIAN | {"ar"},
        preferred_content_types=frozenset({ContentType.TECHNICAL, ContentType.ACADEMIC}),
        default_temperature=0.2,
        max_output_tokens=4000,
    ),
    ModelProfile(
        id="openai/gpt-oss-20b",
        provider="groq",
        context_length=131072,
        supported_languages=_EUROPEAN | _ASIAN,
        preferred_content_types=frozenset({ContentType.TECHNICAL, ContentType.LONG_FORM}),
        default_temperature=0.2,
        max_output_tokens=4000,
    ),
]

OPENROUTER_MODELS: List[ModelProfile] = [
    ModelProfile(
        id="qwen/qwen3-235b-a22b:free",
        provider="openrouter",
        context_length=1000000,
        supported_languages=frozenset({"zh", "en", "ja", "ko", "es", "fr", "de", "ru", "ar", "hi", "th", "vi"}),
        preferred_content_types=frozenset({ContentType.ACADEMIC, ContentType.LONG_FORM}),
        default_temperature=0.25,
        max_output_tokens=6000,
    ),
    ModelProfile(
        id="microsoft/mai-ds-r1:free",
        provider="openrouter",
        context_length=128000,
        supported_languages=frozenset({"en", "es", "fr", "de", "it", "pt", "zh", "ja", "ko"}),
        preferred_content_types=frozenset({ContentType.NEWS, ContentType.PROFESSIONAL}),
        default_temperature=0.2,
        max_output_tokens=4000,
    ),
    ModelProfile(
        id="moonshotai/kimi-k2:free",
        provider="openrouter",
        context_length=200000,
        supported_languages=frozenset({"zh", "en", "ja", "ko", "es", "fr", "de", "it", "pt", "ru"}),
        preferred_content_types=frozenset({ContentType.LONG_FORM}),
        default_temperature=0.3,
        max_output_tokens=4000,
    ),
    ModelProfile(
        id="tngtech/deepseek-r1t2-chimera:free",
        provider="openrouter",
        context_length=16000,
        supported_languages=frozenset({"en", "de", "fr", "es", "it", "zh", "ja", "pt"}),
        preferred_content_types=frozenset({ContentType.CREATIVE, ContentType.BLOG}),
        default_temperature=0.4,
        max_output_tokens=3500,
    ),
    ModelProfile(
        id="deepseek/deepseek-r1-0528:free",
        provider="openrouter",
        context_length=32000,
        supported_languages=frozenset({"en", "zh", "es", "fr", "de", "ja", "ko", "ru"}),
        preferred_content_types=frozenset({ContentType.TECHNICAL}),
        default_temperature=0.2,
        max_output_tokens=4000,
    ),
]

_QWEN = "qwen/qwen3-235b-a22b:free"
_MAI = "microsoft/mai-ds-r1:free"
_KIMI = "moonshotai/kimi-k2:free"
_CHIMERA = "tngtech/deepseek-r1t2-chimera:free"
_R1 = "deepseek/deepseek-r1-0528:free"

OPENROUTER_LANGUAGE_PREFERENCES: Dict[str, List[str]] = {
    "zh": [_QWEN, _KIMI, _R1],
    "ja": [_QWEN, _KIMI, _MAI],
    "ko": [_QWEN, _KIMI, _MAI],
    "en": [_MAI, _R1, _QWEN],
    "de": [_CHIMERA, _MAI, _R1],
    "fr": [_CHIMERA, _MAI, _QWEN],
    "es": [_MAI, _QWEN, _CHIMERA],
    "it": [_CHIMERA, _MAI, _QWEN],
    "pt": [_CHIMERA, _MAI, _QWEN],
    "ru": [_QWEN, _R1, _KIMI],
    "ar": [_QWEN, _MAI, _R1],
}

OPENROUTER_CONTENT_TYPE_PREFERENCES: Dict[ContentType, List[str]] = {
    ContentType.NEWS: [_MAI, _R1, _QWEN],
    ContentType.TECHNICAL: [_R1, _QWEN, _MAI],
    ContentType.BLOG: [_CHIMERA, _QWEN, _KIMI],
    ContentType.ACADEMIC: [_QWEN, _R1, _MAI],
    ContentType.LONG_FORM: [_QWEN, _KIMI, _MAI],
    ContentType.CREATIVE: [_CHIMERA, _QWEN, _KIMI],
    ContentType.PROFESSIONAL: [_MAI, _QWEN, _R1],
}

_LLAMA = "llama-3.3-70b-versatile"
_LLAMA_FAST = "llama-3.1-8b-instant"
_QWEN_GROQ = "qwen/qwen3-32b"
_GPT_OSS = "openai/gpt-oss-20b"

GROQ_LANGUAGE_PREFERENCES: Dict[str, List[str]] = {
    "zh": [_QWEN_GROQ, _LLAMA],
    "ja": [_QWEN_GROQ, _LLAMA],
    "ko": [_QWEN_GROQ, _LLAMA],
    "ar": [_QWEN_GROQ, _LLAMA],
    "ru": [_LLAMA, _QWEN_GROQ],
}

GROQ_CONTENT_TYPE_PREFERENCES: Dict[ContentType, List[str]] = {
    ContentType.TECHNICAL: [_QWEN_GROQ, _LLAMA, _GPT_OSS],
    ContentType.ACADEMIC: [_LLAMA, _QWEN_GROQ],
    ContentType.LONG_FORM: [_LLAMA, _GPT_OSS],
    ContentType.NEWS: [_LLAMA, _LLAMA_FAST],
    ContentType.BLOG: [_LLAMA, _LLAMA_FAST],
    ContentType.CREATIVE: [_LLAMA, _QWEN_GROQ],
    ContentType.PROFESSIONAL: [_LLAMA, _QWEN_GROQ],
}

ROSTERS: Dict[str, List[ModelProfile]] = {
    "groq": GROQ_MODELS,
    "openrouter": OPENROUTER_MODELS,
}

LANGUAGE_PREFERENCES: Dict[str, Dict[str, List[str]]] = {
    "groq": GROQ_LANGUAGE_PREFERENCES,
    "openrouter": OPENROUTER_LANGUAGE_PREFERENCES,
}

CONTENT_TYPE_PREFERENCES: Dict[str, Dict[ContentType, List[str]]] = {
    "groq": GROQ_CONTENT_TYPE_PREFERENCES,
    "openrouter": OPENROUTER_CONTENT_TYPE_PREFERENCES,
}


def get_profile(model_id: str, provider: Optional[str] = None) -> Optional[ModelProfile]:
    """Look up a model profile by ID."""
    rosters = [ROSTERS[provider]] if provider in ROSTERS else ROSTERS.values()
    for roster in rosters:
        for profile in roster:
            if profile.id == model_id:
                return profile
    return None
