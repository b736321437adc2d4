"""Bilingual article translation.

Translates scraped articles into parallel original/translated sections with
slang and cultural term explanations, using free-tier LLM providers with
automatic failover.
"""

__version__ = "0.1.0"

from .errors import ErrorKind, TranslationError
from .main import ArticleTranslator
from .models import ContentRecord, Strategy, TranslationResult
from .normalizer import normalize

__all__ = [
    "ArticleTranslator",
    "ContentRecord",
    "ErrorKind",
    "Strategy",
    "TranslationError",
    "TranslationResult",
    "normalize",
]
