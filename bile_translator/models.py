"""Data models for the bilingual translation system."""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, FrozenSet, Any
from enum import Enum


class ElementKind(str, Enum):
    """Kind of a content element."""
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    QUOTE = "quote"
    IMAGE = "image"


class ContentType(str, Enum):
    """Coarse content classification used to bias model ordering."""
    TECHNICAL = "technical"
    NEWS = "news"
    BLOG = "blog"
    ACADEMIC = "academic"
    LONG_FORM = "long-form"
    CREATIVE = "creative"
    PROFESSIONAL = "professional"


class Strategy(str, Enum):
    """Prompt/schema/token-budget profile for one provider call."""
    MINIMAL = "minimal"  # abbreviated schema, lowest cost
    BALANCED = "balanced"  # full field names, larger budget
    TWOPASS = "twopass"  # translate first, explain slang only if needed


@dataclass
class ContentElement:
    """One ordered element of an article."""
    kind: ElementKind = ElementKind.PARAGRAPH
    text: str = ""
    level: Optional[int] = None  # heading 1-6
    ordered: Optional[bool] = None  # list
    src: Optional[str] = None  # image
    alt: Optional[str] = None  # image

    def to_payload(self) -> Dict[str, Any]:
        """Shape sent to the model."""
        payload: Dict[str, Any] = {"type": self.kind.value, "text": self.text}
        if self.level is not None:
            payload["level"] = self.level
        if self.ordered is not None:
            payload["ordered"] = self.ordered
        return payload


@dataclass
class ContentRecord:
    """Canonical article representation produced by the normalizer."""
    title: str
    elements: List[ContentElement] = field(default_factory=list)
    domain: Optional[str] = None
    language: Optional[str] = None

    def full_text(self) -> str:
        return " ".join(element.text for element in self.elements)


@dataclass
class Chunk:
    """Size-bounded, order-preserving slice of a record."""
    index: int
    title: str
    elements: List[ContentElement] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": [element.to_payload() for element in self.elements],
        }

    def as_record(self) -> ContentRecord:
        return ContentRecord(title=self.title, elements=list(self.elements))


@dataclass
class SlangTerm:
    """Cultural or slang term with explanations bound to a language.

    ``explanation_source`` is always in the article's source language and
    ``explanation_target`` always in the requested target language.
    """
    term: str
    translation: str = ""
    explanation_source: str = ""
    explanation_target: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "term": self.term,
            "translation": self.translation,
            "explanationSource": self.explanation_source,
            "explanationTarget": self.explanation_target,
        }


@dataclass
class TranslatedSection:
    """Parallel original/translated pair for one content element."""
    kind: str
    original: str
    translated: str
    slang_terms: List[SlangTerm] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "original": self.original,
            "translated": self.translated,
            "slangTerms": [term.to_dict() for term in self.slang_terms],
        }


@dataclass
class ResultMetadata:
    """Provenance of a translation result."""
    provider: str
    model: str
    strategy: str
    duration_ms: int = 0
    attempt_count: int = 1
    chunked: bool = False
    chunk_count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "provider": self.provider,
            "model": self.model,
            "strategy": self.strategy,
            "durationMs": self.duration_ms,
            "attemptCount": self.attempt_count,
        }
        if self.chunked:
            data["chunked"] = True
            data["chunkCount"] = self.chunk_count
        return data


@dataclass
class TranslationResult:
    """Bilingual translation of a record or chunk."""
    source_language: str
    target_language: str
    title_original: str
    title_translated: str
    sections: List[TranslatedSection] = field(default_factory=list)
    metadata: Optional[ResultMetadata] = None

    def to_dict(self) -> Dict[str, Any]:
        """Consumer-facing camelCase JSON structure."""
        data: Dict[str, Any] = {
            "sourceLanguage": self.source_language,
            "targetLanguage": self.target_language,
            "titleOriginal": self.title_original,
            "titleTranslated": self.title_translated,
            "sections": [section.to_dict() for section in self.sections],
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data


@dataclass(frozen=True)
class ModelProfile:
    """Immutable reference data for one provider model."""
    id: str
    provider: str
    context_length: int
    supported_languages: FrozenSet[str]
    preferred_content_types: FrozenSet[ContentType] = frozenset()
    default_temperature: float = 0.3
    max_output_tokens: int = 4000

    def supports(self, language: Optional[str]) -> bool:
        """Unknown or undetected languages never disqualify a model."""
        if not language or language == "auto":
            return True
        return language.lower() in self.supported_languages


@dataclass
class AttemptRecord:
    """Outcome of one model attempt within a translation session."""
    model_id: str
    success: bool
    latency_ms: int
    quality_score: Optional[float] = None
    error_kind: Optional[Any] = None  # ErrorKind
    provider: Optional[str] = None
