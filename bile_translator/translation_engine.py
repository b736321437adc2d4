"""One translation attempt: provider call, extraction, validation."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import MalformedOutputError, QualityRejectedError, TranslationError
from .models import (
    AttemptRecord,
    Chunk,
    ElementKind,
    ResultMetadata,
    SlangTerm,
    Strategy,
    TranslatedSection,
    TranslationResult,
)
from .openai_client import ProviderClient, RawModelOutput
from .quality import QualityValidator
from .response_parser import expand_terms, extract, parse_robustly

logger = logging.getLogger(__name__)

_ELEMENT_KINDS = {kind.value for kind in ElementKind}


@dataclass
class AttemptOutcome:
    """Result of one attempt: either ``result`` or ``error`` is set."""
    provider: str
    model: str
    latency_ms: int
    result: Optional[TranslationResult] = None
    error: Optional[TranslationError] = None
    quality_score: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_record(self) -> AttemptRecord:
        return AttemptRecord(
            model_id=self.model,
            success=self.ok,
            latency_ms=self.latency_ms,
            quality_score=self.quality_score,
            error_kind=None if self.ok else self.error.kind,
            provider=self.provider,
        )


class TranslationEngine:
    """Turns provider output for one chunk into a validated result."""

    def __init__(self, validator: Optional[QualityValidator] = None):
        """Initialize translation engine.

        Args:
            validator: Quality validator (creates default if None)
        """
        self.validator = validator or QualityValidator()

    def translate_chunk(
        self,
        client: ProviderClient,
        chunk: Chunk,
        model: str,
        target_language: str,
        strategy: Strategy,
        source_language: str = "auto",
        min_quality: Optional[float] = None,
    ) -> AttemptOutcome:
        """Run one attempt for a chunk on one model.

        Retryable conditions come back as ``AttemptOutcome.error``; only
        unexpected exceptions propagate.
        """
        started = time.monotonic()
        try:
            raw = client.translate(chunk, target_language, strategy, model, source_language)
        except TranslationError as e:
            return AttemptOutcome(
                provider=client.name,
                model=model,
                latency_ms=int((time.monotonic() - started) * 1000),
                error=e,
            )

        return self.evaluate(raw, chunk, target_language, strategy, source_language, min_quality)

    def evaluate(
        self,
        raw: RawModelOutput,
        chunk: Chunk,
        target_language: str,
        strategy: Strategy,
        source_language: str = "auto",
        min_quality: Optional[float] = None,
    ) -> AttemptOutcome:
        """Extract, validate and build a result from raw model output.

        Args:
            raw: Provider response
            chunk: Chunk that was translated
            target_language: Requested target language
            strategy: Strategy used for the request
            source_language: Known source language or "auto"
            min_quality: Override of the validator's acceptance threshold

        Returns:
            AttemptOutcome with a result, or a MalformedOutput/QualityRejected error
        """
        outcome = AttemptOutcome(provider=raw.provider, model=raw.model, latency_ms=raw.latency_ms)

        candidate = extract(raw.content) if raw.content else None
        if candidate is None and raw.reasoning:
            logger.debug(f"Content of {raw.model} unusable, trying reasoning field")
            candidate = extract(raw.reasoning)

        if candidate is None:
            outcome.error = MalformedOutputError(
                f"Unparseable output from {raw.provider}/{raw.model}",
                raw_text=raw.content or raw.reasoning or "",
            )
            return outcome

        if raw.supplement:
            attach_slang_terms(candidate, raw.supplement)

        record = chunk.as_record()
        verdict = self.validator.evaluate(candidate, record, target_language, min_quality)
        outcome.quality_score = verdict.score
        if not verdict.accepted:
            outcome.error = QualityRejectedError(
                f"Rejected output from {raw.provider}/{raw.model}: {verdict.reason}",
                score=verdict.score,
                reason=verdict.reason,
            )
            return outcome

        outcome.result = build_result(
            candidate, chunk, raw, Strategy(strategy), target_language, source_language,
        )
        return outcome


def build_result(
    candidate: Dict[str, Any],
    chunk: Chunk,
    raw: RawModelOutput,
    strategy: Strategy,
    target_language: str,
    source_language: str = "auto",
) -> TranslationResult:
    """Build a TranslationResult from an accepted canonical candidate."""
    sections = []
    for index, item in enumerate(candidate.get("sections") or []):
        element = chunk.elements[index] if index < len(chunk.elements) else None
        kind = item.get("kind")
        if kind not in _ELEMENT_KINDS:
            kind = element.kind.value if element else ElementKind.PARAGRAPH.value

        sections.append(TranslatedSection(
            kind=kind,
            original=item.get("original") or (element.text if element else ""),
            translated=item.get("translated") or "",
            slang_terms=[
                SlangTerm(
                    term=term["term"],
                    translation=term.get("translation", ""),
                    explanation_source=term.get("explanationSource", ""),
                    explanation_target=term.get("explanationTarget", ""),
                )
                for term in item.get("slangTerms") or []
            ],
        ))

    title_original = candidate.get("titleOriginal") or chunk.title
    detected = candidate.get("sourceLanguage")
    return TranslationResult(
        source_language=str(detected) if detected else source_language,
        target_language=target_language,
        title_original=str(title_original),
        title_translated=str(candidate.get("titleTranslated") or title_original),
        sections=sections,
        metadata=ResultMetadata(
            provider=raw.provider,
            model=raw.model,
            strategy=strategy.value,
            duration_ms=raw.latency_ms,
        ),
    )


def attach_slang_terms(candidate: Dict[str, Any], supplement: str) -> int:
    """Merge second-pass slang terms into a canonical candidate.

    Terms go to the section named by their index, else to the first
    section whose original contains the term, else to the first section.

    Returns:
        Number of terms attached
    """
    sections: List[Dict[str, Any]] = candidate.get("sections") or []
    if not sections:
        return 0

    parsed = parse_robustly(supplement)
    if isinstance(parsed, dict):
        items = parsed.get("st") or parsed.get("slangTerms") or parsed.get("slang_terms")
    else:
        items = parsed

    terms = expand_terms(items)
    for term in terms:
        target = _section_for(term, sections)
        target.setdefault("slangTerms", []).append(term)

    if terms:
        logger.debug(f"Attached {len(terms)} slang term(s) from second pass")
    return len(terms)


def _section_for(term: Dict[str, Any], sections: List[Dict[str, Any]]) -> Dict[str, Any]:
    index = term.pop("section", None)
    try:
        index = int(index)
    except (TypeError, ValueError):
        index = None
    if index is not None and 0 <= index < len(sections):
        return sections[index]

    needle = term["term"].lower()
    for section in sections:
        if needle in (section.get("original") or "").lower():
            return section
    return sections[0]
