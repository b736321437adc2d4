"""Heuristic quality validation of parsed translation candidates."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .models import ContentRecord


@dataclass
class QualityVerdict:
    """Result of validating one candidate."""
    accepted: bool
    score: float
    reason: str = ""


class QualityValidator:
    """Scores candidates and decides whether to accept them.

    The thresholds are empirical defaults, not correctness guarantees.
    """

    BASE_SCORE = 0.5

    def __init__(self, min_threshold: float = 0.6, min_coverage: float = 0.8):
        """Initialize validator.

        Args:
            min_threshold: Minimum score for acceptance
            min_coverage: Minimum ratio of returned sections to original elements
        """
        self.min_threshold = min_threshold
        self.min_coverage = min_coverage

    def score(self, candidate: Dict[str, Any], original: ContentRecord) -> float:
        """Heuristic confidence in [0, 1]."""
        sections = candidate.get("sections") if isinstance(candidate, dict) else None
        score = self.BASE_SCORE

        if isinstance(sections, list) and sections:
            score += 0.2

            if any(
                isinstance(s, dict) and s.get("translated") and s.get("translated") != s.get("original")
                for s in sections
            ):
                score += 0.2

            if any(isinstance(s, dict) and s.get("slangTerms") for s in sections):
                score += 0.1

        return min(1.0, score)

    def evaluate(
        self,
        candidate: Dict[str, Any],
        original: ContentRecord,
        target_language: str,
        min_threshold: Optional[float] = None,
    ) -> QualityVerdict:
        """Score a candidate and explain a rejection."""
        threshold = self.min_threshold if min_threshold is None else min_threshold
        score = self.score(candidate, original)

        if score < threshold:
            return QualityVerdict(False, score, f"score {score:.2f} below {threshold:.2f}")

        returned = candidate.get("targetLanguage")
        if not _same_language(returned, target_language):
            return QualityVerdict(
                False, score, f"target language {returned!r} != {target_language!r}"
            )

        sections = candidate.get("sections") or []
        expected = len(original.elements)
        if len(sections) < self.min_coverage * expected:
            return QualityVerdict(
                False, score, f"{len(sections)}/{expected} sections returned"
            )

        return QualityVerdict(True, score)

    def accept(
        self,
        candidate: Dict[str, Any],
        original: ContentRecord,
        target_language: str,
        min_threshold: Optional[float] = None,
    ) -> bool:
        return self.evaluate(candidate, original, target_language, min_threshold).accepted


def _same_language(returned: Any, requested: str) -> bool:
    if not returned or not requested:
        return False
    return _base_code(str(returned)) == _base_code(requested)


def _base_code(code: str) -> str:
    return code.strip().lower().replace("_", "-").split("-")[0]
