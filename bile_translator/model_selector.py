"""Model selection, failover and rolling per-model performance stats."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .model_config import CONTENT_TYPE_PREFERENCES, LANGUAGE_PREFERENCES, ROSTERS
from .models import AttemptRecord, ContentType, ModelProfile

logger = logging.getLogger(__name__)

# Rough chars-to-tokens safety factor for context-length checks
TOKEN_SAFETY_FACTOR = 1.5


@dataclass
class SelectionCriteria:
    """Inputs to model selection for one unit of content."""
    source_language: str = "auto"
    target_language: str = "en"
    content_type: ContentType = ContentType.BLOG
    content_length: int = 0


@dataclass
class FailoverContext:
    """Failover state for one translation session.

    Owned by the orchestrator and passed explicitly, so concurrent sessions
    never share exclusion history.
    """
    attempts: List[AttemptRecord] = field(default_factory=list)
    excluded: Set[str] = field(default_factory=set)
    excluded_providers: Set[str] = field(default_factory=set)

    def record(self, attempt: AttemptRecord):
        """Record an attempt; the attempted model is excluded from now on."""
        self.attempts.append(attempt)
        self.excluded.add(attempt.model_id)

    def exclude_provider(self, provider: str):
        self.excluded_providers.add(provider)

    def reset(self):
        """Forget attempts and excluded models after an accepted result.

        Providers excluded for bad credentials stay excluded for the session.
        """
        self.attempts = []
        self.excluded = set()


@dataclass
class ModelStats:
    """Accumulated performance of one model."""
    attempts: int = 0
    successes: int = 0
    total_latency_ms: int = 0
    quality_sum: float = 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.attempts if self.attempts else 0.0

    @property
    def average_latency_ms(self) -> Optional[float]:
        return self.total_latency_ms / self.successes if self.successes else None

    @property
    def average_quality(self) -> float:
        return self.quality_sum / self.successes if self.successes else 0.5


class PerformanceTracker:
    """Rolling per-model scores used to nudge default ordering.

    Not global: the host owns an instance and may persist it with
    ``to_dict``/``from_dict``.
    """

    NEUTRAL_SCORE = 0.5
    WEIGHTS = {"success_rate": 0.4, "speed": 0.2, "quality": 0.3, "baseline": 0.1}

    def __init__(self):
        self._stats: Dict[str, ModelStats] = {}

    def record(self, attempt: AttemptRecord):
        stats = self._stats.setdefault(attempt.model_id, ModelStats())
        stats.attempts += 1
        if attempt.success:
            stats.successes += 1
            stats.total_latency_ms += attempt.latency_ms
            if attempt.quality_score is not None:
                stats.quality_sum += attempt.quality_score
            else:
                stats.quality_sum += 0.5

    def record_all(self, attempts: Iterable[AttemptRecord]):
        for attempt in attempts:
            self.record(attempt)

    def stats(self, model_id: str) -> Optional[ModelStats]:
        return self._stats.get(model_id)

    def score(self, model_id: str) -> float:
        """successRate*0.4 + normalizedSpeed*0.2 + avgQuality*0.3 + 0.1."""
        stats = self._stats.get(model_id)
        if stats is None or not stats.attempts:
            return self.NEUTRAL_SCORE

        latency = stats.average_latency_ms
        # 5s maps to 1.0, 50s and slower to 0.0
        speed = 0.0 if latency is None else max(0.0, min(1.0, 1 - (latency - 5000) / 45000))

        return (
            stats.success_rate * self.WEIGHTS["success_rate"]
            + speed * self.WEIGHTS["speed"]
            + stats.average_quality * self.WEIGHTS["quality"]
            + self.WEIGHTS["baseline"]
        )

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            model_id: {
                "attempts": s.attempts,
                "successes": s.successes,
                "total_latency_ms": s.total_latency_ms,
                "quality_sum": s.quality_sum,
            }
            for model_id, s in self._stats.items()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Dict[str, float]]) -> "PerformanceTracker":
        tracker = cls()
        for model_id, values in (data or {}).items():
            tracker._stats[model_id] = ModelStats(
                attempts=int(values.get("attempts", 0)),
                successes=int(values.get("successes", 0)),
                total_latency_ms=int(values.get("total_latency_ms", 0)),
                quality_sum=float(values.get("quality_sum", 0.0)),
            )
        return tracker


class ModelSelector:
    """Chooses an initial model and failover models for one provider."""

    def __init__(
        self,
        provider: str,
        roster: Optional[List[ModelProfile]] = None,
        language_preferences: Optional[Dict[str, List[str]]] = None,
        content_type_preferences: Optional[Dict[ContentType, List[str]]] = None,
        tracker: Optional[PerformanceTracker] = None,
    ):
        """Initialize selector.

        Args:
            provider: Provider name
            roster: Model profiles, fastest-observed-first (defaults to built-in)
            language_preferences: Language code -> ordered model IDs
            content_type_preferences: Content type -> ordered model IDs
            tracker: Rolling performance stats (creates empty if None)
        """
        self.provider = provider
        self.roster = list(roster if roster is not None else ROSTERS.get(provider, []))
        self.language_preferences = (
            language_preferences if language_preferences is not None
            else LANGUAGE_PREFERENCES.get(provider, {})
        )
        self.content_type_preferences = (
            content_type_preferences if content_type_preferences is not None
            else CONTENT_TYPE_PREFERENCES.get(provider, {})
        )
        self.tracker = tracker or PerformanceTracker()
        self._profiles = {profile.id: profile for profile in self.roster}

    @property
    def model_ids(self) -> List[str]:
        return [profile.id for profile in self.roster]

    def profile(self, model_id: str) -> Optional[ModelProfile]:
        return self._profiles.get(model_id)

    def select_initial(
        self,
        criteria: SelectionCriteria,
        override: Optional[str] = None,
    ) -> Optional[str]:
        """Pick the first model for a session.

        Precedence: explicit override, target-language table,
        source-language table, content-type table, default ordering.
        Returns None when no model supports the language pair.
        """
        if override:
            return override

        for candidates in self._preference_lists(criteria):
            choice = self._first_fit(candidates, criteria, excluded=set())
            if choice:
                return choice

        choice = self._first_fit(self.ranked_roster(), criteria, excluded=set())
        if choice:
            return choice

        fallback = self._largest_context(criteria, excluded=set())
        if fallback is None:
            logger.warning(
                f"No {self.provider} model supports "
                f"{criteria.source_language}->{criteria.target_language}"
            )
            return None
        logger.warning(
            f"No {self.provider} model fits {criteria.content_length} chars "
            f"for {criteria.source_language}->{criteria.target_language}; using {fallback}"
        )
        return fallback

    def select_failover(
        self,
        criteria: SelectionCriteria,
        excluded: Set[str],
    ) -> Optional[str]:
        """Pick a model not yet attempted, or None when all are excluded."""
        ordered: List[str] = []
        for candidates in self._preference_lists(criteria):
            ordered.extend(candidates)
        ordered.extend(self.ranked_roster())

        choice = self._first_fit(_unique(ordered), criteria, excluded)
        if choice:
            return choice
        return self._largest_context(criteria, excluded)

    def ranked_roster(self) -> List[str]:
        """Roster ordered by rolling score; ties keep roster order."""
        indexed = list(enumerate(self.roster))
        indexed.sort(key=lambda pair: (-self.tracker.score(pair[1].id), pair[0]))
        return [profile.id for _, profile in indexed]

    def _preference_lists(self, criteria: SelectionCriteria) -> List[List[str]]:
        lists = []
        for language in (criteria.target_language, criteria.source_language):
            candidates = self.language_preferences.get((language or "").lower())
            if candidates:
                lists.append(candidates)

        candidates = self.content_type_preferences.get(criteria.content_type)
        if candidates:
            lists.append(candidates)
        return lists

    def _eligible(self, model_id: str, criteria: SelectionCriteria, excluded: Set[str]) -> bool:
        profile = self._profiles.get(model_id)
        if profile is None or model_id in excluded:
            return False
        return (
            profile.supports(criteria.target_language)
            and profile.supports(criteria.source_language)
        )

    def _first_fit(
        self,
        candidates: Iterable[str],
        criteria: SelectionCriteria,
        excluded: Set[str],
    ) -> Optional[str]:
        needed = criteria.content_length * TOKEN_SAFETY_FACTOR
        for model_id in candidates:
            if not self._eligible(model_id, criteria, excluded):
                continue
            if self._profiles[model_id].context_length >= needed:
                return model_id
        return None

    def _largest_context(self, criteria: SelectionCriteria, excluded: Set[str]) -> Optional[str]:
        eligible = [
            profile for profile in self.roster
            if self._eligible(profile.id, criteria, excluded)
        ]
        if not eligible:
            return None
        return max(eligible, key=lambda profile: profile.context_length).id


def _unique(items: Iterable[str]) -> List[str]:
    seen = set()
    ordered = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered
