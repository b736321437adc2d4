"""Main translation orchestrator."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .chunker import chunk_record, merge_results
from .config import TranslatorConfig, load_config
from .content_classifier import ContentClassifier
from .errors import (
    CREDENTIAL_KINDS,
    ChunkTranslationFailedError,
    ModelsExhaustedError,
    RetriesExhaustedError,
    TranslationError,
)
from .model_selector import FailoverContext, ModelSelector, PerformanceTracker, SelectionCriteria
from .models import Chunk, ContentType, Strategy, TranslationResult
from .normalizer import estimate_chars, normalize
from .openai_client import ProviderClient
from .prompt_loader import PromptLoader
from .providers import PROVIDERS, create_provider
from .quality import QualityValidator
from .translation_engine import TranslationEngine

logger = logging.getLogger(__name__)


@dataclass
class TranslationSession:
    """State of one translate() call; never shared between calls."""
    provider_order: List[str]
    provider: str
    target_language: str
    source_language: str
    strategy: Strategy
    content_type: ContentType
    model_override: Optional[str] = None
    context: FailoverContext = field(default_factory=FailoverContext)


class ArticleTranslator:
    """Main orchestrator for bilingual article translation."""

    def __init__(
        self,
        config: Optional[TranslatorConfig] = None,
        config_path: Optional[str] = None,
        providers: Optional[Dict[str, ProviderClient]] = None,
        tracker: Optional[PerformanceTracker] = None,
        sleep: Optional[Callable[[float], None]] = None,
        token_counter: Optional[Callable[[str], int]] = None,
    ):
        """Initialize translator with configuration.

        Args:
            config: Ready configuration (loaded from ``config_path`` if None)
            config_path: Path to config YAML file
            providers: Pre-built provider clients by name (built from config if None)
            tracker: Rolling model performance stats (creates empty if None)
            sleep: Sleep function taking seconds (``time.sleep`` if None)
            token_counter: Token counting callable for provider clients

        Raises:
            ValueError: If no provider is usable
        """
        if config is None:
            config = load_config(config_path, require_keys=providers is None)
        self.config = config
        self.tracker = tracker or PerformanceTracker()
        self.sleep = sleep or time.sleep
        self.prompt_loader = PromptLoader()

        if providers is None:
            providers = self._build_providers(token_counter)
        if not providers:
            raise ValueError("No provider with an API key is configured")
        self.providers = providers

        self.selectors = {
            name: ModelSelector(name, roster=client.roster, tracker=self.tracker)
            for name, client in self.providers.items()
        }

        settings = self.config.translation
        self.engine = TranslationEngine(
            QualityValidator(settings.min_quality, settings.min_coverage)
        )
        self.classifier = ContentClassifier()

    def _build_providers(self, token_counter: Optional[Callable[[str], int]]) -> Dict[str, ProviderClient]:
        providers = {}
        for name in self.config.provider_order():
            settings = self.config.settings_for(name)
            if not settings.api_key:
                logger.debug(f"Skipping provider {name}: no API key")
                continue
            if name not in PROVIDERS:
                logger.warning(f"Skipping unknown provider '{name}'")
                continue
            providers[name] = create_provider(
                name,
                settings.api_key,
                base_url=settings.base_url,
                timeout_ms=settings.timeout_ms,
                token_counter=token_counter,
                prompt_loader=self.prompt_loader,
            )
        return providers

    def provider_order(self, preferred: Optional[str] = None) -> List[str]:
        """Configured providers in failover order, ``preferred`` first."""
        order = [name for name in self.config.provider_order() if name in self.providers]
        order += [name for name in self.providers if name not in order]
        if preferred:
            if preferred not in self.providers:
                raise ValueError(
                    f"Provider '{preferred}' is not configured "
                    f"(available: {', '.join(order)})"
                )
            order.remove(preferred)
            order.insert(0, preferred)
        return order

    def translate(
        self,
        raw: Any,
        target_language: Optional[str] = None,
        strategy: Optional[str] = None,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        source_language: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> TranslationResult:
        """Translate an article into a bilingual result.

        Args:
            raw: Article as a string, list of elements, dict or object
            target_language: Target language code (config default if None)
            strategy: "minimal", "balanced" or "twopass" (config default if None)
            model: Explicit model override for the first attempt
            provider: Provider to try first
            source_language: Source language code (detected if None)
            domain: Source domain hint for content classification

        Returns:
            TranslationResult with metadata

        Raises:
            ValueError: If the content is empty or arguments are invalid
            ModelsExhaustedError: If no failover candidate is left
            RetriesExhaustedError: If every attempt for the content failed
            ChunkTranslationFailedError: If one chunk of a long article failed
        """
        started = time.monotonic()
        settings = self.config.translation

        record = normalize(raw)
        if not record.elements:
            raise ValueError("Content has no elements to translate")

        order = self.provider_order(provider)
        session = TranslationSession(
            provider_order=order,
            provider=order[0],
            target_language=target_language or settings.target_language,
            source_language=(
                source_language or record.language
                or self.classifier.detect_language(record.full_text())
            ),
            strategy=Strategy(strategy or settings.strategy),
            content_type=self.classifier.classify(record, domain),
            model_override=model or self.config.model,
        )
        logger.info(
            f"Translating '{record.title}' ({len(record.elements)} elements, "
            f"{estimate_chars(record)} chars) {session.source_language}->{session.target_language}, "
            f"type={session.content_type.value}, strategy={session.strategy.value}"
        )

        chunks = chunk_record(record, settings.max_chunk_chars)
        if len(chunks) == 1:
            result = self._translate_unit(chunks[0], session)
        else:
            result = self._translate_chunks(chunks, session)
            result.title_original = record.title

        result.metadata.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Translation finished with {result.metadata.provider}/{result.metadata.model} "
            f"in {result.metadata.duration_ms}ms, {result.metadata.attempt_count} attempt(s)"
        )
        return result

    def translate_text(self, text: str, target_language: Optional[str] = None, **kwargs) -> TranslationResult:
        """Translate a plain text as a single-paragraph article."""
        return self.translate(text, target_language=target_language, **kwargs)

    def test_connection(self) -> Dict[str, bool]:
        """Check every configured provider.

        Returns:
            Provider name -> reachable with valid credentials
        """
        return {name: client.test_connection() for name, client in self.providers.items()}

    def _translate_chunks(self, chunks: List[Chunk], session: TranslationSession) -> TranslationResult:
        delay_ms = self.config.translation.chunk_delay_ms
        results = []
        for chunk in chunks:
            if chunk.index > 0 and delay_ms:
                self.sleep(delay_ms / 1000)

            logger.info(f"Chunk {chunk.index + 1}/{len(chunks)}: {len(chunk.elements)} elements")
            try:
                results.append(self._translate_unit(chunk, session))
            except TranslationError as e:
                raise ChunkTranslationFailedError(chunk.index, len(chunks), e) from e

        return merge_results(results)

    def _translate_unit(self, chunk: Chunk, session: TranslationSession) -> TranslationResult:
        """Retry/failover loop for one chunk (or the whole record)."""
        settings = self.config.translation
        context = session.context
        criteria = SelectionCriteria(
            source_language=session.source_language,
            target_language=session.target_language,
            content_type=session.content_type,
            content_length=estimate_chars(chunk.as_record()),
        )

        candidate = self._initial_candidate(criteria, session)
        last_error: Optional[TranslationError] = None

        for attempt in range(settings.max_retries):
            if candidate is None:
                raise ModelsExhaustedError(
                    f"No model left to try for chunk {chunk.index} "
                    f"(excluded: {', '.join(sorted(context.excluded)) or 'none'})"
                ) from last_error

            provider_name, model = candidate
            logger.info(
                f"Attempt {attempt + 1}/{settings.max_retries} for chunk {chunk.index} "
                f"with {provider_name}/{model}"
            )
            outcome = self.engine.translate_chunk(
                self.providers[provider_name],
                chunk,
                model,
                session.target_language,
                session.strategy,
                session.source_language,
            )
            record = outcome.to_record()
            context.record(record)
            self.tracker.record(record)

            if outcome.ok:
                result = outcome.result
                result.metadata.attempt_count = attempt + 1
                context.reset()
                return result

            last_error = outcome.error
            logger.warning(
                f"Attempt {attempt + 1} with {provider_name}/{model} failed "
                f"({last_error.kind.value}): {last_error}"
            )
            if last_error.kind in CREDENTIAL_KINDS:
                logger.warning(f"Excluding provider {provider_name} for this session")
                context.exclude_provider(provider_name)

            if attempt + 1 >= settings.max_retries:
                break

            candidate = self._next_candidate(criteria, session)
            if candidate is not None:
                delay_ms = self.backoff_ms(attempt, last_error)
                logger.debug(f"Backing off {delay_ms}ms before next attempt")
                self.sleep(delay_ms / 1000)

        raise RetriesExhaustedError(settings.max_retries, last_error) from last_error

    def _initial_candidate(
        self,
        criteria: SelectionCriteria,
        session: TranslationSession,
    ) -> Optional[Tuple[str, str]]:
        if session.provider in session.context.excluded_providers:
            return self._next_candidate(criteria, session)

        selector = self.selectors[session.provider]
        override = session.model_override
        # The override names a model of the first provider unless another roster has it
        if override and session.provider != session.provider_order[0] and override not in selector.model_ids:
            override = None
        model = selector.select_initial(criteria, override=override)
        if model is None:
            return self._next_candidate(criteria, session)
        return session.provider, model

    def _next_candidate(
        self,
        criteria: SelectionCriteria,
        session: TranslationSession,
    ) -> Optional[Tuple[str, str]]:
        """Next untried model, switching provider when the current one is spent."""
        context = session.context

        if session.provider not in context.excluded_providers:
            model = self.selectors[session.provider].select_failover(criteria, context.excluded)
            if model:
                return session.provider, model

        for name in session.provider_order:
            if name == session.provider or name in context.excluded_providers:
                continue
            model = self.selectors[name].select_failover(criteria, context.excluded)
            if model:
                logger.warning(f"Switching provider {session.provider} -> {name}")
                session.provider = name
                return name, model

        return None

    def backoff_ms(self, attempt: int, error: Optional[TranslationError] = None) -> int:
        """Delay before the attempt after ``attempt`` (0-based).

        A rate-limit hint raises the delay, but never past the cap.
        """
        settings = self.config.translation
        delay = min(settings.backoff_base_ms * 2 ** attempt, settings.backoff_cap_ms)
        hint = getattr(error, "retry_after", None)
        if hint:
            delay = min(max(delay, int(hint * 1000)), settings.backoff_cap_ms)
        return delay
