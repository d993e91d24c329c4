"""Shared session preparation used by the CLI and the reader window.

Preparation turns a source into everything playback needs: the cleaned text,
its items, a duration schedule and optional quiz prompts. The result cache is
checked here, before any scoring, so a cached text is never scored again.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
import logging
import time
from typing import List, Optional

import aiohttp

from .cache import CacheEntry, ResultCache
from .ingest import Document
from .ingest.sources import extract_text, is_markdown
from .pacing.itemize import itemize
from .pacing.orchestrator import (
    PacingResult,
    ProgressCallback,
    ScoreFn,
    compute_schedule,
    durations_from_surprisal,
)
from .pacing.params import PacingParams
from .playback import QuizItem
from .questions import Complete, distribute_questions, generate_questions
from .scoring import TokenScorer, call_llm
from .text.normalize import NormalizationOptions, Normalizer

__all__ = ["PreparationOptions", "PreparedSession", "SessionPreparer"]

LOGGER = logging.getLogger(__name__)


@dataclass
class PreparationOptions:
    """Options that control how a source is turned into a playable session."""

    source: str
    params: PacingParams = field(default_factory=PacingParams)
    adaptive: bool = False
    provider: Optional[str] = None
    model: Optional[str] = None
    use_cache: bool = True
    question_count: int = 0
    question_frequency: Optional[int] = None
    request_timeout: float = 60.0

    def __post_init__(self) -> None:
        if self.question_count < 0:
            raise ValueError("question_count must be zero or positive")
        if self.question_frequency is not None and self.question_frequency < 1:
            raise ValueError("question_frequency must be a positive number of words")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")


@dataclass
class PreparedSession:
    """Everything the playback scheduler needs, plus bookkeeping."""

    document: Document
    text: str
    pacing: PacingResult
    quiz: List[QuizItem]
    cache_hit: bool
    elapsed_seconds: float

    @property
    def playback_durations(self) -> Optional[List[int]]:
        """The precomputed schedule, or None when no surprisal data exists."""

        if self.pacing.scored:
            return self.pacing.durations
        return None


class SessionPreparer:
    """Orchestrates ingest, cleanup, scoring with caching, and quiz placement."""

    def __init__(
        self,
        cache: Optional[ResultCache] = None,
        normalization: Optional[NormalizationOptions] = None,
    ) -> None:
        self.cache = cache or ResultCache()
        self.normalization = normalization or NormalizationOptions()

    # Public API -----------------------------------------------------------------
    def prepare(
        self,
        options: PreparationOptions,
        *,
        score_fn: Optional[ScoreFn] = None,
        complete: Optional[Complete] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PreparedSession:
        return asyncio.run(
            self.prepare_async(options, score_fn=score_fn, complete=complete, on_progress=on_progress)
        )

    async def prepare_async(
        self,
        options: PreparationOptions,
        *,
        score_fn: Optional[ScoreFn] = None,
        complete: Optional[Complete] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PreparedSession:
        start_time = time.perf_counter()
        document = extract_text(options.source)
        text = self.clean_text(document.text, markdown=is_markdown(options.source))
        if not text.strip():
            raise ValueError("No text content found")
        LOGGER.debug("Prepared %d characters from %s", len(text), options.source)

        cached = self._lookup(text, options)
        needs_scorer = options.adaptive and cached is None and score_fn is None
        needs_completion = bool(options.question_count) and complete is None
        if needs_scorer or needs_completion:
            timeout = aiohttp.ClientTimeout(total=options.request_timeout)
            async with aiohttp.ClientSession(timeout=timeout) as http:
                if needs_scorer:
                    score_fn = TokenScorer(http, options.provider)
                if needs_completion:
                    complete = _completion(http, options)
                pacing = await self._pace(text, options, cached, score_fn, on_progress)
                quiz = await self._quiz(text, pacing, options, complete)
        else:
            pacing = await self._pace(text, options, cached, score_fn, on_progress)
            quiz = await self._quiz(text, pacing, options, complete)
        cache_hit = cached is not None

        elapsed = time.perf_counter() - start_time
        LOGGER.info(
            "Prepared %d words in %.2fs%s",
            len(pacing.items),
            elapsed,
            " (cached scores)" if cache_hit else "",
        )
        return PreparedSession(
            document=document,
            text=text,
            pacing=pacing,
            quiz=quiz,
            cache_hit=cache_hit,
            elapsed_seconds=elapsed,
        )

    def clean_text(self, text: str, *, markdown: bool = False) -> str:
        options = replace(self.normalization, strip_markdown=markdown or self.normalization.strip_markdown)
        return Normalizer(options).normalize(text)

    # Pacing ------------------------------------------------------------------------
    def _lookup(self, text: str, options: PreparationOptions) -> Optional[CacheEntry]:
        if not (options.adaptive and options.use_cache):
            return None
        return self.cache.get(text)

    async def _pace(
        self,
        text: str,
        options: PreparationOptions,
        cached: Optional[CacheEntry],
        score_fn: Optional[ScoreFn],
        on_progress: Optional[ProgressCallback],
    ) -> PacingResult:
        if cached is not None:
            LOGGER.info("Using cached surprisal for %d items", len(cached.items))
            return durations_from_surprisal(cached.items, cached.surprisal, options.params, from_cache=True)
        if not options.adaptive or score_fn is None:
            return durations_from_surprisal(itemize(text), [], options.params)

        result = await compute_schedule(text, score_fn, options.params, on_progress)
        if result.failed_chunks:
            LOGGER.warning(
                "%d of %d chunks could not be scored; those words use base pacing",
                result.failed_chunks,
                result.total_chunks,
            )
        if options.use_cache and result.items and result.scored:
            self.cache.put(text, result.items, result.surprisal)
        return result

    # Quiz --------------------------------------------------------------------------
    async def _quiz(
        self,
        text: str,
        pacing: PacingResult,
        options: PreparationOptions,
        complete: Optional[Complete],
    ) -> List[QuizItem]:
        if not options.question_count or complete is None:
            return []
        questions = await generate_questions(text, complete, options.question_count)
        return distribute_questions(pacing.items, questions, frequency=options.question_frequency)


def _completion(http: aiohttp.ClientSession, options: PreparationOptions) -> Complete:
    async def complete(prompt: str) -> str:
        return await call_llm(http, prompt, provider=options.provider, model=options.model)

    return complete
