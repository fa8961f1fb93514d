"""
Regeneration Orchestrator: bounded, feedback-driven retry per exercise.

State machine:

  Generated → Validated → Accepted
                        → Regenerating → Validated → ...   (≤ max_attempts total)
                        → Exhausted → FallbackApplied
                        → Exhausted → PassthroughOriginal    (catalog gap)

Attempt 1 is the candidate the generation service already produced, so
max_attempts=3 means at most two regeneration calls. A failed or timed-out
call still consumes an attempt, as does any other error the generator
raises. The only side effect is the generator call.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from hablaconmigo.core.exceptions import CatalogGapFailure, GenerationServiceFailure
from hablaconmigo.linguistic.analyzer import find_suitable_sentences
from hablaconmigo.models.validation import (
    STATUS_ACCEPTED,
    STATUS_FALLBACK,
    STATUS_PASSTHROUGH,
    STATUS_REGENERATED,
    ExerciseOutcome,
    RegenerationAttempt,
)
from hablaconmigo.prompts.exercise_generation import get_output_schema
from hablaconmigo.services.composite_gate import DEFAULT_THRESHOLD, CompositeGate, build_feedback
from hablaconmigo.services.curriculum import get_grammar_focus_for_level
from hablaconmigo.services.exercise_generator import ExerciseGenerator, GenerationRequest
from hablaconmigo.services.fallback_catalog import FallbackCatalog, get_fallback_catalog

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TIMEOUT_SECONDS = 45.0
MAX_PROMPT_SENTENCES = 6


class RegenerationOrchestrator:

    def __init__(
        self,
        generator: ExerciseGenerator,
        *,
        catalog: Optional[FallbackCatalog] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        threshold: float = DEFAULT_THRESHOLD,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.generator = generator
        self.catalog = catalog
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.threshold = threshold

    def _catalog(self) -> FallbackCatalog:
        if self.catalog is None:
            self.catalog = get_fallback_catalog()
        return self.catalog

    async def run(
        self,
        candidate,
        *,
        passage: str,
        level: int,
        story_title: str = "",
        index: int = 0,
        gate: Optional[CompositeGate] = None,
    ) -> ExerciseOutcome:
        gate = gate or CompositeGate(passage, threshold=self.threshold)
        kind = candidate.kind
        attempts: list[RegenerationAttempt] = []
        failures: list[str] = []

        # ── Attempt 1: the original candidate ──
        verdict = gate.evaluate(candidate, level)
        attempts.append(RegenerationAttempt(attempt_number=1, candidate=candidate, verdict=verdict))
        if verdict.accepted:
            return ExerciseOutcome(
                index=index, kind=kind, status=STATUS_ACCEPTED, exercise=candidate,
                attempts=attempts, final_verdict=verdict,
            )

        previous = candidate
        last_verdict = verdict
        feedback: list[str] = build_feedback(verdict)
        suitable = tuple(
            s.sentence for s in find_suitable_sentences(passage, level, kind)[:MAX_PROMPT_SENTENCES]
        )
        grammar_focus = get_grammar_focus_for_level(level)

        # ── Attempts 2..N: regeneration calls ──
        for attempt_number in range(2, self.max_attempts + 1):
            request = GenerationRequest(
                kind=kind,
                level=level,
                passage=passage,
                output_schema=get_output_schema(kind),
                previous_attempt=previous,
                feedback=tuple(feedback),
                grammar_focus=grammar_focus,
                suitable_sentences=suitable,
            )
            try:
                new_candidate = await asyncio.wait_for(
                    self.generator.generate(request), timeout=self.timeout_seconds
                )
            except asyncio.TimeoutError:
                msg = f"attempt {attempt_number}: generation timed out after {self.timeout_seconds}s"
                failures.append(msg)
                attempts.append(RegenerationAttempt(attempt_number=attempt_number, error=msg))
                logger.warning("[regeneration] exercise=%d %s", index, msg)
                continue
            except GenerationServiceFailure as exc:
                msg = f"attempt {attempt_number}: {exc.reason}: {exc}"
                failures.append(msg)
                attempts.append(RegenerationAttempt(attempt_number=attempt_number, error=msg))
                logger.warning("[regeneration] exercise=%d %s", index, msg)
                continue
            except Exception as exc:
                msg = f"attempt {attempt_number}: unexpected: {exc.__class__.__name__}: {exc}"
                failures.append(msg)
                attempts.append(RegenerationAttempt(attempt_number=attempt_number, error=msg))
                logger.error("[regeneration] exercise=%d %s", index, msg, exc_info=True)
                continue

            if new_candidate.kind != kind:
                msg = f"attempt {attempt_number}: schema: asked for {kind}, got {new_candidate.kind}"
                failures.append(msg)
                attempts.append(RegenerationAttempt(attempt_number=attempt_number, error=msg))
                logger.warning("[regeneration] exercise=%d %s", index, msg)
                continue

            verdict = gate.evaluate(new_candidate, level)
            attempts.append(
                RegenerationAttempt(attempt_number=attempt_number, candidate=new_candidate, verdict=verdict)
            )
            if verdict.accepted:
                logger.info(
                    "[regeneration] exercise=%d kind=%s accepted on attempt %d (score=%.1f)",
                    index, kind, attempt_number, verdict.score,
                )
                return ExerciseOutcome(
                    index=index, kind=kind, status=STATUS_REGENERATED, exercise=new_candidate,
                    attempts=attempts, final_verdict=verdict,
                )

            logger.warning(
                "[regeneration] exercise=%d kind=%s attempt %d rejected (score=%.1f)",
                index, kind, attempt_number, verdict.score,
            )
            previous = new_candidate
            last_verdict = verdict
            for line in build_feedback(verdict):
                if line not in feedback:
                    feedback.append(line)

        # ── Exhausted ──
        try:
            entry = self._catalog().select(level, kind, story_title)
        except CatalogGapFailure as exc:
            logger.warning(
                "[regeneration] exercise=%d %s; passing the original candidate through unvalidated",
                index, exc,
            )
            failures.append(f"catalog gap: {exc}")
            return ExerciseOutcome(
                index=index, kind=kind, status=STATUS_PASSTHROUGH, exercise=candidate,
                attempts=attempts, final_verdict=last_verdict, failures=failures,
            )

        logger.info(
            "[regeneration] exercise=%d kind=%s exhausted after %d attempts, using level-%d fallback",
            index, kind, len(attempts), entry.level,
        )
        return ExerciseOutcome(
            index=index, kind=kind, status=STATUS_FALLBACK, exercise=entry.exercise,
            attempts=attempts, final_verdict=last_verdict, fallback_level=entry.level,
            failures=failures,
        )
