"""
Pipeline entry point: validate_and_finalize().

The passage is analysed once into a shared CompositeGate; each exercise
then runs its own regeneration loop. Loops share no mutable state, so
they run concurrently under a semaphore that caps in-flight generation
calls. Output order always equals input order.

Cancellation abandons in-flight regeneration calls and raises
PipelineCancelled carrying whatever exercises had already finished.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional, Sequence

from hablaconmigo.core.config import Settings, get_settings
from hablaconmigo.core.exceptions import PipelineCancelled
from hablaconmigo.models.validation import (
    STATUS_ACCEPTED,
    STATUS_REGENERATED,
    ExerciseOutcome,
    FinalizeReport,
)
from hablaconmigo.services.composite_gate import CompositeGate
from hablaconmigo.services.exercise_generator import ExerciseGenerator
from hablaconmigo.services.fallback_catalog import FallbackCatalog
from hablaconmigo.services.regeneration import RegenerationOrchestrator
from hablaconmigo.services.telemetry import emit_event

logger = logging.getLogger(__name__)


async def finalize_exercises(
    candidates: Sequence,
    passage: str,
    level: int,
    story_title: str,
    *,
    generator: ExerciseGenerator,
    catalog: Optional[FallbackCatalog] = None,
    settings: Optional[Settings] = None,
) -> FinalizeReport:
    settings = settings or get_settings()
    gate = CompositeGate(passage, threshold=settings.gate_threshold)
    orchestrator = RegenerationOrchestrator(
        generator,
        catalog=catalog,
        max_attempts=settings.max_generation_attempts,
        timeout_seconds=settings.generation_timeout_seconds,
        threshold=settings.gate_threshold,
    )
    limiter = asyncio.Semaphore(max(1, settings.max_concurrent_generations))
    t0 = time.time()

    async def _one(index: int, candidate) -> ExerciseOutcome:
        async with limiter:
            outcome = await orchestrator.run(
                candidate,
                passage=passage,
                level=level,
                story_title=story_title,
                index=index,
                gate=gate,
            )
        emit_event(
            "exercise_finalized",
            route="pipeline.finalize",
            version="v1",
            kind=outcome.kind,
            level=level,
            status=outcome.status,
            attempts=len(outcome.attempts),
            score=round(outcome.final_verdict.score, 2) if outcome.final_verdict else None,
            ok=outcome.status in (STATUS_ACCEPTED, STATUS_REGENERATED),
        )
        return outcome

    tasks = [asyncio.create_task(_one(i, c)) for i, c in enumerate(candidates)]
    try:
        outcomes = await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        for t in tasks:
            t.cancel()
        partial = [_finished_exercise(t) for t in tasks]
        logger.warning(
            "[pipeline] cancelled with %d/%d exercises finished",
            sum(1 for p in partial if p is not None), len(tasks),
        )
        raise PipelineCancelled(partial) from None
    except Exception:
        logger.error("[pipeline] finalization failed", exc_info=True)
        for t in tasks:
            t.cancel()
        raise

    report = FinalizeReport(exercises=[o.exercise for o in outcomes], outcomes=list(outcomes))
    logger.info(
        "[pipeline] finalized %d exercises in %dms: %s",
        len(outcomes), int((time.time() - t0) * 1000), report.counts(),
    )
    return report


def _finished_exercise(task: asyncio.Task):
    if not task.done() or task.cancelled() or task.exception() is not None:
        return None
    return task.result().exercise


async def validate_and_finalize(
    candidates: Sequence,
    passage: str,
    level: int,
    story_title: str,
    *,
    generator: ExerciseGenerator,
    catalog: Optional[FallbackCatalog] = None,
    settings: Optional[Settings] = None,
) -> list:
    """Same length and order as ``candidates``; each entry accepted, regenerated, fallback or passthrough."""
    report = await finalize_exercises(
        candidates, passage, level, story_title,
        generator=generator, catalog=catalog, settings=settings,
    )
    return report.exercises
