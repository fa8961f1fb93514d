import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError, field_validator

from hablaconmigo.core.config import Settings, get_settings
from hablaconmigo.core.deps import get_exercise_generator, get_rate_limiter
from hablaconmigo.models.exercise import dump_candidate, parse_candidate
from hablaconmigo.services.composite_gate import CompositeGate, build_feedback
from hablaconmigo.services.curriculum import is_valid_level
from hablaconmigo.services.pipeline import finalize_exercises
from hablaconmigo.services.rate_limiter import RateLimiter
from hablaconmigo.services.telemetry import instrument

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/exercises", tags=["exercises"])


class _PassageRequest(BaseModel):
    passage: str = Field(min_length=1)
    level: int = 1
    exercises: list[dict[str, Any]] = Field(min_length=1)

    @field_validator("level")
    @classmethod
    def level_in_range(cls, v: int) -> int:
        if not is_valid_level(v):
            raise ValueError("level must be between 1 and 10")
        return v


class ValidateRequest(_PassageRequest):
    pass


class FinalizeRequest(_PassageRequest):
    story_title: str = ""


def _parse_all(raw: list[dict]) -> list:
    parsed = []
    for i, item in enumerate(raw):
        try:
            parsed.append(parse_candidate(item))
        except ValidationError as exc:
            raise HTTPException(
                status_code=422,
                detail={"index": i, "errors": exc.errors(include_url=False, include_context=False)},
            )
    return parsed


def _caller_id(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


@router.post("/validate")
@instrument(route="/api/v1/exercises/validate", version="v1")
async def validate_exercises(body: ValidateRequest, settings: Settings = Depends(get_settings)):
    """Run the composite gate on each exercise; no regeneration."""
    candidates = _parse_all(body.exercises)
    gate = CompositeGate(body.passage, threshold=settings.gate_threshold)
    results = []
    for candidate in candidates:
        verdict = gate.evaluate(candidate, body.level)
        results.append({
            "kind": candidate.kind,
            "verdict": verdict.to_dict(),
            "feedback": build_feedback(verdict),
        })
    return {"level": body.level, "results": results}


@router.post("/finalize")
@instrument(route="/api/v1/exercises/finalize", version="v1")
async def finalize(
    body: FinalizeRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    generator=Depends(get_exercise_generator),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Validate, regenerate on rejection, fall back when exhausted. Order preserved."""
    caller = _caller_id(request)
    if not limiter.allow(caller):
        logger.warning("[exercises.finalize] rate limit hit for caller=%s", caller)
        raise HTTPException(
            status_code=429,
            detail="Too many finalize requests, try again later",
            headers={"Retry-After": str(limiter.retry_after(caller))},
        )

    candidates = _parse_all(body.exercises)
    report = await finalize_exercises(
        candidates, body.passage, body.level, body.story_title,
        generator=generator, settings=settings,
    )
    return {
        "exercises": [dump_candidate(ex) for ex in report.exercises],
        "outcomes": [o.to_dict() for o in report.outcomes],
        "summary": report.counts(),
    }
