"""
Generation Service client.

The regeneration loop only sees the ExerciseGenerator protocol, so tests
swap in a stub. LLMExerciseGenerator wraps a chat-completions client
(OpenAI, or the Gemini adapter in core.deps) and turns every failure mode
into GenerationServiceFailure.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from hablaconmigo.core.exceptions import GenerationServiceFailure
from hablaconmigo.models.exercise import ExerciseKind, dump_candidate, parse_candidate
from hablaconmigo.prompts.exercise_generation import (
    EXERCISE_SYSTEM_PROMPT,
    GENERATION_PROMPT,
    REGENERATION_PROMPT,
    format_feedback,
    format_sentences,
    get_output_schema,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationRequest:
    kind: ExerciseKind
    level: int
    passage: str
    output_schema: str = ""
    previous_attempt: Any = None
    feedback: tuple[str, ...] = ()
    grammar_focus: str = ""
    suitable_sentences: tuple[str, ...] = field(default_factory=tuple)


class ExerciseGenerator(Protocol):
    async def generate(self, request: GenerationRequest): ...


def _clean_json(content: str) -> str:
    """Strip markdown fences."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def build_messages(request: GenerationRequest) -> list[dict]:
    schema = request.output_schema or get_output_schema(request.kind)
    common = dict(
        kind=request.kind,
        level=request.level,
        grammar_focus=request.grammar_focus or "(see level)",
        passage=request.passage,
        suitable_sentences=format_sentences(list(request.suitable_sentences)),
        output_schema=schema,
    )
    if request.previous_attempt is not None or request.feedback:
        previous = request.previous_attempt
        if previous is not None and hasattr(previous, "model_dump"):
            previous = dump_candidate(previous)
        user = REGENERATION_PROMPT.format(
            previous_attempt=json.dumps(previous, ensure_ascii=False, indent=2),
            feedback=format_feedback(list(request.feedback)),
            **common,
        )
    else:
        user = GENERATION_PROMPT.format(**common)
    return [
        {"role": "system", "content": EXERCISE_SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


class LLMExerciseGenerator:
    def __init__(self, client, model: str = "gpt-4o-mini", temperature: float = 0.5, max_tokens: int = 2000,
                 timeout: float | None = None):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        # per-call client timeout; wait_for alone cannot stop the worker thread
        self.timeout = timeout

    def _complete(self, messages: list[dict]) -> str:
        kwargs = {"timeout": self.timeout} if self.timeout is not None else {}
        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            **kwargs,
        )
        return response.choices[0].message.content or ""

    async def generate(self, request: GenerationRequest):
        messages = build_messages(request)
        try:
            content = await asyncio.to_thread(self._complete, messages)
        except Exception as exc:
            raise GenerationServiceFailure(
                f"generation call failed: {exc.__class__.__name__}: {exc}", reason="transport"
            ) from exc

        content = _clean_json(content)
        if not content:
            raise GenerationServiceFailure("generation service returned an empty response", reason="empty")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise GenerationServiceFailure(f"malformed JSON from generation service: {exc}", reason="malformed") from exc

        try:
            candidate = parse_candidate(data)
        except ValidationError as exc:
            raise GenerationServiceFailure(
                f"generated exercise does not match the {request.kind} schema: {exc.error_count()} errors",
                reason="schema",
            ) from exc

        if candidate.kind != request.kind:
            raise GenerationServiceFailure(
                f"asked for {request.kind}, got {candidate.kind}", reason="schema"
            )
        logger.debug("[exercise_generator] generated %s for level %d", candidate.kind, request.level)
        return candidate

