"""
Tests for RegenerationOrchestrator: bounded retry, feedback, fallback.

A stub generator replays a scripted list of candidates / exceptions and
records every request it receives.
"""
import asyncio
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hablaconmigo.core.exceptions import GenerationServiceFailure
from hablaconmigo.models.exercise import CompleteWordsExercise, MultiChoiceExercise
from hablaconmigo.models.validation import (
    STATUS_ACCEPTED,
    STATUS_FALLBACK,
    STATUS_PASSTHROUGH,
    STATUS_REGENERATED,
)
from hablaconmigo.services.fallback_catalog import FallbackCatalog
from hablaconmigo.services.regeneration import RegenerationOrchestrator

PASSAGE = "El gato come pescado. El gato es negro."
STORY_TITLE = "El gato negro"


class _StubGenerator:
    def __init__(self, script=(), delay=0.0):
        self.script = list(script)
        self.delay = delay
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.script.pop(0) if self.script else GenerationServiceFailure("no more", reason="empty")
        if isinstance(item, Exception):
            raise item
        return item


def _make_literal():
    return CompleteWordsExercise(title="Completa", sentence="El gato___pescado.", correct="come")


def _make_hallucinated(tail="grande."):
    return CompleteWordsExercise(title="Completa", sentence=f"El perro___{tail}", correct="es")


def _run(orchestrator, candidate, level=1, **kwargs):
    return asyncio.run(orchestrator.run(
        candidate, passage=PASSAGE, level=level, story_title=STORY_TITLE, **kwargs
    ))


class TestAcceptance:
    def test_accepted_first_time_without_calls(self):
        gen = _StubGenerator()
        outcome = _run(RegenerationOrchestrator(gen), _make_literal())
        assert outcome.status == STATUS_ACCEPTED
        assert outcome.exercise == _make_literal()
        assert len(outcome.attempts) == 1
        assert gen.requests == []

    def test_regenerated_on_second_attempt(self):
        gen = _StubGenerator([_make_literal()])
        outcome = _run(RegenerationOrchestrator(gen), _make_hallucinated(), index=4)
        assert outcome.status == STATUS_REGENERATED
        assert outcome.index == 4
        assert outcome.exercise.sentence == "El gato___pescado."
        assert len(outcome.attempts) == 2
        assert outcome.final_verdict.accepted is True

    def test_request_carries_feedback_and_previous_attempt(self):
        gen = _StubGenerator([_make_literal()])
        _run(RegenerationOrchestrator(gen), _make_hallucinated())
        request = gen.requests[0]
        assert request.kind == "complete_words"
        assert request.previous_attempt == _make_hallucinated()
        assert any("perro" in line for line in request.feedback)
        assert any(line.startswith("[FAITHFULNESS] error:") for line in request.feedback)
        assert request.suitable_sentences == ("El gato come pescado", "El gato es negro")
        assert request.grammar_focus

    def test_feedback_accumulates_without_duplicates(self):
        gen = _StubGenerator([_make_hallucinated("feliz."), _make_hallucinated("feliz.")])
        _run(RegenerationOrchestrator(gen), _make_hallucinated())
        first, second = (r.feedback for r in gen.requests)
        assert second[:len(first)] == first
        assert len(second) > len(first)
        assert len(set(second)) == len(second)
        assert gen.requests[1].previous_attempt == _make_hallucinated("feliz.")


class TestExhaustion:
    def test_every_call_fails_then_fallback(self):
        gen = _StubGenerator([
            GenerationServiceFailure("bad json", reason="malformed"),
            GenerationServiceFailure("bad json", reason="malformed"),
        ])
        outcome = _run(RegenerationOrchestrator(gen), _make_hallucinated())
        assert outcome.status == STATUS_FALLBACK
        assert len(outcome.attempts) == 3
        assert len(gen.requests) == 2
        assert outcome.fallback_level == 1
        assert outcome.exercise.title == f"Completa la palabra - {STORY_TITLE}"
        assert outcome.failures == [
            "attempt 2: malformed: bad json",
            "attempt 3: malformed: bad json",
        ]

    def test_rejected_regenerations_then_fallback(self):
        gen = _StubGenerator([_make_hallucinated(), _make_hallucinated()])
        outcome = _run(RegenerationOrchestrator(gen), _make_hallucinated())
        assert outcome.status == STATUS_FALLBACK
        assert outcome.failures == []
        assert outcome.final_verdict.accepted is False
        assert all(a.verdict is not None for a in outcome.attempts)

    def test_timeout_counts_as_attempt(self):
        gen = _StubGenerator([_make_literal(), _make_literal()], delay=1.0)
        orchestrator = RegenerationOrchestrator(gen, timeout_seconds=0.01)
        outcome = _run(orchestrator, _make_hallucinated())
        assert outcome.status == STATUS_FALLBACK
        assert len(outcome.attempts) == 3
        assert all("timed out" in f for f in outcome.failures)

    def test_wrong_kind_counts_as_failure(self):
        wrong = MultiChoiceExercise(question="¿Qué?", choices=("a", "b", "c", "d"), correct_index=0)
        gen = _StubGenerator([wrong, _make_literal()])
        outcome = _run(RegenerationOrchestrator(gen), _make_hallucinated())
        assert outcome.status == STATUS_REGENERATED
        assert len(outcome.attempts) == 3
        assert outcome.failures and "asked for complete_words" in outcome.failures[0]

    def test_single_attempt_goes_straight_to_fallback(self):
        gen = _StubGenerator([_make_literal()])
        outcome = _run(RegenerationOrchestrator(gen, max_attempts=1), _make_hallucinated())
        assert outcome.status == STATUS_FALLBACK
        assert gen.requests == []

    def test_fallback_uses_nearest_level(self):
        gen = _StubGenerator()
        orchestrator = RegenerationOrchestrator(gen, max_attempts=1)
        outcome = _run(orchestrator, _make_hallucinated(), level=8)
        assert outcome.status == STATUS_FALLBACK
        assert outcome.fallback_level == 5

    def test_catalog_gap_passes_original_through(self):
        gen = _StubGenerator()
        orchestrator = RegenerationOrchestrator(gen, catalog=FallbackCatalog([]))
        outcome = _run(orchestrator, _make_hallucinated())
        assert outcome.status == STATUS_PASSTHROUGH
        assert outcome.exercise == _make_hallucinated()
        assert outcome.failures[-1].startswith("catalog gap:")

    def test_zero_attempts_rejected(self):
        with pytest.raises(ValueError):
            RegenerationOrchestrator(_StubGenerator(), max_attempts=0)

    def test_unexpected_generator_error_counts_as_attempt(self):
        gen = _StubGenerator([ValueError("unexpected payload shape"), _make_literal()])
        outcome = _run(RegenerationOrchestrator(gen), _make_hallucinated())
        assert outcome.status == STATUS_REGENERATED
        assert outcome.failures == ["attempt 2: unexpected: ValueError: unexpected payload shape"]
        assert outcome.attempts[1].error == outcome.failures[0]

    def test_unexpected_errors_exhaust_into_fallback(self):
        gen = _StubGenerator([KeyError("choices"), RuntimeError("boom")])
        outcome = _run(RegenerationOrchestrator(gen), _make_hallucinated())
        assert outcome.status == STATUS_FALLBACK
        assert len(outcome.attempts) == 3
        assert [f.split(":")[2].strip() for f in outcome.failures] == ["KeyError", "RuntimeError"]
