"""
Composite Gate: one accept/reject verdict from the three validators.

  accepted = mean(grammar, coherence, pedagogy) >= threshold
             AND no grammar errors AND no coherence errors

Pedagogical misalignment lowers the mean but never blocks on its own.
The gate is a pure function of (candidate, passage, level).
"""
from __future__ import annotations

import logging
from typing import Optional

from hablaconmigo.linguistic.analyzer import Analyzer, get_default_analyzer
from hablaconmigo.models.validation import (
    FAITHFULNESS,
    PEDAGOGICAL,
    STRUCTURAL,
    CompositeVerdict,
)
from hablaconmigo.validators.coherence import CoherenceValidator
from hablaconmigo.validators.grammar import GrammarValidator
from hablaconmigo.validators.pedagogical import PedagogicalValidator

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 70.0


class CompositeGate:
    """Bound to one passage; reused for every candidate produced from that story."""

    def __init__(
        self,
        passage: str,
        *,
        threshold: float = DEFAULT_THRESHOLD,
        analyzer: Optional[Analyzer] = None,
    ):
        self.passage = passage
        self.threshold = threshold
        analyzer = analyzer or get_default_analyzer()
        self._grammar = GrammarValidator(analyzer)
        self._coherence = CoherenceValidator(passage)
        self._pedagogy = PedagogicalValidator(analyzer)

    def evaluate(self, candidate, level: int) -> CompositeVerdict:
        grammar = self._grammar.validate(candidate)
        coherence = self._coherence.validate(candidate)
        pedagogy = self._pedagogy.validate(candidate, level)

        per_dimension = {
            "grammar": grammar.score,
            "coherence": coherence.score,
            "pedagogical": pedagogy.score,
        }
        score = sum(per_dimension.values()) / len(per_dimension)
        accepted = score >= self.threshold and not grammar.errors and not coherence.errors

        if not accepted:
            logger.info(
                "[composite_gate] rejected kind=%s level=%d score=%.1f grammar_errors=%d coherence_errors=%d",
                candidate.kind, level, score, len(grammar.errors), len(coherence.errors),
            )
        return CompositeVerdict(
            accepted=accepted,
            score=score,
            per_dimension=per_dimension,
            grammar=grammar,
            coherence=coherence,
            pedagogical=pedagogy,
        )


def build_feedback(verdict: CompositeVerdict) -> list[str]:
    """
    Every issue from every validator, tagged by category.

    Structural = grammar errors/warnings, faithfulness = coherence
    errors/warnings, pedagogical = misalignment (advisory).
    """
    lines: list[str] = []
    for msg in verdict.grammar.errors:
        lines.append(f"[{STRUCTURAL}] error: {msg}")
    for msg in verdict.grammar.warnings:
        lines.append(f"[{STRUCTURAL}] warning: {msg}")
    for msg in verdict.coherence.errors:
        lines.append(f"[{FAITHFULNESS}] error: {msg}")
    for msg in verdict.coherence.warnings:
        lines.append(f"[{FAITHFULNESS}] warning: {msg}")
    for msg in verdict.pedagogical.misalignment:
        lines.append(f"[{PEDAGOGICAL}] advisory: {msg}")
    for msg in verdict.pedagogical.suggestions:
        lines.append(f"[{PEDAGOGICAL}] suggestion: {msg}")
    return lines


def evaluate_candidate(candidate, passage: str, level: int, threshold: float = DEFAULT_THRESHOLD) -> CompositeVerdict:
    return CompositeGate(passage, threshold=threshold).evaluate(candidate, level)
