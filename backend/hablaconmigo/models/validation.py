"""Result types produced by the validators, the gate and the pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Issue categories
STRUCTURAL = "STRUCTURAL"
FAITHFULNESS = "FAITHFULNESS"
PEDAGOGICAL = "PEDAGOGICAL"

# Outcome statuses
STATUS_ACCEPTED = "accepted"
STATUS_REGENERATED = "regenerated"
STATUS_FALLBACK = "fallback"
STATUS_PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class ValidationResult:
    """One validator's view of one candidate."""
    is_valid: bool
    score: float
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "score": self.score,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class PedagogicalResult(ValidationResult):
    alignment: tuple[str, ...] = ()
    misalignment: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.update({
            "alignment": list(self.alignment),
            "misalignment": list(self.misalignment),
            "suggestions": list(self.suggestions),
        })
        return out


@dataclass(frozen=True)
class CompositeVerdict:
    accepted: bool
    score: float
    per_dimension: dict[str, float]
    grammar: ValidationResult
    coherence: ValidationResult
    pedagogical: PedagogicalResult

    @property
    def blocking_errors(self) -> tuple[str, ...]:
        return self.grammar.errors + self.coherence.errors

    def to_dict(self) -> dict:
        return {
            "accepted": self.accepted,
            "score": round(self.score, 2),
            "perDimension": dict(self.per_dimension),
            "grammar": self.grammar.to_dict(),
            "coherence": self.coherence.to_dict(),
            "pedagogical": self.pedagogical.to_dict(),
        }


@dataclass(frozen=True)
class RegenerationAttempt:
    """One pass through the gate. ``candidate``/``verdict`` are None when the generation call failed."""
    attempt_number: int
    candidate: Any = None
    verdict: Optional[CompositeVerdict] = None
    error: Optional[str] = None


@dataclass
class ExerciseOutcome:
    index: int
    kind: str
    status: str
    exercise: Any
    attempts: list[RegenerationAttempt] = field(default_factory=list)
    final_verdict: Optional[CompositeVerdict] = None
    fallback_level: Optional[int] = None
    failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "kind": self.kind,
            "status": self.status,
            "attempts": len(self.attempts),
            "finalVerdict": self.final_verdict.to_dict() if self.final_verdict else None,
            "fallbackLevel": self.fallback_level,
            "failures": list(self.failures),
        }


@dataclass
class FinalizeReport:
    exercises: list = field(default_factory=list)
    outcomes: list[ExerciseOutcome] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for o in self.outcomes:
            out[o.status] = out.get(o.status, 0) + 1
        return out
