"""
Shared score formulas.

Penalty weights are tunable, but their ordering is load-bearing:
a faithfulness error must cost at least as much as a structural error,
which must cost at least as much as one pedagogical misalignment.
"""
from __future__ import annotations

from hablaconmigo.models.validation import PedagogicalResult, ValidationResult

# Grammar (structural)
GRAMMAR_ERROR_PENALTY = 25
GRAMMAR_WARNING_PENALTY = 10
GRAMMAR_WARNING_FLOOR = 50

# Coherence (faithfulness)
COHERENCE_ERROR_PENALTY = 30
COHERENCE_WARNING_PENALTY = 15
COHERENCE_WARNING_FLOOR = 50

# Pedagogical (advisory)
PEDAGOGY_ALIGNMENT_CREDIT = 20
PEDAGOGY_MISALIGNMENT_PENALTY = 15
PEDAGOGY_BASE = 40
PEDAGOGY_PASS_SCORE = 70


def penalty_score(
    errors: int,
    warnings: int,
    *,
    error_penalty: int,
    warning_penalty: int,
    warning_floor: int,
) -> float:
    """100 when clean; errors dominate; warnings alone never drop below the floor."""
    if errors:
        return float(max(0, 100 - error_penalty * errors))
    if warnings:
        return float(max(warning_floor, 100 - warning_penalty * warnings))
    return 100.0


def grammar_result(errors: list[str], warnings: list[str]) -> ValidationResult:
    score = penalty_score(
        len(errors), len(warnings),
        error_penalty=GRAMMAR_ERROR_PENALTY,
        warning_penalty=GRAMMAR_WARNING_PENALTY,
        warning_floor=GRAMMAR_WARNING_FLOOR,
    )
    return ValidationResult(is_valid=not errors, score=score,
                            errors=tuple(errors), warnings=tuple(warnings))


def coherence_result(errors: list[str], warnings: list[str]) -> ValidationResult:
    score = penalty_score(
        len(errors), len(warnings),
        error_penalty=COHERENCE_ERROR_PENALTY,
        warning_penalty=COHERENCE_WARNING_PENALTY,
        warning_floor=COHERENCE_WARNING_FLOOR,
    )
    return ValidationResult(is_valid=not errors, score=score,
                            errors=tuple(errors), warnings=tuple(warnings))


def pedagogy_score(alignment: int, misalignment: int) -> float:
    raw = PEDAGOGY_ALIGNMENT_CREDIT * alignment - PEDAGOGY_MISALIGNMENT_PENALTY * misalignment + PEDAGOGY_BASE
    return float(max(0, min(100, raw)))


def pedagogical_result(
    alignment: list[str],
    misalignment: list[str],
    suggestions: list[str] | None = None,
    warnings: list[str] | None = None,
) -> PedagogicalResult:
    score = pedagogy_score(len(alignment), len(misalignment))
    return PedagogicalResult(
        is_valid=score >= PEDAGOGY_PASS_SCORE,
        score=score,
        errors=(),
        warnings=tuple(warnings or ()),
        alignment=tuple(alignment),
        misalignment=tuple(misalignment),
        suggestions=tuple(suggestions or ()),
    )
