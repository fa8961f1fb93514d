"""
Pedagogical Validator: does the exercise practise what its level targets?

Advisory only. Produces alignment / misalignment / suggestion lists and a
score; the gate averages the score in but never blocks on this dimension.

Level bands (contiguous, monotonic):

  1–2   simple sentence, at most 8 words; blank word is a basic verb
  3–4   at least one connector, tense use credited; blank word is a
        connector or conjugated verb
  5–7   complex sentence (subordination); blank word is a subordinator
  8–10  complex sentence with at least two distinct tenses

Across all levels: the kind must be allowed at the level, and a blank
answer that is a bare article/conjunction is misaligned.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from hablaconmigo.linguistic import lexicon
from hablaconmigo.linguistic.analyzer import Analyzer, SentenceAnalysis, get_default_analyzer
from hablaconmigo.linguistic.text import normalize_text, contains_phrase
from hablaconmigo.models.validation import PedagogicalResult
from hablaconmigo.services.curriculum import get_level_config
from hablaconmigo.validators.scoring import pedagogical_result

logger = logging.getLogger(__name__)

MAX_SIMPLE_WORDS = 8
ORDER_WORD_RANGE = (4, 12)
MIN_CORRECT_ANSWER_CHARS = 5
MIN_DISTRACTOR_CHARS = 3


def level_band(level: int) -> str:
    if level <= 2:
        return "beginner"
    if level <= 4:
        return "elementary"
    if level <= 7:
        return "intermediate"
    return "advanced"


class _Findings:
    def __init__(self):
        self.alignment: list[str] = []
        self.misalignment: list[str] = []
        self.suggestions: list[str] = []

    def ok(self, msg: str) -> None:
        self.alignment.append(msg)

    def miss(self, msg: str, suggestion: Optional[str] = None) -> None:
        self.misalignment.append(msg)
        if suggestion:
            self.suggestions.append(suggestion)


class PedagogicalValidator:

    def __init__(self, analyzer: Optional[Analyzer] = None):
        self.analyzer = analyzer or get_default_analyzer()
        self._checks: dict[str, Callable] = {
            "order_sentence": self._check_order_sentence,
            "complete_words": self._check_complete_words,
            "drag_words": self._check_drag_words,
            "multi_choice": self._check_multi_choice,
            "free_writing": self._check_free_writing,
        }

    def validate(self, candidate, level: int) -> PedagogicalResult:
        f = _Findings()
        self._check_kind_allowed(candidate.kind, level, f)
        check = self._checks.get(candidate.kind)
        if check is not None:
            check(candidate, level, f)
        result = pedagogical_result(f.alignment, f.misalignment, f.suggestions)
        logger.debug(
            "[pedagogical_validator] kind=%s level=%d score=%.0f aligned=%d misaligned=%d",
            candidate.kind, level, result.score, len(f.alignment), len(f.misalignment),
        )
        return result

    # ── shared ────────────────────────────────────────────────────────────

    def _check_kind_allowed(self, kind: str, level: int, f: _Findings) -> None:
        cfg = get_level_config(level)
        if kind in cfg.allowed_kinds:
            f.ok(f"KIND_ALLOWED: {kind} is part of level {cfg.level}")
        else:
            f.miss(
                f"KIND_NOT_ALLOWED: {kind} is not planned for level {cfg.level}",
                f"Prefer one of: {', '.join(cfg.allowed_kinds)}",
            )

    def _check_sentence_band(self, a: SentenceAnalysis, level: int, f: _Findings) -> None:
        band = level_band(level)
        if band == "beginner":
            if a.complexity == "simple":
                f.ok("SIMPLE_SENTENCE: one clause, no connectors")
            else:
                f.miss(
                    "NOT_SIMPLE: levels 1-2 need a simple sentence",
                    'Use simple sentences such as "El gato juega" or "Ana lee un libro"',
                )
            if len(a.words) <= MAX_SIMPLE_WORDS:
                f.ok(f"LENGTH_OK: {len(a.words)} words")
            else:
                f.miss(f"TOO_LONG_FOR_LEVEL: {len(a.words)} words, at most {MAX_SIMPLE_WORDS} for levels 1-2")
        elif band == "elementary":
            if a.connectors:
                f.ok(f"CONNECTORS: {', '.join(a.connectors)}")
            else:
                f.miss(
                    "NO_CONNECTOR: levels 3-4 practise connectors (y, pero, porque)",
                    "Pick a sentence joined by a simple connector",
                )
            if a.verb_tenses:
                f.ok(f"TENSES: {', '.join(a.verb_tenses)}")
            if len(a.verb_tenses) >= 2:
                f.ok("TENSE_DIVERSITY: more than one tense in the sentence")
        elif band == "intermediate":
            if a.complexity == "complex":
                f.ok("SUBORDINATION: sentence contains a subordinate clause")
            else:
                f.miss(
                    "NO_SUBORDINATION: levels 5-7 practise subordinate clauses",
                    'Use a sentence like "Pedro está feliz porque ganó el juego"',
                )
        else:
            if a.complexity == "complex" and len(a.verb_tenses) >= 2:
                f.ok("ADVANCED_STRUCTURE: subordination with several tenses")
            else:
                f.miss(
                    "NOT_ADVANCED: levels 8-10 need subordination and at least two tenses",
                    "Choose a longer sentence mixing tenses",
                )

    def _check_blank_word(self, word: str, filled: SentenceAnalysis, level: int, f: _Findings) -> None:
        lower = word.strip().lower()
        band = level_band(level)
        if band == "beginner":
            if lower in lexicon.BASIC_VERBS:
                f.ok(f"BASIC_VERB: '{word}' is a basic verb")
            else:
                f.miss(
                    f"NOT_BASIC_VERB: '{word}' is not a basic verb for levels 1-2",
                    'Blank a common verb such as "es", "está", "tiene"',
                )
        elif band == "elementary":
            is_verb, tense = self.analyzer.verb_tense(lower)
            if lower in lexicon.COORDINATING or lower in lexicon.SUBORDINATING:
                f.ok(f"CONNECTOR_BLANK: '{word}' practises connectors")
            elif is_verb and tense:
                f.ok(f"CONJUGATION_BLANK: '{word}' practises verb conjugation ({tense})")
            else:
                f.miss(
                    f"WEAK_BLANK: '{word}' is neither a connector nor a conjugated verb",
                    "Blank a connector (porque, pero) or a conjugated verb",
                )
        elif band == "intermediate":
            if lower in lexicon.SUBORDINATING or filled.complexity == "complex":
                f.ok(f"SUBORDINATION_BLANK: '{word}' supports a complex structure")
            else:
                f.miss(f"WEAK_BLANK: '{word}' does not practise subordination")

        if lower in lexicon.TRIVIAL_WORDS:
            f.miss(
                f"TRIVIAL_BLANK: '{word}' is too trivial to teach",
                "Blank a word that carries grammatical meaning",
            )
        else:
            f.ok(f"MEANINGFUL_BLANK: '{word}' carries meaning")

    # ── per kind ──────────────────────────────────────────────────────────

    def _check_order_sentence(self, ex, level: int, f: _Findings) -> None:
        self._check_sentence_band(self.analyzer.analyze_sentence(ex.correct), level, f)
        lo, hi = ORDER_WORD_RANGE
        if lo <= len(ex.words) <= hi:
            f.ok(f"WORD_COUNT_OK: {len(ex.words)} words to order")
        else:
            f.miss(f"WORD_COUNT_RANGE: {len(ex.words)} words, expected {lo}-{hi}")

    def _check_complete_words(self, ex, level: int, f: _Findings) -> None:
        filled = self.analyzer.analyze_sentence(ex.target_sentence())
        self._check_sentence_band(filled, level, f)
        self._check_blank_word(ex.correct, filled, level, f)

    def _check_drag_words(self, ex, level: int, f: _Findings) -> None:
        self._check_complete_words(ex, level, f)
        distractors = [o for o in ex.options if o != ex.correct]
        if any(len(o) >= MIN_DISTRACTOR_CHARS for o in distractors):
            f.ok("DISTRACTORS_OK: incorrect options are real words")
        else:
            f.miss(
                "WEAK_DISTRACTORS: incorrect options are too short to be meaningful",
                "Use grammatically similar words as distractors",
            )

    def _check_multi_choice(self, ex, level: int, f: _Findings) -> None:
        q = normalize_text(ex.question)
        band = level_band(level)
        if band == "beginner":
            if any(q == o or q.startswith(o + " ") for o in lexicon.LITERAL_QUESTION_OPENERS):
                f.ok("LITERAL_QUESTION: literal comprehension question")
            else:
                f.miss(
                    "NOT_LITERAL: levels 1-2 ask literal questions (Qué, Quién, Dónde)",
                    "Start the question with ¿Qué, ¿Quién or ¿Dónde",
                )
        elif level <= 5:
            if any(q.startswith(o + " ") for o in lexicon.INFERENTIAL_QUESTION_OPENERS):
                f.ok("INFERENTIAL_QUESTION: asks for a basic inference")
            else:
                f.suggestions.append("Consider cause-and-effect questions (¿Por qué?)")
        else:
            if any(contains_phrase(q, m) for m in lexicon.ANALYTICAL_QUESTION_MARKERS):
                f.ok("ANALYTICAL_QUESTION: asks for analysis or reflection")
            else:
                f.suggestions.append("Use questions that require analysis or reflection")

        correct = ex.correct_choice()
        if correct is None:
            return
        if len(correct) > 10 and contains_phrase(correct, "porque"):
            f.ok("SPECIFIC_ANSWER: correct answer explains a reason")
        elif len(correct) < MIN_CORRECT_ANSWER_CHARS:
            f.miss(
                f"ANSWER_TOO_BRIEF: '{correct}' is too short to check understanding",
                "Make the correct answer specific and complete",
            )

    def _check_free_writing(self, ex, level: int, f: _Findings) -> None:
        if ex.rubric:
            f.ok(f"RUBRIC: {len(ex.rubric)} criteria to guide the answer")
        else:
            f.miss("NO_RUBRIC: free writing needs assessment criteria", "Add two or three rubric criteria")
        if ex.min_length >= 10:
            f.ok(f"MIN_LENGTH: asks for at least {ex.min_length} characters")


_validator: Optional[PedagogicalValidator] = None


def get_pedagogical_validator() -> PedagogicalValidator:
    global _validator
    if _validator is None:
        _validator = PedagogicalValidator()
    return _validator


def validate_pedagogy(candidate, level: int, analyzer: Optional[Analyzer] = None) -> PedagogicalResult:
    if analyzer is None:
        return get_pedagogical_validator().validate(candidate, level)
    return PedagogicalValidator(analyzer).validate(candidate, level)
