"""
Grammar Validator: structural well-formedness, independent of the passage.

  order_sentence   verb present, word count parity, words ⊆ correct,
                   exact token multiset, terminal punctuation, 3..15 words
  complete_words   exactly one blank, non-empty non-trivial answer,
                   filled sentence has a verb, ≥ 3 tokens around the blank
  drag_words       one blank, answer among ≥ 3 distinct options,
                   filled sentence has a verb, no fully-grammatical distractor
  multi_choice     4 distinct choices, valid index, question mark,
                   reasonable choice lengths
  free_writing     non-empty prompt, sane length bounds

Every issue is a string with an upper-case code prefix.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Callable, Optional

from hablaconmigo.linguistic import lexicon
from hablaconmigo.linguistic.analyzer import Analyzer, get_default_analyzer
from hablaconmigo.linguistic.text import (
    BLANK_MARKER,
    count_blanks,
    fill_blank,
    has_terminal_punctuation,
    strip_token,
)
from hablaconmigo.models.validation import ValidationResult
from hablaconmigo.validators.scoring import grammar_result

logger = logging.getLogger(__name__)

MIN_ORDER_WORDS = 3
MAX_ORDER_WORDS = 15
MIN_OPTIONS = 3
MULTI_CHOICE_COUNT = 4
MIN_CHOICE_CHARS = 3
MAX_CHOICE_CHARS = 100
MIN_REMAINING_TOKENS = 3


def _norm_word(word: str) -> str:
    return strip_token(word.lower())


class GrammarValidator:
    """Kind-dispatched structural checks. Pure: same input → same result."""

    def __init__(self, analyzer: Optional[Analyzer] = None):
        self.analyzer = analyzer or get_default_analyzer()
        self._checks: dict[str, Callable] = {
            "order_sentence": self._check_order_sentence,
            "complete_words": self._check_complete_words,
            "drag_words": self._check_drag_words,
            "multi_choice": self._check_multi_choice,
            "free_writing": self._check_free_writing,
        }

    def validate(self, candidate) -> ValidationResult:
        check = self._checks.get(candidate.kind)
        if check is None:
            return grammar_result([f"UNKNOWN_KIND: no grammar rules for kind '{candidate.kind}'"], [])
        errors: list[str] = []
        warnings: list[str] = []
        check(candidate, errors, warnings)
        result = grammar_result(errors, warnings)
        logger.debug(
            "[grammar_validator] kind=%s score=%.0f errors=%d warnings=%d",
            candidate.kind, result.score, len(errors), len(warnings),
        )
        return result

    # ── order_sentence ────────────────────────────────────────────────────

    def _check_order_sentence(self, ex, errors: list[str], warnings: list[str]) -> None:
        analysis = self.analyzer.analyze_sentence(ex.correct)
        if not analysis.has_verb:
            errors.append("NO_VERB: the correct sentence has no conjugated verb")
        if not analysis.has_subject and len(analysis.words) < 3:
            errors.append("NO_SUBJECT: the correct sentence has no clear subject")

        sentence_tokens = ex.correct.split()
        if len(ex.words) != len(sentence_tokens):
            errors.append(
                f"WORD_COUNT: {len(ex.words)} words given but the correct sentence has "
                f"{len(sentence_tokens)}"
            )

        sentence_norm = [_norm_word(w) for w in sentence_tokens]
        exercise_norm = [_norm_word(w) for w in ex.words]
        missing = [w for w in exercise_norm if w not in sentence_norm]
        for word in missing:
            errors.append(f"WORD_NOT_IN_SENTENCE: '{word}' does not appear in the correct sentence")

        if not missing and len(ex.words) == len(sentence_tokens):
            if Counter(exercise_norm) != Counter(sentence_norm):
                errors.append("WORD_MULTISET: words are not an exact permutation of the correct sentence")

        if not has_terminal_punctuation(ex.correct):
            warnings.append("PUNCTUATION: the correct sentence should end with . ! or ?")

        if len(ex.words) < MIN_ORDER_WORDS:
            errors.append(f"TOO_SHORT: fewer than {MIN_ORDER_WORDS} words")
        if len(ex.words) > MAX_ORDER_WORDS:
            warnings.append(f"TOO_LONG: more than {MAX_ORDER_WORDS} words may be hard for the level")

    # ── complete_words ────────────────────────────────────────────────────

    def _check_blank_count(self, sentence: str, errors: list[str]) -> None:
        blanks = count_blanks(sentence)
        if blanks == 0:
            errors.append(f"BLANK_COUNT: the sentence has no blank marker ({BLANK_MARKER})")
        elif blanks > 1:
            errors.append(f"BLANK_COUNT: the sentence has {blanks} blank markers, expected exactly one")

    def _check_complete_words(self, ex, errors: list[str], warnings: list[str]) -> None:
        self._check_blank_count(ex.sentence, errors)

        answer = ex.correct.strip()
        if not answer:
            errors.append("EMPTY_ANSWER: the correct word is empty")

        filled = ex.target_sentence()
        if not self.analyzer.analyze_sentence(filled).has_verb:
            errors.append("NO_VERB: the completed sentence has no verb")

        if answer.lower() in lexicon.TRIVIAL_WORDS:
            warnings.append(f"TRIVIAL_ANSWER: '{answer}' is a bare article or conjunction")

        if len(answer) < 2:
            errors.append("ANSWER_TOO_SHORT: the correct word must have at least 2 characters")

        remaining = fill_blank(ex.sentence, "").split()
        if len(remaining) < MIN_REMAINING_TOKENS:
            errors.append(
                f"FRAGMENT_TOO_SHORT: only {len(remaining)} words remain around the blank"
            )

    # ── drag_words ────────────────────────────────────────────────────────

    def _check_drag_words(self, ex, errors: list[str], warnings: list[str]) -> None:
        self._check_blank_count(ex.sentence, errors)

        if ex.correct not in ex.options:
            errors.append(f"ANSWER_NOT_IN_OPTIONS: '{ex.correct}' is not one of the options")
        if len(ex.options) < MIN_OPTIONS:
            errors.append(f"TOO_FEW_OPTIONS: at least {MIN_OPTIONS} options required, got {len(ex.options)}")
        if len(set(ex.options)) != len(ex.options):
            errors.append("DUPLICATE_OPTIONS: options must be distinct")

        if not self.analyzer.analyze_sentence(ex.target_sentence()).has_verb:
            errors.append("NO_VERB: the completed sentence has no verb")

        for option in ex.options:
            if option == ex.correct:
                continue
            a = self.analyzer.analyze_sentence(fill_blank(ex.sentence, option))
            if a.has_verb and a.has_subject and a.has_complement:
                warnings.append(
                    f"PLAUSIBLE_DISTRACTOR: incorrect option '{option}' also forms a grammatical sentence"
                )

    # ── multi_choice ──────────────────────────────────────────────────────

    def _check_multi_choice(self, ex, errors: list[str], warnings: list[str]) -> None:
        if not ex.question.rstrip().endswith("?"):
            warnings.append("QUESTION_MARK: the question should end with '?'")
        if len(ex.choices) != MULTI_CHOICE_COUNT:
            errors.append(f"CHOICE_COUNT: exactly {MULTI_CHOICE_COUNT} choices required, got {len(ex.choices)}")
        if not 0 <= ex.correct_index < len(ex.choices):
            errors.append(f"CORRECT_INDEX: index {ex.correct_index} is out of range")
        if len(set(ex.choices)) != len(ex.choices):
            errors.append("DUPLICATE_CHOICES: choices must be distinct")
        for idx, choice in enumerate(ex.choices, start=1):
            if len(choice) < MIN_CHOICE_CHARS:
                warnings.append(f"CHOICE_LENGTH: choice {idx} is too short")
            if len(choice) > MAX_CHOICE_CHARS:
                warnings.append(f"CHOICE_LENGTH: choice {idx} is too long")

    # ── free_writing ──────────────────────────────────────────────────────

    def _check_free_writing(self, ex, errors: list[str], warnings: list[str]) -> None:
        prompt = ex.prompt.strip()
        if not prompt:
            errors.append("EMPTY_PROMPT: the writing prompt is empty")
        elif not prompt.endswith("?"):
            warnings.append("QUESTION_MARK: the writing prompt should be a question")
        if ex.min_length < 1:
            errors.append("LENGTH_BOUNDS: minLength must be at least 1")
        if ex.max_length <= ex.min_length:
            errors.append("LENGTH_BOUNDS: maxLength must be greater than minLength")


_validator: Optional[GrammarValidator] = None


def get_grammar_validator() -> GrammarValidator:
    global _validator
    if _validator is None:
        _validator = GrammarValidator()
    return _validator


def validate_grammar(candidate, analyzer: Optional[Analyzer] = None) -> ValidationResult:
    if analyzer is None:
        return get_grammar_validator().validate(candidate)
    return GrammarValidator(analyzer).validate(candidate)
