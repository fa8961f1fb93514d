"""
Coherence Validator: faithfulness of exercise content to the source passage.

All comparisons run on normalize_text() output and match on token
boundaries, so "gato" never matches inside "gatos".
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from hablaconmigo.linguistic import lexicon
from hablaconmigo.linguistic.text import (
    contains_phrase,
    fill_blank,
    normalize_text,
    normalized_tokens,
    split_on_blank,
)
from hablaconmigo.models.validation import ValidationResult
from hablaconmigo.validators.scoring import coherence_result

logger = logging.getLogger(__name__)

# Only words longer than this count toward word-level matching
MIN_CONTENT_WORD_LEN = 2
# Share of content words found in the passage when the whole sentence is not
PARTIAL_MATCH_ERROR_BELOW = 0.5
PARTIAL_MATCH_WARNING_BELOW = 0.8


def extract_keywords(text: str) -> list[str]:
    """Content keywords: normalized tokens longer than 2 chars, stop words removed."""
    return [
        t for t in normalized_tokens(text)
        if len(t) > MIN_CONTENT_WORD_LEN and t not in lexicon.STOP_WORDS
    ]


class CoherenceValidator:
    """Checks candidates against one passage; the passage is normalized once."""

    def __init__(self, passage: str):
        self.passage = passage
        self._norm_passage = normalize_text(passage)
        self._passage_tokens = frozenset(self._norm_passage.split())
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
            return coherence_result([f"UNKNOWN_KIND: no coherence rules for kind '{candidate.kind}'"], [])
        errors: list[str] = []
        warnings: list[str] = []
        check(candidate, errors, warnings)
        result = coherence_result(errors, warnings)
        logger.debug(
            "[coherence_validator] kind=%s score=%.0f errors=%d warnings=%d",
            candidate.kind, result.score, len(errors), len(warnings),
        )
        return result

    # ── shared checks ─────────────────────────────────────────────────────

    def in_passage(self, text: str) -> bool:
        return contains_phrase(self._norm_passage, text)

    def _word_in_passage(self, word: str) -> bool:
        return word in self._passage_tokens

    def _check_sentence_in_passage(self, sentence: str, errors: list[str], warnings: list[str]) -> None:
        if self.in_passage(sentence):
            return
        words = [t for t in normalized_tokens(sentence) if len(t) > MIN_CONTENT_WORD_LEN]
        missing = [w for w in words if not self._word_in_passage(w)]
        fraction = (len(words) - len(missing)) / len(words) if words else 0.0
        pct = round(fraction * 100)
        detail = f"; words absent from the story: {', '.join(missing)}" if missing else ""

        errors.append(f"NOT_IN_STORY: '{sentence}' is not a literal sentence from the story{detail}")
        if fraction < PARTIAL_MATCH_ERROR_BELOW:
            errors.append(f"LOW_WORD_MATCH: only {pct}% of the words in '{sentence}' appear in the story")
        elif fraction < PARTIAL_MATCH_WARNING_BELOW:
            warnings.append(f"PARTIAL_MATCH: {pct}% of the words in '{sentence}' appear in the story")

    def _check_tokens(self, tokens, errors: list[str], warnings: list[str]) -> None:
        for raw in tokens:
            for token in normalized_tokens(raw):
                if len(token) > MIN_CONTENT_WORD_LEN and not self._word_in_passage(token):
                    warnings.append(f"WORD_NOT_IN_STORY: '{raw}' does not appear in the story")
                    break

    def _check_fragments(self, sentence: str, warnings: list[str]) -> None:
        before, after = split_on_blank(sentence)
        if normalize_text(before) and not self.in_passage(before):
            warnings.append(f"FRAGMENT_NOT_IN_STORY: '{before}' (before the blank) is not in the story")
        if normalize_text(after) and not self.in_passage(after):
            warnings.append(f"FRAGMENT_NOT_IN_STORY: '{after}' (after the blank) is not in the story")

    # ── per kind ──────────────────────────────────────────────────────────

    def _check_order_sentence(self, ex, errors: list[str], warnings: list[str]) -> None:
        self._check_sentence_in_passage(ex.target_sentence(), errors, warnings)
        self._check_tokens(ex.words, errors, warnings)

    def _check_complete_words(self, ex, errors: list[str], warnings: list[str]) -> None:
        self._check_sentence_in_passage(ex.target_sentence(), errors, warnings)
        self._check_tokens([ex.correct], errors, warnings)
        self._check_fragments(ex.sentence, warnings)

    def _check_drag_words(self, ex, errors: list[str], warnings: list[str]) -> None:
        self._check_complete_words(ex, errors, warnings)
        for option in ex.options:
            if option == ex.correct:
                continue
            if self.in_passage(fill_blank(ex.sentence, option)):
                warnings.append(
                    f"DISTRACTOR_IN_STORY: incorrect option '{option}' also forms a sentence from the story"
                )

    def _check_multi_choice(self, ex, errors: list[str], warnings: list[str]) -> None:
        correct = ex.correct_choice()
        if correct is None:
            # index problems are structural and reported by the grammar validator
            return

        keywords = extract_keywords(correct)
        if not keywords:
            warnings.append(f"NO_KEYWORDS: correct answer '{correct}' has no content words to check")
        else:
            matched = [k for k in keywords if self._word_in_passage(k)]
            if not matched:
                errors.append(
                    f"ANSWER_NOT_IN_STORY: correct answer '{correct}' is not based on the story "
                    f"(absent: {', '.join(keywords)})"
                )
            elif len(matched) < len(keywords):
                missing = [k for k in keywords if k not in matched]
                warnings.append(
                    f"PARTIAL_ANSWER: correct answer '{correct}' only partly matches the story "
                    f"(absent: {', '.join(missing)})"
                )

        for idx, choice in enumerate(ex.choices):
            if idx == ex.correct_index:
                continue
            kws = extract_keywords(choice)
            if kws and all(self._word_in_passage(k) for k in kws):
                warnings.append(
                    f"DISTRACTOR_IN_STORY: incorrect choice '{choice}' may also be true in the story"
                )

    def _check_free_writing(self, ex, errors: list[str], warnings: list[str]) -> None:
        # open-ended answer, nothing literal to trace back to the passage
        return


def validate_coherence(candidate, passage: str) -> ValidationResult:
    return CoherenceValidator(passage).validate(candidate)
