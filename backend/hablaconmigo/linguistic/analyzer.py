"""
Lexical Text Analyzer: sentence splitting and per-sentence feature detection.

No part-of-speech tagging: every feature is a lexicon lookup or a suffix
match on whitespace tokens.

  connectors   exact match against COORDINATING / SUBORDINATING
  subject      an article or personal pronoun token, or a capitalised
               opening word that is not itself a verb (proper noun)
  verb         conjugated-form lexicon, else tense suffix on an open-class
               token longer than MIN_SUFFIX_TOKEN_LEN
  complement   more than three tokens
  complexity   simple (no connector) | complex (any subordinator) | compound

Validators depend only on the Analyzer protocol, so the lexicons can be
swapped for a real morphological analyzer without touching them.
"""
from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from hablaconmigo.linguistic import lexicon
from hablaconmigo.linguistic.text import strip_token

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class SentenceAnalysis:
    sentence: str
    words: tuple[str, ...]
    has_subject: bool
    has_verb: bool
    has_complement: bool
    connectors: tuple[str, ...]
    verb_tenses: tuple[str, ...]
    complexity: str  # simple | compound | complex
    grammar_features: tuple[str, ...] = ()


@dataclass(frozen=True)
class TextAnalysis:
    sentences: tuple[SentenceAnalysis, ...]
    total_words: int
    vocabulary_level: int
    main_connectors: tuple[str, ...]
    dominant_tense: str


class Analyzer(Protocol):
    def analyze_sentence(self, text: str) -> SentenceAnalysis: ...

    def extract_sentences(self, text: str) -> list[SentenceAnalysis]: ...

    def verb_tense(self, token: str) -> tuple[bool, Optional[str]]: ...


class LexiconAnalyzer:
    """Default Analyzer backed by the static Spanish lexicons."""

    def __init__(
        self,
        coordinating: Iterable[str] = lexicon.COORDINATING,
        subordinating: Iterable[str] = lexicon.SUBORDINATING,
        subject_indicators: Iterable[str] = lexicon.ARTICLES | lexicon.PERSONAL_PRONOUNS,
        verb_lexicon: Optional[dict[str, Optional[str]]] = None,
        tense_suffixes=lexicon.TENSE_SUFFIXES,
        closed_class: Iterable[str] = lexicon.CLOSED_CLASS,
    ):
        self.coordinating = frozenset(coordinating)
        self.subordinating = frozenset(subordinating)
        self.connectors = self.coordinating | self.subordinating
        self.subject_indicators = frozenset(subject_indicators)
        self.verb_lexicon = dict(lexicon.VERB_LEXICON if verb_lexicon is None else verb_lexicon)
        self.tense_suffixes = tuple(tense_suffixes)
        self.closed_class = frozenset(closed_class)

    # -- sentence level -----------------------------------------------------

    def extract_sentences(self, text: str) -> list[SentenceAnalysis]:
        raw = (s.strip() for s in _SENTENCE_SPLIT_RE.split(text or ""))
        return [self.analyze_sentence(s) for s in raw if s]

    def analyze_sentence(self, text: str) -> SentenceAnalysis:
        words = tuple(w for w in text.split() if w)
        tokens = [strip_token(w.lower()) for w in words]
        tokens = [t for t in tokens if t]

        connectors = tuple(t for t in tokens if t in self.connectors)
        verbs, tenses = self._detect_verbs(tokens)
        complexity = self._complexity(connectors)
        has_subject = self._has_subject(words, tokens, verbs)

        features: list[str] = []
        if connectors:
            features.append(f"connectors: {', '.join(connectors)}")
        if tenses:
            features.append(f"tenses: {', '.join(tenses)}")
        if complexity == "compound":
            features.append("compound sentence")
        elif complexity == "complex":
            features.append("complex sentence")

        return SentenceAnalysis(
            sentence=text.strip(),
            words=words,
            has_subject=has_subject,
            has_verb=bool(verbs),
            has_complement=len(words) > 3,
            connectors=connectors,
            verb_tenses=tenses,
            complexity=complexity,
            grammar_features=tuple(features),
        )

    # -- feature detectors --------------------------------------------------

    def verb_tense(self, token: str) -> tuple[bool, Optional[str]]:
        """Return (is_verb, tense) for a single lowercase, punctuation-free token."""
        if token in self.verb_lexicon:
            return True, self.verb_lexicon[token]
        if token in self.closed_class or len(token) <= lexicon.MIN_SUFFIX_TOKEN_LEN:
            return False, None
        for tense, pattern in self.tense_suffixes:
            if pattern.search(token):
                return True, tense
        return False, None

    def _detect_verbs(self, tokens: list[str]) -> tuple[list[str], tuple[str, ...]]:
        verbs: list[str] = []
        tenses: list[str] = []
        for token in tokens:
            is_verb, tense = self.verb_tense(token)
            if not is_verb:
                continue
            verbs.append(token)
            if tense and tense not in tenses:
                tenses.append(tense)
        return verbs, tuple(tenses)

    def _has_subject(self, words: tuple[str, ...], tokens: list[str], verbs: list[str]) -> bool:
        if any(t in self.subject_indicators for t in tokens):
            return True
        if not words or not tokens:
            return False
        # Capitalised opener that is not a verb reads as a proper-noun subject ("Pedro juega")
        first_raw = strip_token(words[0])
        first = tokens[0]
        if not first_raw[:1].isupper() or first in self.closed_class:
            return False
        if first in self.verb_lexicon:
            return False
        # "Pedro come" -> suffix matching also flags "pedro"; a later verb means the opener is the subject
        return first not in verbs or len(verbs) > 1

    def _complexity(self, connectors: tuple[str, ...]) -> str:
        if not connectors:
            return "simple"
        if any(c in self.subordinating for c in connectors):
            return "complex"
        return "compound"


# ---------------------------------------------------------------------------
# Module-level default analyzer + passage helpers
# ---------------------------------------------------------------------------

_DEFAULT_ANALYZER: Optional[LexiconAnalyzer] = None


def get_default_analyzer() -> LexiconAnalyzer:
    """Return the module-level singleton."""
    global _DEFAULT_ANALYZER
    if _DEFAULT_ANALYZER is None:
        _DEFAULT_ANALYZER = LexiconAnalyzer()
    return _DEFAULT_ANALYZER


def extract_sentences(text: str, analyzer: Optional[Analyzer] = None) -> list[SentenceAnalysis]:
    return (analyzer or get_default_analyzer()).extract_sentences(text)


def analyze_sentence(text: str, analyzer: Optional[Analyzer] = None) -> SentenceAnalysis:
    return (analyzer or get_default_analyzer()).analyze_sentence(text)


def analyze_text(text: str, analyzer: Optional[Analyzer] = None) -> TextAnalysis:
    """Whole-passage summary: sentences, word totals, connectors, dominant tense."""
    sentences = tuple(extract_sentences(text, analyzer))
    total_words = sum(len(s.words) for s in sentences)

    main_connectors: list[str] = []
    for s in sentences:
        for c in s.connectors:
            if c not in main_connectors:
                main_connectors.append(c)

    tense_counts = Counter(t for s in sentences for t in s.verb_tenses)
    # most_common keeps first-seen order on ties
    dominant = tense_counts.most_common(1)[0][0] if tense_counts else "presente"

    return TextAnalysis(
        sentences=sentences,
        total_words=total_words,
        vocabulary_level=min(10, math.ceil(total_words / 50)),
        main_connectors=tuple(main_connectors),
        dominant_tense=dominant,
    )


def find_suitable_sentences(
    text: str,
    level: int,
    kind: str,
    analyzer: Optional[Analyzer] = None,
) -> list[SentenceAnalysis]:
    """Sentences from the passage whose shape suits the level band and exercise kind."""
    suitable: list[SentenceAnalysis] = []
    for s in extract_sentences(text, analyzer):
        n = len(s.words)
        if level <= 2:
            ok = s.complexity == "simple" and n <= 8
        elif level <= 4:
            if kind == "order_sentence":
                ok = bool(s.connectors) and n <= 10
            else:
                ok = 5 <= n <= 10
        elif level <= 7:
            ok = s.complexity != "simple" and n <= 15
        else:
            ok = 8 <= n <= 20
        if ok:
            suitable.append(s)
    return suitable
