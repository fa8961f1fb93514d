"""
Text helpers shared by the analyzer and the validators.

normalize_text() is the single comparison form used by every faithfulness
check: lowercase, diacritics stripped, punctuation collapsed to spaces,
whitespace collapsed. Two strings "match" when one normalized form occurs
inside the other on token boundaries.

The blank marker is a wire-format contract with the generation service:
exactly three underscores, never rewritten in a candidate. fill_blank()
only builds a throwaway sentence for validation.
"""
from __future__ import annotations

import re
import unicodedata

BLANK_MARKER = "___"

# Punctuation collapsed to a space during normalization
_PUNCT_RE = re.compile(r"[.,;:!?¿¡\"'«»()\[\]{}…\-–—_/]")
_WS_RE = re.compile(r"\s+")

# Surrounding punctuation stripped from a single token
_TOKEN_EDGE_RE = re.compile(r"^[^\w]+|[^\w]+$", re.UNICODE)

_TERMINAL_PUNCT_RE = re.compile(r"[.!?]$")


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalize_text(text: str) -> str:
    """Lowercase, strip diacritics and punctuation, collapse whitespace."""
    if not text:
        return ""
    result = strip_accents(text.lower())
    result = _PUNCT_RE.sub(" ", result)
    return _WS_RE.sub(" ", result).strip()


def normalized_tokens(text: str) -> list[str]:
    return normalize_text(text).split()


def contains_phrase(haystack: str, needle: str) -> bool:
    """True when normalized ``needle`` occurs in normalized ``haystack`` on word boundaries."""
    n = normalize_text(needle)
    if not n:
        return False
    h = normalize_text(haystack)
    return f" {n} " in f" {h} "


def strip_token(token: str) -> str:
    """Remove leading/trailing punctuation from a single whitespace token."""
    return _TOKEN_EDGE_RE.sub("", token)


def has_terminal_punctuation(sentence: str) -> bool:
    return bool(_TERMINAL_PUNCT_RE.search(sentence.strip()))


def count_blanks(sentence: str) -> int:
    return sentence.count(BLANK_MARKER)


def split_on_blank(sentence: str) -> tuple[str, str]:
    """Return the text before and after the first blank marker."""
    before, _, after = sentence.partition(BLANK_MARKER)
    return before.strip(), after.strip()


def fill_blank(sentence: str, word: str) -> str:
    """
    Replace the first blank marker with ``word``.

    The generation prompt asks for the marker without surrounding spaces
    ("El gato___pescado."), so a space is inserted wherever the marker
    touches a letter or digit. Passing an empty word removes the blank.
    """
    idx = sentence.find(BLANK_MARKER)
    if idx < 0:
        return sentence
    before = sentence[:idx]
    after = sentence[idx + len(BLANK_MARKER):]
    if before and before[-1].isalnum():
        before += " "
    if word and after and after[0].isalnum():
        after = " " + after
    return _WS_RE.sub(" ", f"{before}{word}{after}").strip()
