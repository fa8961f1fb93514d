"""
Tests for the Fallback Selector: nearest-level lookup and retitling.
"""
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hablaconmigo.core.exceptions import CatalogGapFailure
from hablaconmigo.models.exercise import EXERCISE_KINDS, CompleteWordsExercise
from hablaconmigo.validators.grammar import validate_grammar
from hablaconmigo.services.fallback_catalog import (
    FallbackCatalog,
    FallbackEntry,
    get_fallback_catalog,
    nearest_level,
)


def _make_entry(level, title="Completa la palabra"):
    return FallbackEntry(
        level=level,
        kind="complete_words",
        exercise=CompleteWordsExercise(title=title, sentence="El gato___pescado.", correct="come"),
    )


class TestNearestLevel:
    def test_exact(self):
        assert nearest_level([1, 2, 3, 5], 3) == 3

    def test_tie_prefers_lower(self):
        assert nearest_level([1, 2, 3, 5], 4) == 3

    def test_above_range(self):
        assert nearest_level([1, 2, 3, 5], 9) == 5

    def test_below_range(self):
        assert nearest_level([4, 6], 1) == 4

    def test_empty(self):
        assert nearest_level([], 1) is None


class TestCatalog:
    def test_lookup_exact(self):
        catalog = FallbackCatalog([_make_entry(1), _make_entry(3)])
        assert catalog.lookup(3, "complete_words").level == 3

    def test_lookup_nearest(self):
        catalog = FallbackCatalog([_make_entry(1), _make_entry(3)])
        assert catalog.lookup(2, "complete_words").level == 1

    def test_gap_raises(self):
        with pytest.raises(CatalogGapFailure) as exc_info:
            FallbackCatalog([]).lookup(1, "complete_words")
        assert exc_info.value.kind == "complete_words"

    def test_select_retitles_without_touching_substance(self):
        entry = FallbackCatalog([_make_entry(1)]).select(1, "complete_words", "El gato feliz")
        assert entry.exercise.title == "Completa la palabra - El gato feliz"
        assert entry.exercise.correct == "come"

    def test_select_without_story_title(self):
        entry = FallbackCatalog([_make_entry(1)]).select(1, "complete_words", "")
        assert entry.exercise.title == "Completa la palabra"

    def test_select_leaves_catalog_unchanged(self):
        catalog = FallbackCatalog([_make_entry(1)])
        catalog.select(1, "complete_words", "Historia")
        assert catalog.lookup(1, "complete_words").exercise.title == "Completa la palabra"


class TestBundledCatalog:
    def test_every_kind_covered(self):
        catalog = get_fallback_catalog()
        assert catalog.kinds() == sorted(EXERCISE_KINDS)

    def test_entries_match_their_key(self):
        catalog = get_fallback_catalog()
        for kind in catalog.kinds():
            for level in catalog.levels_for(kind):
                assert catalog.lookup(level, kind).exercise.kind == kind

    def test_drag_words_at_high_level_uses_nearest(self):
        assert get_fallback_catalog().lookup(7, "drag_words").level == 3

    def test_free_writing_at_low_level(self):
        assert get_fallback_catalog().lookup(1, "free_writing").level == 5

    def test_level_one_order_sentence(self):
        entry = get_fallback_catalog().lookup(1, "order_sentence")
        assert entry.exercise.correct == "El gato come pescado."

    def test_every_entry_passes_grammar(self):
        catalog = get_fallback_catalog()
        failing = []
        for kind in catalog.kinds():
            for level in catalog.levels_for(kind):
                result = validate_grammar(catalog.lookup(level, kind).exercise)
                if result.errors:
                    failing.append((level, kind, result.errors))
        assert failing == []

    def test_level_three_connector_blank(self):
        ex = get_fallback_catalog().lookup(3, "complete_words").exercise
        assert ex.correct == "pero"
        assert validate_grammar(ex).warnings == ()
