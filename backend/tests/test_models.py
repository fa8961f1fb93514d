"""
Tests for exercise candidate parsing and the curriculum level table.
"""
import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from hablaconmigo.models.exercise import (
    CompleteWordsExercise,
    DragWordsExercise,
    FreeWritingExercise,
    MultiChoiceExercise,
    OrderSentenceExercise,
    dump_candidate,
    parse_candidate,
)
from hablaconmigo.services import curriculum


# ---------------------------------------------------------------------------
# parse_candidate
# ---------------------------------------------------------------------------

class TestParseCandidate:
    def test_flat_shape(self):
        c = parse_candidate({"kind": "complete_words", "sentence": "El gato___pescado.", "correct": "come"})
        assert isinstance(c, CompleteWordsExercise)
        assert c.target_sentence() == "El gato come pescado."

    def test_payload_shape(self):
        c = parse_candidate({
            "type": "multi_choice",
            "title": "Pregunta",
            "payload": {"question": "¿Qué come?", "choices": ["a", "b", "c", "d"], "correctIndex": 2},
        })
        assert isinstance(c, MultiChoiceExercise)
        assert c.correct_index == 2
        assert c.correct_choice() == "c"
        assert c.title == "Pregunta"

    def test_game_shape_keeps_outer_title(self):
        c = parse_candidate({
            "gameType": "complete_words",
            "title": "Completa la palabra",
            "exercise": {"type": "complete_words", "payload": {"sentence": "El gato___pescado.", "correct": "come"}},
        })
        assert c.kind == "complete_words"
        assert c.title == "Completa la palabra"

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_candidate({"kind": "crossword", "sentence": "x"})

    def test_missing_field_rejected(self):
        with pytest.raises(ValidationError):
            parse_candidate({"kind": "drag_words", "sentence": "El gato___pescado.", "correct": "come"})

    def test_model_instance_passes_through(self):
        c = CompleteWordsExercise(sentence="El gato___pescado.", correct="come")
        assert parse_candidate(c) is c

    def test_free_writing_defaults(self):
        c = parse_candidate({"kind": "free_writing", "prompt": "¿Qué harías?"})
        assert isinstance(c, FreeWritingExercise)
        assert (c.min_length, c.max_length) == (10, 200)

    def test_out_of_range_index_still_parses(self):
        c = parse_candidate({"kind": "multi_choice", "question": "¿Qué?", "choices": ["a", "b"], "correctIndex": 5})
        assert c.correct_choice() is None


class TestCandidateValue:
    def test_frozen(self):
        c = CompleteWordsExercise(sentence="El gato___pescado.", correct="come")
        with pytest.raises(ValidationError):
            c.correct = "bebe"

    def test_with_title_copies(self):
        c = CompleteWordsExercise(title="A", sentence="El gato___pescado.", correct="come")
        d = c.with_title("B")
        assert (c.title, d.title) == ("A", "B")
        assert d.sentence == c.sentence

    def test_target_sentence_per_kind(self):
        order = OrderSentenceExercise(words=("come", "El", "gato."), correct="El gato come.")
        assert order.target_sentence() == "El gato come."
        drag = DragWordsExercise(sentence="El gato ___ pescado.", options=("come", "salta", "vuela"), correct="come")
        assert drag.target_sentence() == "El gato come pescado."
        assert FreeWritingExercise(prompt="¿Qué harías?").target_sentence() == "¿Qué harías?"

    def test_dump_uses_wire_aliases(self):
        c = MultiChoiceExercise(question="¿Qué?", choices=("a", "b", "c", "d"), correct_index=1)
        out = dump_candidate(c)
        assert out["correctIndex"] == 1
        assert out["kind"] == "multi_choice"
        assert parse_candidate(out) == c


# ---------------------------------------------------------------------------
# Curriculum levels
# ---------------------------------------------------------------------------

class TestCurriculum:
    def test_ten_levels(self):
        levels = curriculum.all_levels()
        assert [l.level for l in levels] == list(range(1, 11))

    def test_level_one(self):
        cfg = curriculum.get_level_config(1)
        assert cfg.name == "Inicial"
        assert curriculum.get_word_range_for_level(1) == "50-80"
        assert "Oraciones simples (SVO)" in curriculum.get_grammar_focus_for_level(1)

    def test_unknown_level_resolves_to_one(self):
        assert curriculum.get_level_config(42).level == 1
        assert curriculum.is_valid_level(42) is False
        assert curriculum.is_valid_level(10) is True

    def test_allowed_kinds_by_band(self):
        assert "drag_words" in curriculum.get_allowed_kinds(2)
        assert "free_writing" not in curriculum.get_allowed_kinds(2)
        assert "free_writing" in curriculum.get_allowed_kinds(7)
        assert "drag_words" not in curriculum.get_allowed_kinds(7)

    def test_word_ranges_grow_with_level(self):
        mins = [l.word_range.min for l in curriculum.all_levels()]
        assert mins == sorted(mins)

    def test_complexity_index_clamped(self):
        assert curriculum.get_complexity_index(0) == 1
        assert curriculum.get_complexity_index(15) == 10
        assert curriculum.get_complexity_index(6) == 6
