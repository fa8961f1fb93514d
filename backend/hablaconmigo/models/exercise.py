"""
Exercise candidates: one closed variant per game kind.

Validators dispatch on ``kind``; every variant carries only its own
non-optional payload fields. Candidates are frozen: regeneration replaces
them, fallback substitution copies them with a new title.
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from hablaconmigo.linguistic.text import fill_blank

ExerciseKind = Literal["order_sentence", "complete_words", "drag_words", "multi_choice", "free_writing"]
EXERCISE_KINDS: tuple[str, ...] = (
    "order_sentence", "complete_words", "drag_words", "multi_choice", "free_writing",
)


class _ExerciseBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = ""
    explanation: str = ""
    hints: tuple[str, ...] = ()

    def with_title(self, title: str):
        return self.model_copy(update={"title": title})


class OrderSentenceExercise(_ExerciseBase):
    kind: Literal["order_sentence"] = "order_sentence"
    words: tuple[str, ...]
    correct: str

    def target_sentence(self) -> str:
        return self.correct


class CompleteWordsExercise(_ExerciseBase):
    kind: Literal["complete_words"] = "complete_words"
    sentence: str
    correct: str

    def target_sentence(self) -> str:
        return fill_blank(self.sentence, self.correct)


class DragWordsExercise(_ExerciseBase):
    kind: Literal["drag_words"] = "drag_words"
    sentence: str
    options: tuple[str, ...]
    correct: str

    def target_sentence(self) -> str:
        return fill_blank(self.sentence, self.correct)


class MultiChoiceExercise(_ExerciseBase):
    kind: Literal["multi_choice"] = "multi_choice"
    question: str
    choices: tuple[str, ...]
    correct_index: int = Field(alias="correctIndex")

    def target_sentence(self) -> str:
        return self.question

    def correct_choice(self) -> str | None:
        if 0 <= self.correct_index < len(self.choices):
            return self.choices[self.correct_index]
        return None


class FreeWritingExercise(_ExerciseBase):
    kind: Literal["free_writing"] = "free_writing"
    prompt: str
    min_length: int = Field(default=10, alias="minLength")
    max_length: int = Field(default=200, alias="maxLength")
    rubric: tuple[str, ...] = ()

    def target_sentence(self) -> str:
        return self.prompt


ExerciseCandidate = Annotated[
    Union[
        OrderSentenceExercise,
        CompleteWordsExercise,
        DragWordsExercise,
        MultiChoiceExercise,
        FreeWritingExercise,
    ],
    Field(discriminator="kind"),
]

_candidate_adapter: TypeAdapter = TypeAdapter(ExerciseCandidate)


def parse_candidate(data: Any):
    """
    Validate raw generation output into an ExerciseCandidate.

    Accepts three shapes:
      flat      {"kind": "complete_words", "sentence": ..., "correct": ...}
      nested    {"kind" | "type": ..., "payload": {...}, "title": ...}
      game      {"gameType": ..., "exercise": {"type": ..., "payload": {...}}}

    Raises pydantic.ValidationError on any shape/field mismatch.
    """
    if isinstance(data, BaseModel):
        return data
    if not isinstance(data, dict):
        return _candidate_adapter.validate_python(data)

    if isinstance(data.get("exercise"), dict):
        outer = {k: v for k, v in data.items() if k != "exercise"}
        inner = dict(data["exercise"])
        inner.setdefault("type", data.get("gameType"))
        data = {**outer, **inner}

    flat: dict[str, Any] = {}
    payload = data.get("payload")
    if isinstance(payload, dict):
        flat.update(payload)
    flat.update({k: v for k, v in data.items() if k not in ("payload", "type", "gameType")})
    if "kind" not in flat:
        flat["kind"] = data.get("type") or data.get("gameType")
    return _candidate_adapter.validate_python(flat)


def dump_candidate(candidate) -> dict:
    """Wire form: camelCase aliases, same keys the generation service emits."""
    return candidate.model_dump(by_alias=True, mode="json")
