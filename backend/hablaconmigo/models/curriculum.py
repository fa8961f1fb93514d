from pydantic import BaseModel, ConfigDict, Field


class WordRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: int
    max: int


class CurriculumLevel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    level: int
    name: str
    word_range: WordRange = Field(alias="wordRange")
    grammar_features: tuple[str, ...] = Field(alias="grammarFeatures")
    learning_objectives: tuple[str, ...] = Field(default=(), alias="learningObjectives")
    complexity: str = "basic"
    allowed_kinds: tuple[str, ...] = Field(alias="allowedKinds")
