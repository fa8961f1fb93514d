"""
Curriculum Config: static level table loaded once from data/curriculum_levels.json.

Unknown levels resolve to level 1, matching how the story workflow treats
out-of-range input.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from hablaconmigo.models.curriculum import CurriculumLevel

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 10

_LEVELS_PATH = Path(__file__).parent.parent / "data" / "curriculum_levels.json"
_LEVELS_CACHE: Optional[dict[int, CurriculumLevel]] = None


def _load_levels() -> dict[int, CurriculumLevel]:
    """Load curriculum_levels.json once and cache it."""
    global _LEVELS_CACHE
    if _LEVELS_CACHE is not None:
        return _LEVELS_CACHE

    with open(_LEVELS_PATH, encoding="utf-8") as f:
        raw = json.load(f)
    levels = {}
    for entry in raw.get("levels", []):
        cfg = CurriculumLevel.model_validate(entry)
        levels[cfg.level] = cfg
    if MIN_LEVEL not in levels:
        raise ValueError(f"{_LEVELS_PATH} must define level {MIN_LEVEL}")

    logger.debug("[curriculum] Loaded %d levels (version %s)", len(levels), raw.get("version"))
    _LEVELS_CACHE = levels
    return _LEVELS_CACHE


def all_levels() -> list[CurriculumLevel]:
    return [cfg for _, cfg in sorted(_load_levels().items())]


def get_level_config(level: int) -> CurriculumLevel:
    levels = _load_levels()
    return levels.get(level) or levels[MIN_LEVEL]


def get_word_range_for_level(level: int) -> str:
    cfg = get_level_config(level)
    return f"{cfg.word_range.min}-{cfg.word_range.max}"


def get_grammar_focus_for_level(level: int) -> str:
    return ", ".join(get_level_config(level).grammar_features)


def get_allowed_kinds(level: int) -> tuple[str, ...]:
    return get_level_config(level).allowed_kinds


def is_valid_level(level: int) -> bool:
    return MIN_LEVEL <= level <= MAX_LEVEL


def get_complexity_index(level: int) -> int:
    return min(MAX_LEVEL, max(MIN_LEVEL, level))
