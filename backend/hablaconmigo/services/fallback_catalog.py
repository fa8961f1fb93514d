"""
Fallback Selector: hand-verified exercises keyed by (level, kind).

Nearest-level lookup is a total order over the levels that actually have
an entry for the requested kind: smallest |level - requested| wins, and
on a tie the lower level wins. Substance is never touched; only the
display title is rewritten as "<title> - <story title>".
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from hablaconmigo.core.exceptions import CatalogGapFailure
from hablaconmigo.models.exercise import parse_candidate

logger = logging.getLogger(__name__)

_CATALOG_PATH = Path(__file__).parent.parent / "data" / "fallback_exercises.json"


@dataclass(frozen=True)
class FallbackEntry:
    level: int
    kind: str
    exercise: object  # ExerciseCandidate


def nearest_level(available: Iterable[int], requested: int) -> Optional[int]:
    levels = sorted(set(available))
    if not levels:
        return None
    return min(levels, key=lambda lvl: (abs(lvl - requested), lvl))


class FallbackCatalog:
    def __init__(self, entries: Iterable[FallbackEntry]):
        self._by_kind: dict[str, dict[int, FallbackEntry]] = {}
        for entry in entries:
            self._by_kind.setdefault(entry.kind, {})[entry.level] = entry

    @classmethod
    def from_json(cls, path: Path = _CATALOG_PATH) -> "FallbackCatalog":
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        entries = []
        for item in raw.get("entries", []):
            candidate = parse_candidate(item)
            entries.append(FallbackEntry(level=int(item["level"]), kind=candidate.kind, exercise=candidate))
        logger.debug("[fallback_catalog] Loaded %d entries from %s", len(entries), path)
        return cls(entries)

    def kinds(self) -> list[str]:
        return sorted(self._by_kind)

    def levels_for(self, kind: str) -> list[int]:
        return sorted(self._by_kind.get(kind, {}))

    def lookup(self, level: int, kind: str) -> FallbackEntry:
        """Exact or nearest-level entry; CatalogGapFailure when the kind has none at all."""
        by_level = self._by_kind.get(kind, {})
        chosen = nearest_level(by_level, level)
        if chosen is None:
            raise CatalogGapFailure(kind, level)
        if chosen != level:
            logger.info("[fallback_catalog] no %s at level %d, using level %d", kind, level, chosen)
        return by_level[chosen]

    def select(self, level: int, kind: str, story_title: str) -> FallbackEntry:
        entry = self.lookup(level, kind)
        title = f"{entry.exercise.title} - {story_title}" if story_title else entry.exercise.title
        return FallbackEntry(level=entry.level, kind=entry.kind, exercise=entry.exercise.with_title(title))


_catalog: Optional[FallbackCatalog] = None


def get_fallback_catalog() -> FallbackCatalog:
    """Return the module-level singleton, loaded once from data/fallback_exercises.json."""
    global _catalog
    if _catalog is None:
        _catalog = FallbackCatalog.from_json()
    return _catalog
