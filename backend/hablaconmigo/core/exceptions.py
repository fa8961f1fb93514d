"""Exceptions raised inside the exercise pipeline.

Validation problems are never raised: validators return issue lists.
These cover the collaborator failures the orchestrator has to absorb.
"""
import asyncio


class GenerationServiceFailure(Exception):
    """The generation service timed out, refused, or returned an unusable payload."""

    def __init__(self, message: str, *, reason: str = "error"):
        super().__init__(message)
        self.reason = reason  # timeout | malformed | schema | empty | transport


class CatalogGapFailure(LookupError):
    """No curated fallback exists for an exercise kind at any level."""

    def __init__(self, kind: str, level: int):
        super().__init__(f"no fallback exercise for kind={kind!r} near level {level}")
        self.kind = kind
        self.level = level


class PipelineCancelled(asyncio.CancelledError):
    """Finalization was cancelled; ``partial`` keeps the exercises already finished.

    Unfinished slots are ``None``. Subclasses CancelledError so callers that do
    not care about partial results still see a normal cancellation.
    """

    def __init__(self, partial: list):
        super().__init__("exercise finalization cancelled")
        self.partial = partial
