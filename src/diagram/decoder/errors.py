"""Terminal decode errors.

All errors derive from ``DecodeError`` so callers can decide, with a single
``except``, whether to re-request generation. The decoder itself never
retries.
"""

from __future__ import annotations

from diagram.config import EXCERPT_LIMIT


class DecodeError(ValueError):
    """Base class for every terminal decoder failure."""


class EmptyInput(DecodeError):
    """Raised when the raw response is empty or whitespace-only."""

    def __init__(self) -> None:
        super().__init__("response text is empty")


class MalformedDocument(DecodeError):
    """Raised when no structured value survives any repair strategy.

    ``excerpt`` holds at most the first ``min(limit, EXCERPT_LIMIT)``
    characters of the raw input, never the full payload.
    """

    def __init__(self, raw: str, *, limit: int = EXCERPT_LIMIT) -> None:
        self.excerpt = raw[:max(0, min(limit, EXCERPT_LIMIT))]
        super().__init__(f"no structured value recoverable from response: {self.excerpt!r}")


class UnexpectedShape(DecodeError):
    """Raised when the recovered value is not map-like after unwrapping."""

    def __init__(self, value: object) -> None:
        self.found = type(value).__name__
        super().__init__(f"expected an object at the top level, got {self.found}")
