from __future__ import annotations


class CalMergeError(Exception):
    """Base class for all calendar core failures."""


class ParseError(CalMergeError, ValueError):
    """Malformed ICS value text, scoped to a single field."""

    def __init__(self, field: str, raw: str, reason: str = "") -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"invalid {field} {raw!r}{detail}")


class ValidationError(CalMergeError, ValueError):
    """A single event violates a model invariant (empty title, end before start, ...)."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class PreconditionError(CalMergeError):
    """Caller-level misuse, rejected before any work begins."""
