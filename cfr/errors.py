"""Errors raised by the CFR engine and the game adapters."""

from __future__ import annotations


class CFRError(Exception):
    """Base class for engine errors."""


class ConfigurationError(CFRError, ValueError):
    """Invalid training configuration. Raised before a run starts."""


class MalformedHistoryError(CFRError):
    """A history the game rules cannot interpret.

    Always an internal consistency bug: the walker only builds histories
    from legal actions.
    """

    def __init__(self, history: str, reason: str = "no legal successor") -> None:
        super().__init__(f"Malformed history {history!r}: {reason}")
        self.history = history


class InfoSetArityMismatch(CFRError):
    """A stored info set's width differs from the legal-action count."""

    def __init__(self, key: str, stored: int, expected: int) -> None:
        super().__init__(
            f"Info set {key!r} has {stored} actions stored, "
            f"but {expected} legal actions were computed"
        )
        self.key = key
        self.stored = stored
        self.expected = expected
