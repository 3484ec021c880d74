"""Custom exception classes for the application.

Errors fall into two tiers. Call-level errors (``ElementNotFound``,
``SessionError``, ``SearchTimeout``) propagate out of ``search()``.
Row-level and optional-wait errors (``RowExtractionError``,
``ResultsSurfaceTimeout``) are raised and caught inside an adapter and
only ever show up in logs and extraction reports.
"""


class PartsFinderException(Exception):
    """Base exception for all Parts Finder errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(PartsFinderException):
    """Raised when search parameters are malformed."""


class UnknownSourceError(PartsFinderException):
    """Raised when no adapter is registered for a source identifier."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"Unknown source: '{source}'")


class ElementNotFound(PartsFinderException):
    """Raised when a critical element (the search input) never resolved."""

    def __init__(self, source: str, role: str):
        self.source = source
        self.role = role
        super().__init__(f"{source}: could not locate {role}")


class SessionError(PartsFinderException):
    """Raised when a browsing session cannot be created or used."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Session error for {source}: {message}")


class SearchTimeout(PartsFinderException):
    """Raised when a search exceeds its overall wall-clock budget."""

    def __init__(self, source: str, seconds: float):
        self.source = source
        self.seconds = seconds
        super().__init__(f"Search on {source} exceeded {seconds:.0f}s")


class SelectorBudgetExceeded(PartsFinderException):
    """Raised when a caller-supplied budget runs out mid candidate chain."""

    def __init__(self, budget_ms: int, tried: int):
        self.budget_ms = budget_ms
        self.tried = tried
        super().__init__(
            f"Selector budget of {budget_ms}ms exhausted after {tried} candidate(s)"
        )


class RowExtractionError(PartsFinderException):
    """A single result row could not be turned into a listing."""


class ResultsSurfaceTimeout(PartsFinderException):
    """The results container did not appear in time."""
