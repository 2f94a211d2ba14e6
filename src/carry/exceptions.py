"""Custom exceptions for the borrow/earn spread service.

Per-record normalization problems are never raised; records are dropped.
Only failures that prevent producing a ranking at all live here.
"""


class CarryError(Exception):
    """Base exception for all service errors."""


class FeedUnavailableError(CarryError):
    """Raised when a rate feed cannot be fetched or returns a malformed payload."""

    def __init__(self, feed: str, reason: str) -> None:
        super().__init__(f"{feed} feed unavailable: {reason}")
        self.feed = feed
        self.reason = reason
