"""Abstract rate feed interface.

The service depends only on this contract; exchange specifics (endpoints,
response envelopes, ccxt wiring) stay in the concrete clients.
"""

from abc import ABC, abstractmethod
from typing import Any


class RateFeed(ABC):
    """A public feed returning one raw rate record per currency."""

    name: str

    @abstractmethod
    async def fetch_raw_rates(self) -> list[dict[str, Any]]:
        """Fetch raw rate records.

        Raises:
            FeedUnavailableError: transport failure or malformed payload.
                An empty list is a valid answer, not an error.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP session (CRITICAL for ccxt async)."""
        ...
