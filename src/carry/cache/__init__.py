"""Cache sink for the latest ranking snapshot."""

from carry.cache.upstash import UpstashCache

__all__ = ["UpstashCache"]
