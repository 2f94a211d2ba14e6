"""Upstash Redis REST cache for the latest ranking snapshot.

Uses the REST command form (POST <url> with ["SET", key, value, "EX", ttl])
so the stored value is exactly the serialized snapshot. When the URL or token
is missing every call is a no-op: get() returns None and set() returns False.

Cache failures never propagate; the ranking path must not depend on them.
"""

import asyncio
import json
from typing import Any
from urllib.parse import quote

import aiohttp

from carry.config import CacheSettings
from carry.logging import get_logger

logger = get_logger(__name__)


class UpstashCache:
    """Minimal JSON get/set against Upstash Redis REST.

    Args:
        settings: Connection settings; inactive unless url and token are set.
        session: Optional shared aiohttp session. Created lazily otherwise.
        timeout: Total request timeout in seconds.
    """

    def __init__(
        self,
        settings: CacheSettings,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._settings.token.get_secret_value()}"}

    async def get_json(self, key: str) -> Any:
        """Return the decoded value stored under key, or None."""
        if not self.is_configured:
            return None

        url = f"{self._settings.url.rstrip('/')}/get/{quote(key, safe='')}"
        try:
            async with self._get_session().get(url, headers=self._headers()) as resp:
                body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

        value = body.get("result") if isinstance(body, dict) else None
        if not value:
            return None
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            return value

    async def set_json(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """Store value as JSON under key with an expiry. Returns success."""
        if not self.is_configured:
            return False

        ttl = ttl_seconds if ttl_seconds is not None else self._settings.ttl_seconds
        command = ["SET", key, json.dumps(value), "EX", str(ttl)]
        try:
            async with self._get_session().post(
                self._settings.url.rstrip("/"), json=command, headers=self._headers()
            ) as resp:
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False

        if status >= 400:
            logger.warning("cache_write_rejected", key=key, status=status)
            return False
        return True

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
