"""Tests for SnapshotPoller -- background refresh loop lifecycle."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from carry.exceptions import FeedUnavailableError
from carry.poller import SnapshotPoller
from carry.service import SpreadService


@pytest.fixture
def service() -> AsyncMock:
    return AsyncMock(spec=SpreadService)


class TestSnapshotPoller:
    @pytest.mark.asyncio
    async def test_polls_until_stopped(self, service: AsyncMock) -> None:
        poller = SnapshotPoller(service, interval=0.01)

        await poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()

        assert service.poll.await_count >= 2
        assert poller.is_running is False

    @pytest.mark.asyncio
    async def test_survives_failed_cycle(self, service: AsyncMock) -> None:
        calls: list[int] = []

        async def poll() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise FeedUnavailableError("okx", "down")

        service.poll.side_effect = poll
        poller = SnapshotPoller(service, interval=0.01)

        await poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()

        assert service.poll.await_count >= 2

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self, service: AsyncMock) -> None:
        poller = SnapshotPoller(service, interval=10)

        await poller.start()
        first_task = poller._task
        await poller.start()

        assert poller._task is first_task
        await poller.stop()
