"""Tests for the HTTP API -- query parsing, cache path, error mapping."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from carry.api.app import create_app
from carry.api.routes import parse_allowlist, parse_top_n
from carry.config import AppSettings
from carry.exceptions import FeedUnavailableError
from carry.models import Opportunity, RankingSnapshot
from carry.service import SpreadService

BTC = Opportunity(coin="BTC", okx_borrow_apr=10.95, gate_earn_apr=18.25, spread=7.3)


@pytest.fixture
def service() -> AsyncMock:
    svc = AsyncMock(spec=SpreadService)
    svc.cached_snapshot.return_value = None
    svc.rank.return_value = [BTC]
    return svc


@pytest.fixture
def client(mock_settings: AppSettings, service: AsyncMock) -> TestClient:
    return TestClient(create_app(mock_settings, service))


class TestParseTopN:
    @pytest.mark.parametrize(
        "raw, expected",
        [(None, 20), ("", 20), ("  ", 20), ("5", 5), ("7.9", 7), ("abc", 20), ("-4", -4)],
    )
    def test_values(self, raw, expected) -> None:
        assert parse_top_n(raw, 20) == expected


class TestParseAllowlist:
    def test_splits_and_uppercases(self) -> None:
        assert parse_allowlist(" btc, eth ,,") == {"BTC", "ETH"}

    @pytest.mark.parametrize("raw", [None, "", " , "])
    def test_empty(self, raw) -> None:
        assert parse_allowlist(raw) is None


class TestGetOpportunities:
    def test_live_ranking(self, client: TestClient, service: AsyncMock) -> None:
        resp = client.get("/api/opportunities")

        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"
        body = resp.json()
        assert body["ok"] is True
        assert "asOf" in body
        assert body["data"] == [
            {
                "coin": "BTC",
                "okxBorrowApr": 10.95,
                "gateEarnApr": 18.25,
                "spread": 7.3,
                "okxMaxLoan": None,
                "okxRemainingQuota": None,
                "note": "",
            }
        ]
        service.rank.assert_awaited_once_with(
            top_n=20, allowlist=None, with_max_loan=False
        )

    def test_query_parameters(self, client: TestClient, service: AsyncMock) -> None:
        client.get("/api/opportunities?topN=500&allow=btc,Eth&withMaxLoan=1")
        service.rank.assert_awaited_once_with(
            top_n=100, allowlist={"BTC", "ETH"}, with_max_loan=True
        )

    def test_top_n_clamped_low(self, client: TestClient, service: AsyncMock) -> None:
        client.get("/api/opportunities?topN=0")
        assert service.rank.await_args.kwargs["top_n"] == 1

    def test_cached_snapshot_served(self, client: TestClient, service: AsyncMock) -> None:
        service.cached_snapshot.return_value = {
            "asOf": "2024-05-01T00:00:00.000Z",
            "data": [{"coin": "ETH"}],
        }

        body = client.get("/api/opportunities").json()

        assert body == {
            "ok": True,
            "asOf": "2024-05-01T00:00:00.000Z",
            "data": [{"coin": "ETH"}],
        }
        service.rank.assert_not_awaited()

    def test_empty_cache_falls_through(self, client: TestClient, service: AsyncMock) -> None:
        service.cached_snapshot.return_value = {"asOf": "x", "data": []}
        client.get("/api/opportunities")
        service.rank.assert_awaited_once()

    def test_max_loan_bypasses_cache(self, client: TestClient, service: AsyncMock) -> None:
        service.cached_snapshot.return_value = {"asOf": "x", "data": [{"coin": "ETH"}]}
        body = client.get("/api/opportunities?withMaxLoan=1").json()
        assert body["data"][0]["coin"] == "BTC"

    def test_debug_bypasses_cache(self, client: TestClient, service: AsyncMock) -> None:
        service.debug_summary.return_value = {"okxCount": 3, "gateCount": 4}

        body = client.get("/api/opportunities?debug=1").json()

        assert body["ok"] is True
        assert body["debug"] == {"okxCount": 3, "gateCount": 4}
        service.cached_snapshot.assert_not_awaited()
        service.rank.assert_not_awaited()

    def test_empty_ranking_is_ok(self, client: TestClient, service: AsyncMock) -> None:
        service.rank.return_value = []
        resp = client.get("/api/opportunities")
        assert resp.status_code == 200
        assert resp.json()["data"] == []

    def test_feed_failure_is_500(self, client: TestClient, service: AsyncMock) -> None:
        service.rank.side_effect = FeedUnavailableError("gate", "HTTP 503")

        resp = client.get("/api/opportunities")

        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "error": "gate feed unavailable: HTTP 503"}

    def test_unexpected_error_is_500(self, client: TestClient, service: AsyncMock) -> None:
        service.rank.side_effect = RuntimeError("boom")
        resp = client.get("/api/opportunities")
        assert resp.status_code == 500
        assert resp.json()["error"] == "boom"


class TestPoll:
    def test_returns_snapshot(self, client: TestClient, service: AsyncMock) -> None:
        service.poll.return_value = RankingSnapshot(data=(BTC,), as_of="2024-05-01T00:00:00.000Z")

        body = client.post("/api/poll").json()

        assert body["ok"] is True
        assert body["asOf"] == "2024-05-01T00:00:00.000Z"
        assert body["data"][0]["coin"] == "BTC"

    def test_failure_is_500(self, client: TestClient, service: AsyncMock) -> None:
        service.poll.side_effect = FeedUnavailableError("okx", "timeout")
        resp = client.post("/api/poll")
        assert resp.status_code == 500
        assert resp.json()["ok"] is False


class TestHealth:
    def test_reports_configured_collaborators(self, client: TestClient) -> None:
        body = client.get("/api/health").json()
        assert body == {"ok": True, "okxMaxLoan": True, "cache": True, "telegram": True}
