"""Shared test fixtures for the spread service."""

import pytest

from carry.config import (
    AlertSettings,
    AppSettings,
    CacheSettings,
    OkxSettings,
    PollSettings,
    RankingSettings,
    TelegramSettings,
)
from carry.rates.ranker import OpportunityRanker


@pytest.fixture
def ranking_settings() -> RankingSettings:
    """Default bounds, no delay between max-loan lookups."""
    return RankingSettings(max_loan_delay_seconds=0)


@pytest.fixture
def ranker(ranking_settings: RankingSettings) -> OpportunityRanker:
    return OpportunityRanker(ranking_settings)


@pytest.fixture
def mock_settings(ranking_settings: RankingSettings) -> AppSettings:
    """AppSettings with every optional collaborator configured."""
    return AppSettings(
        log_level="DEBUG",
        okx=OkxSettings(
            api_key="test-api-key",  # type: ignore[arg-type]
            api_secret="test-api-secret",  # type: ignore[arg-type]
            api_passphrase="test-passphrase",  # type: ignore[arg-type]
        ),
        cache=CacheSettings(
            url="https://cache.example.upstash.io",
            token="test-token",  # type: ignore[arg-type]
        ),
        telegram=TelegramSettings(
            bot_token="123:abc",  # type: ignore[arg-type]
            chat_id="42",
        ),
        alert=AlertSettings(spread_pct=0.0, max_rows=5),
        ranking=ranking_settings,
        poll=PollSettings(enabled=False, top_n=20),
    )


# ---------------------------------------------------------------------------
# Raw feed samples (shapes as returned by OKX and Gate)
# ---------------------------------------------------------------------------


@pytest.fixture
def raw_okx_rows() -> list[dict]:
    """Borrow rows: BTC 10.95%, ETH 7.30%, USDT 18.25%, DOGE 36.5% APR."""
    return [
        {"ccy": "BTC", "rate": "0.0003"},
        {"ccy": "ETH", "rate": "0.0002"},
        {"ccy": "USDT", "rate": "0.0005"},
        {"ccy": "DOGE", "rate": "0.001"},  # not on Gate
    ]


@pytest.fixture
def raw_gate_rows() -> list[dict]:
    """Earn rows: BTC 18.25%, ETH 21.90%, USDT 10.95% APR."""
    return [
        {"currency": "BTC", "max_rate": "0.0005", "min_rate": "0.0001"},
        {"currency": "ETH", "max_rate": "0.0006", "min_rate": "0.0001"},
        {"currency": "USDT", "max_rate": "0.0003", "min_rate": "0.0001"},
        {"currency": "SOL", "max_rate": "0.001", "min_rate": "0.0001"},  # not on OKX
    ]
