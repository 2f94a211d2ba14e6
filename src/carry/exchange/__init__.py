"""Exchange client layer -- OKX and Gate rate feeds via ccxt."""

from carry.exchange.client import RateFeed
from carry.exchange.gate_client import GateClient
from carry.exchange.okx_client import OkxClient

__all__ = ["GateClient", "OkxClient", "RateFeed"]
