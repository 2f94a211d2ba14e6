"""Entry point for the OKX x Gate APR spread service.

Wires all components together and serves the API with uvicorn. When
POLL_ENABLED (default) a background loop refreshes the cached snapshot and
sends spread alerts; both share one asyncio event loop via FastAPI's
lifespan context manager.

Component wiring order (in build_service):
1. OkxClient (borrow feed + max-loan lookup)
2. GateClient (earn feed)
3. UpstashCache (snapshot sink, no-op when unconfigured)
4. TelegramNotifier (alert sink, no-op when unconfigured)
5. OpportunityRanker
6. SpreadService
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from carry.api.app import create_app
from carry.cache.upstash import UpstashCache
from carry.config import AppSettings
from carry.exchange.gate_client import GateClient
from carry.exchange.okx_client import OkxClient
from carry.logging import get_logger, setup_logging
from carry.notify.telegram import TelegramNotifier
from carry.poller import SnapshotPoller
from carry.rates.ranker import OpportunityRanker
from carry.service import SpreadService


def build_service(settings: AppSettings) -> SpreadService:
    """Build the service and its collaborators from settings."""
    logger = get_logger("carry.main")

    for name, configured in (
        ("okx_max_loan", settings.okx.is_configured),
        ("upstash_cache", settings.cache.is_configured),
        ("telegram", settings.telegram.is_configured),
    ):
        if not configured:
            logger.warning("collaborator_not_configured", collaborator=name)

    return SpreadService(
        settings=settings,
        okx=OkxClient(settings.okx),
        gate=GateClient(),
        cache=UpstashCache(settings.cache),
        notifier=TelegramNotifier(settings.telegram),
        ranker=OpportunityRanker(settings.ranking),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the poll loop on startup; stop it and close sessions on shutdown."""
    logger = get_logger("carry.main")
    settings: AppSettings = app.state.settings
    service: SpreadService = app.state.service

    poller = None
    if settings.poll.enabled:
        poller = SnapshotPoller(service, interval=settings.poll.interval_seconds)
        await poller.start()
    app.state.poller = poller

    logger.info("lifespan_started", poll_enabled=settings.poll.enabled)

    yield

    if poller is not None:
        await poller.stop()
    await service.close()

    logger.info("spread_service_stopped")


async def run() -> None:
    """Run the API server (and poll loop) until interrupted."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("carry.main")

    service = build_service(settings)
    app = create_app(settings, service, lifespan=lifespan)

    logger.info("starting_api", host=settings.api.host, port=settings.api.port)

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
