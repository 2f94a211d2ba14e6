"""JSON API endpoints: ranked opportunities, manual poll, health."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from carry.exceptions import CarryError
from carry.logging import get_logger
from carry.models import now_iso
from carry.rates.ranker import clamp_top_n

log = get_logger(__name__)

router = APIRouter()

_NO_STORE = {"cache-control": "no-store"}


def _json(status: int, content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status, content=content, headers=_NO_STORE)


def _error(e: Exception) -> JSONResponse:
    return _json(500, {"ok": False, "error": str(e) or e.__class__.__name__})


def parse_top_n(raw: str | None, default: int) -> int | None:
    """Parse the topN query value. Blank or non-numeric input yields default."""
    if raw is None or not raw.strip():
        return default
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return default


def parse_allowlist(raw: str | None) -> set[str] | None:
    """Parse a comma-separated allow-list. Empty input means no restriction."""
    coins = {c.strip().upper() for c in (raw or "").split(",")}
    coins.discard("")
    return coins or None


@router.get("/opportunities")
async def get_opportunities(
    request: Request,
    top_n: str | None = Query(None, alias="topN"),
    allow: str | None = Query(None),
    with_max_loan: str | None = Query(None, alias="withMaxLoan"),
    debug: str | None = Query(None),
) -> JSONResponse:
    """Ranked OKX borrow -> Gate earn opportunities.

    Serves the cached poll snapshot when one exists, unless debug=1 or
    withMaxLoan=1 asks for live data.
    """
    service = request.app.state.service
    ranking = request.app.state.settings.ranking

    limit = clamp_top_n(parse_top_n(top_n, ranking.default_top_n), ranking)
    allowlist = parse_allowlist(allow)
    enrich = with_max_loan == "1"

    try:
        if debug == "1":
            summary = await service.debug_summary()
            return _json(200, {"ok": True, "asOf": now_iso(), "debug": summary})

        cached = await service.cached_snapshot()
        if cached and cached.get("data") and not enrich:
            return _json(200, {"ok": True, **cached})

        opportunities = await service.rank(
            top_n=limit, allowlist=allowlist, with_max_loan=enrich
        )
    except CarryError as e:
        log.warning("ranking_failed", error=str(e))
        return _error(e)
    except Exception as e:
        log.error("ranking_crashed", exc_info=True)
        return _error(e)

    return _json(
        200,
        {"ok": True, "asOf": now_iso(), "data": [o.to_dict() for o in opportunities]},
    )


@router.post("/poll")
async def run_poll(request: Request) -> JSONResponse:
    """Run one poll cycle now and return the stored snapshot."""
    try:
        snapshot = await request.app.state.service.poll()
    except CarryError as e:
        log.warning("poll_failed", error=str(e))
        return _error(e)
    except Exception as e:
        log.error("poll_crashed", exc_info=True)
        return _error(e)

    return _json(200, {"ok": True, **snapshot.to_dict()})


@router.get("/health")
async def get_health(request: Request) -> JSONResponse:
    """Which optional collaborators are configured."""
    settings = request.app.state.settings
    return _json(
        200,
        {
            "ok": True,
            "okxMaxLoan": settings.okx.is_configured,
            "cache": settings.cache.is_configured,
            "telegram": settings.telegram.is_configured,
        },
    )
