"""
HTTP routes: badges, the donation page and the transaction APIs.

Handlers only validate query parameters, call into the services and
render; every failure is raised as a domain error and mapped to a status
code by the app's exception handlers.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, Response

from .. import __version__
from ..fetchers import BadRequestError, is_address
from ..processors import (
    RetentionPolicy,
    TaggedTransfer,
    compute_stats,
    format_amount,
    parse_units,
    summarize_network,
)
from ..rendering import (
    get_theme,
    render_dashboard,
    render_donate_badge,
    render_donation_page,
    render_stats_badge,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SVG_MEDIA_TYPE = "image/svg+xml"
MAX_PAGE_LIMIT = 1000
MAX_RECENT_LIMIT = 50
SUPPORTED_METHODS = ("pyusd",)


def get_services(request: Request):
    return request.app.state.services


def _require(value: Optional[str], message: str) -> str:
    if not value or not value.strip():
        raise BadRequestError(message)
    return value.strip()


def _svg(content: str, cache_seconds: int, services) -> Response:
    return Response(
        content=content,
        media_type=SVG_MEDIA_TYPE,
        headers={"Cache-Control": services.config.server.cache_header(cache_seconds)},
    )


def _page_bounds(limit: int, offset: int, cap: int) -> Tuple[int, int]:
    if limit < 1:
        raise BadRequestError("limit must be a positive integer")
    if offset < 0:
        raise BadRequestError("offset must not be negative")
    return min(limit, cap), offset


def _validate_amount(amount: str, decimals: int) -> str:
    try:
        parse_units(amount, decimals)
    except ValueError:
        raise BadRequestError(f"Invalid amount: {amount}")
    return amount


async def _resolve_subject(services, ens: Optional[str], address: Optional[str]) -> Tuple[str, Optional[str]]:
    """Address and display name from an ``ens`` or ``address`` query value."""
    node = services.node

    if ens:
        resolved = await node.resolve_target(ens)
        return resolved, None if is_address(ens) else ens

    if address:
        if not is_address(address):
            raise BadRequestError("Invalid ENS name or address format")
        resolved = await node.resolve_target(address)
        logger.info(f"📍 Using provided address: {resolved}")
        display_name = await node.lookup_name(resolved)
        if display_name:
            logger.info(f"📍 Resolved ENS: {display_name}")
        return resolved, display_name

    raise BadRequestError("Either ENS name or address is required")


def _pagination(total: int, limit: int, offset: int) -> Dict[str, Any]:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasMore": total > offset + limit,
    }


# ── Health ───────────────────────────────────────────────────────────────
@router.get("/")
async def health_check(services=Depends(get_services)):
    return {
        "message": "GitPay API is running!",
        "version": __version__,
        "network": services.config.chains.NETWORK,
        "endpoints": [
            "GET /api/ens-stats?ens=yourname.eth",
            "GET /api/donate?ens=yourname.eth&amount=10",
            "GET /donate?ens=yourname.eth&amount=10&memo=thanks",
            "GET /api/dashboard?ens=yourname.eth",
            "GET /api/transactions - Get all GitPay transactions",
            "GET /api/transactions/:address - Get transactions for specific address",
            "GET /api/transactions/stats - Get transaction statistics",
            "GET /api/transactions/recent - Get recent transactions",
            "GET /api/debug?address=0x... - Classification of every token transfer",
        ],
    }


# ── Badges ───────────────────────────────────────────────────────────────
@router.get("/api/ens-stats")
async def ens_stats(
    ens: Optional[str] = None,
    style: str = "light",
    services=Depends(get_services),
):
    ens = _require(ens, "ENS name is required")
    theme = get_theme(style)
    chains = services.config.chains

    logger.info(f"🔍 Processing: {ens}")
    address = await services.node.resolve_target(ens)

    balance = await services.node.get_token_balance(address, chains.token_address)
    logger.info(f"💵 {chains.TOKEN_SYMBOL} balance for {address}: {format_amount(balance)}")

    svg = render_stats_badge(ens, address, balance, chains.TOKEN_SYMBOL, theme, chains.explorer_url)
    return _svg(svg, services.config.server.STATS_CACHE_SECONDS, services)


@router.get("/api/donate")
async def donate_badge(
    ens: Optional[str] = None,
    amount: Optional[str] = None,
    method: str = "pyusd",
    style: str = "light",
    services=Depends(get_services),
):
    ens = _require(ens, "ENS name is required")
    theme = get_theme(style)
    if method not in SUPPORTED_METHODS:
        raise BadRequestError('Invalid method. Use "pyusd"')

    chains = services.config.chains
    amount = _validate_amount(amount or services.config.server.DEFAULT_DONATION_AMOUNT, chains.TOKEN_DECIMALS)
    address = await services.node.resolve_target(ens)

    svg = render_donate_badge(ens, address, amount, chains.TOKEN_SYMBOL, theme)
    return _svg(svg, services.config.server.STATS_CACHE_SECONDS, services)


@router.get("/donate", response_class=HTMLResponse)
async def donation_page(
    ens: Optional[str] = None,
    amount: Optional[str] = None,
    memo: Optional[str] = None,
    services=Depends(get_services),
):
    ens = _require(ens, "ENS name is required")
    config = services.config
    amount = _validate_amount(amount or config.server.DEFAULT_DONATION_AMOUNT, config.chains.TOKEN_DECIMALS)
    address = await services.node.resolve_target(ens)

    html = render_donation_page(
        name=ens,
        address=address,
        amount=amount,
        memo=(memo or "").strip() or None,
        token=config.get_token_config(),
        chain=config.get_wallet_chain_config(),
    )
    return HTMLResponse(content=html)


@router.get("/api/dashboard")
async def dashboard(
    ens: Optional[str] = None,
    address: Optional[str] = None,
    services=Depends(get_services),
):
    subject, display_name = await _resolve_subject(services, ens, address)
    transfer_config = services.config.transfers

    logger.info(f"📊 Fetching transactions for address: {subject}")
    transfers = await services.aggregator.fetch_tagged_transfers(
        subject,
        limit=transfer_config.LOOKUP_LIMIT,
        display_limit=transfer_config.LOOKUP_LIMIT,
    )
    stats = compute_stats(transfers, subject)
    symbol = services.config.chains.TOKEN_SYMBOL
    logger.info(
        f"📊 Stats: Received {format_amount(stats.total_received)} {symbol} ({stats.received_count} txns), "
        f"Donated {format_amount(stats.total_donated)} {symbol} ({stats.donated_count} txns)"
    )

    recent = transfers[: transfer_config.DASHBOARD_LIMIT]
    counterparts = [a for tx in recent for a in (tx.from_address, tx.recipient)]
    names = await services.node.lookup_names(counterparts, batch_size=transfer_config.NAME_BATCH_SIZE)

    svg = render_dashboard(subject, stats, display_name, recent, names, symbol)
    return _svg(svg, services.config.server.DASHBOARD_CACHE_SECONDS, services)


# ── Transaction APIs ─────────────────────────────────────────────────────
async def _network_feed(services, count: int) -> List[TaggedTransfer]:
    transfer_config = services.config.transfers
    feed = await services.aggregator.fetch_recent_network_transfers(
        block_window=transfer_config.RECENT_BLOCK_WINDOW,
        limit=transfer_config.MAX_TRANSFERS,
    )
    return feed[:count]


@router.get("/api/transactions")
async def transactions(limit: int = 100, offset: int = 0, services=Depends(get_services)):
    limit, offset = _page_bounds(limit, offset, MAX_PAGE_LIMIT)
    logger.info("🔍 Fetching GitPay transactions...")

    feed = await _network_feed(services, services.config.transfers.MAX_TRANSFERS)
    page = feed[offset:offset + limit]
    return {
        "success": True,
        "data": {
            "transactions": [tx.to_dict() for tx in page],
            "pagination": _pagination(len(feed), limit, offset),
        },
    }


@router.get("/api/transactions/stats")
async def transaction_stats(services=Depends(get_services)):
    logger.info("📊 Fetching GitPay transaction statistics...")
    feed = await _network_feed(services, services.config.transfers.MAX_TRANSFERS)
    return {"success": True, "data": summarize_network(feed).to_dict()}


@router.get("/api/transactions/recent")
async def recent_transactions(limit: int = 10, services=Depends(get_services)):
    limit, _ = _page_bounds(limit, 0, MAX_RECENT_LIMIT)
    logger.info("🕒 Fetching recent GitPay transactions...")

    feed = await _network_feed(services, limit)
    return {
        "success": True,
        "data": {"transactions": [tx.to_dict() for tx in feed], "count": len(feed)},
    }


@router.get("/api/transactions/{address}")
async def transactions_by_address(
    address: str,
    limit: int = 100,
    offset: int = 0,
    services=Depends(get_services),
):
    if not is_address(address):
        raise BadRequestError("Address parameter must be a 0x-prefixed 20-byte address")
    limit, offset = _page_bounds(limit, offset, MAX_PAGE_LIMIT)
    lookup_limit = services.config.transfers.LOOKUP_LIMIT

    logger.info(f"🔍 Fetching GitPay transactions for address: {address}")
    transfers = await services.aggregator.fetch_tagged_transfers(
        address, limit=lookup_limit, display_limit=lookup_limit
    )
    page = transfers[offset:offset + limit]
    return {
        "success": True,
        "data": {
            "address": address,
            "transactions": [tx.to_dict() for tx in page],
            "stats": compute_stats(transfers, address).to_dict(),
            "pagination": _pagination(len(transfers), limit, offset),
        },
    }


# ── Debug ────────────────────────────────────────────────────────────────
@router.get("/api/debug")
async def debug(
    ens: Optional[str] = None,
    address: Optional[str] = None,
    services=Depends(get_services),
):
    subject, display_name = await _resolve_subject(services, ens, address)
    transfer_config = services.config.transfers
    transfers = await services.aggregator.fetch_tagged_transfers(
        subject,
        limit=transfer_config.LOOKUP_LIMIT,
        display_limit=transfer_config.LOOKUP_LIMIT,
        retention=RetentionPolicy.ALL,
    )
    return {
        "address": subject,
        "ensName": display_name,
        "tokenAddress": services.config.chains.token_address,
        "tagMatchMode": services.aggregator.classifier.mode.value,
        "tokenTransfers": len(transfers),
        "taggedTransfers": sum(1 for tx in transfers if tx.is_tagged),
        "detailedTransfers": [tx.to_dict() for tx in transfers],
    }
