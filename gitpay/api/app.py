"""
FastAPI application factory for the GitPay badge service.

Services (config, fetchers, aggregator) are built once per app and kept
on ``app.state.services``; routes receive them through a dependency so
tests can pass fakes to ``create_app``.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import ConfigManager, get_config
from ..fetchers import (
    AlchemyFetcher,
    BadRequestError,
    ChainFetcher,
    FetchConfig,
    NotFoundError,
    UpstreamError,
)
from ..processors import TransferAggregator, TransferClassifier
from .routes import router

logger = logging.getLogger(__name__)


@dataclass
class GitPayServices:
    """Everything a request handler needs, wired once per application."""

    config: ConfigManager
    indexer: AlchemyFetcher
    node: ChainFetcher
    aggregator: TransferAggregator

    @classmethod
    def from_config(cls, config: Optional[ConfigManager] = None) -> "GitPayServices":
        """
        Build the service graph from configuration.

        Raises:
            ConfigError: If no RPC endpoint is configured
        """
        config = config or get_config()
        config.validate_configuration()

        chains = config.chains
        transfers = config.transfers
        fetch_config = FetchConfig(
            max_retries=chains.MAX_RETRY_ATTEMPTS,
            retry_delay=chains.RETRY_DELAY_SECONDS,
            timeout=chains.REQUEST_TIMEOUT_SECONDS,
        )

        indexer = AlchemyFetcher(chains.rpc_url, fetch_config)
        node = ChainFetcher(chains.rpc_url, fetch_config)
        aggregator = TransferAggregator(
            indexer=indexer,
            node=node,
            classifier=TransferClassifier(transfers.TAG_MATCH_MODE),
            token_address=chains.token_address,
            decimals=chains.TOKEN_DECIMALS,
            lookup_concurrency=transfers.LOOKUP_CONCURRENCY,
            display_limit=transfers.DISPLAY_LIMIT,
            max_transfers=transfers.MAX_TRANSFERS,
            retention=transfers.RETENTION_POLICY,
        )
        return cls(config=config, indexer=indexer, node=node, aggregator=aggregator)

    async def close(self) -> None:
        await self.indexer.close()
        await self.node.close()


def _error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BadRequestError)
    async def bad_request_handler(request: Request, exc: BadRequestError):
        return _error_response(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error_response(404, str(exc))

    @app.exception_handler(UpstreamError)
    async def upstream_handler(request: Request, exc: UpstreamError):
        logger.error(f"❌ Upstream failure on {request.url.path}: {exc}")
        return _error_response(500, "Internal server error", str(exc))

    @app.exception_handler(Exception)
    async def unexpected_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Unexpected error on {request.url.path}: {exc}")
        return _error_response(500, "Internal server error", str(exc))


def create_app(services: Optional[GitPayServices] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        services: Pre-built services; when omitted they are built from
            ``get_config()`` and closed on shutdown

    Returns:
        Configured FastAPI app
    """
    owns_services = services is None
    services = services or GitPayServices.from_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"🚀 GitPay API starting on network {services.config.chains.NETWORK} "
            f"(token {services.config.chains.token_address})"
        )
        yield
        if owns_services:
            await services.close()
        logger.info("👋 Shutdown complete")

    app = FastAPI(title="GitPay API", version=__version__, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=services.config.server.CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    _register_exception_handlers(app)

    app.include_router(router)
    return app
