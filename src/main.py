"""FastAPI application entry point.

Run with: uvicorn src.main:app --port 8000
A second local node: NODE_URL=http://localhost:8001 KNOWN_PEERS='["http://localhost:8000"]' \
    LEDGER_BACKEND=memory uvicorn src.main:app --port 8001
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.kl_admin.api.router import router as admin_router
from src.kl_chain.api.router import router as ledger_router
from src.kl_common.errors import AppError, BlockRejectedError, InternalError, RecordValidationError
from src.kl_common.redis_client import redis_handle
from src.kl_common.response import error_response
from src.kl_custody.api.router import router as custody_router
from src.kl_gateway.api.router import router as auth_router
from src.kl_gateway.middleware.rate_limit import RateLimitMiddleware
from src.kl_gateway.middleware.request_log import RequestLogMiddleware
from src.kl_gossip.api.router import router as nodes_router
from src.kl_market.api.router import router as market_router
from src.kl_positions.api.router import router as positions_router
from src.node import LedgerNode, build_node

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


async def _start_node(node: LedgerNode) -> None:
    """Catch up from known peers, then announce ourselves to them."""
    peer = await node.gossip.initialize_sync(node.settings.KNOWN_PEERS)
    blocks = len(await node.chain.get_full_chain())
    logger.info("Node %s ready with %d block(s) (synced from %s)", node.settings.NODE_URL, blocks, peer)
    if node.gossip.peers():
        await node.gossip.announce(node.settings.NODE_URL)


def create_app(node: LedgerNode | None = None, rate_limit: bool | None = None) -> FastAPI:
    """Build the app. With `node` given the app serves it as-is (tests);
    otherwise a node is built from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        owned = getattr(app.state, "node", None) is None
        if owned:
            app.state.node = build_node(settings)
            if settings.LEDGER_BACKEND == "sql":
                from src.kl_common.database import engine

                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
        await _start_node(app.state.node)
        yield
        await app.state.node.gossip.close()
        if owned and settings.LEDGER_BACKEND == "sql":
            from src.kl_common.database import engine

            await engine.dispose()
        await redis_handle.close()

    app = FastAPI(title=settings.APP_NAME, version=APP_VERSION, lifespan=lifespan)
    if node is not None:
        app.state.node = node

    if rate_limit is None:
        rate_limit = settings.RATE_LIMIT_ENABLED
    app.state.rate_limit = rate_limit
    if rate_limit:
        app.add_middleware(
            RateLimitMiddleware,
            redis_factory=redis_handle.get,
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
            login_max=settings.RATE_LIMIT_LOGIN_MAX,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )
    # Added last so it runs first and request_id exists for the limiter.
    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        data = None
        if isinstance(exc, RecordValidationError):
            data = {"errors": exc.errors}
        elif isinstance(exc, BlockRejectedError):
            data = {"reason": exc.reason}
        resp = error_response(exc.code, exc.message, data)
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
        return JSONResponse(status_code=exc.http_status, content=resp.model_dump())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        err = InternalError()
        resp = error_response(err.code, err.message)
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
        return JSONResponse(status_code=err.http_status, content=resp.model_dump())

    for router in (
        auth_router,
        ledger_router,
        custody_router,
        nodes_router,
        market_router,
        positions_router,
        admin_router,
    ):
        app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        current: LedgerNode | None = getattr(request.app.state, "node", None)
        blocks = len(await current.chain.get_full_chain()) if current else 0
        peers = len(current.gossip.peers()) if current else 0
        if request.app.state.rate_limit:
            limiter = "up" if await redis_handle.ping() else "down"
        else:
            limiter = "disabled"
        return {
            "status": "ok",
            "version": APP_VERSION,
            "blocks": blocks,
            "peers": peers,
            "rate_limiter": limiter,
        }

    return app


app = create_app()
