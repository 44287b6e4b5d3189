import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

import config
from database import SessionLocal, init_db
from dependencies import GatewayContext
from logging_config import configure_logging
from routers import invoices_router, wallet_router
from services.chain_client import ChainClient
from services.dedup_ledger import SqlDedupLedger
from services.invoice_store import SqlInvoiceStore
from services.reconciler import ReconciliationLoop, Reconciler
from services.tag_allocator import TagAllocator
from services.transfer_feed import BscScanFeed

configure_logging()
logger = logging.getLogger("gateway.main")


def build_gateway() -> GatewayContext:
    """
    Wire the production gateway from environment settings.

    Raises ConfigError on missing settings; this is the only fatal error.
    """
    config.validate_settings()
    init_db()

    chain = ChainClient(
        rpc_url=config.RPC_HTTP,
        private_key=config.HOT_WALLET_PRIVATE_KEY,
        token_address=config.USDT_CONTRACT,
        fallback_decimals=config.DEFAULT_TOKEN_DECIMALS,
    )
    decimals = chain.read_decimals()
    allocator = TagAllocator(config.TAG_STEP, config.TAG_MAX)
    store = SqlInvoiceStore(SessionLocal)
    ledger = SqlDedupLedger(SessionLocal)

    feed = BscScanFeed(
        api_key=config.BSCSCAN_API_KEY,
        address=chain.address,
        contract_address=chain.token_address,
        base_url=config.BSCSCAN_API_URL,
        timeout=config.FEED_TIMEOUT_SECONDS,
    )
    reconciler = Reconciler(
        store=store,
        ledger=ledger,
        feed=feed,
        gateway_address=chain.address,
        decimals=decimals,
        token_address=chain.token_address,
        page_size=config.FEED_PAGE_SIZE,
        retention=timedelta(days=config.DEDUP_RETENTION_DAYS),
    )

    logger.info(f"Gateway address: {chain.address}")
    logger.info(f"Token {chain.token_address} decimals: {decimals}, tag capacity: {allocator.capacity}")

    return GatewayContext(
        store=store,
        ledger=ledger,
        allocator=allocator,
        chain=chain,
        address=chain.address,
        token_address=chain.token_address,
        decimals=decimals,
        poll_ms=config.POLL_MS,
        loop=ReconciliationLoop(reconciler, poll_ms=config.POLL_MS),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if app.state.gateway is None:
        app.state.gateway = await asyncio.get_running_loop().run_in_executor(None, build_gateway)

    gateway: GatewayContext = app.state.gateway
    if gateway.loop is not None:
        gateway.loop.start()
    try:
        yield
    finally:
        if gateway.loop is not None:
            await gateway.loop.stop()


def create_app(gateway: Optional[GatewayContext] = None, api_key: Optional[str] = None) -> FastAPI:
    app = FastAPI(title="Stable-coin Invoice Gateway", lifespan=lifespan)
    app.state.gateway = gateway
    app.state.api_key = config.API_KEY if api_key is None else api_key

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "USDT gateway running"

    app.include_router(invoices_router)
    app.include_router(wallet_router)

    # Body validation errors are client errors, reported as 400
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    # 500 fallback middleware
    @app.middleware("http")
    async def fallback_middleware(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
        return response

    return app


# Module-level app for uvicorn
app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT, log_level=config.LOG_LEVEL.lower())
