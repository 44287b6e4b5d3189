"""
Pytest configuration and fixtures.
"""
from decimal import Decimal
from typing import List
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from database import build_engine, build_session_factory, init_db
from dependencies import GatewayContext
from main import create_app
from services.dedup_ledger import InMemoryDedupLedger, SqlDedupLedger
from services.invoice_store import InMemoryInvoiceStore, SqlInvoiceStore
from services.tag_allocator import TagAllocator
from services.transfer_feed import Transfer, TransferFeed

GATEWAY_ADDRESS = "0x5B38Da6a701c568545dCfcB03FcB875f56beddC4"
OTHER_ADDRESS = "0xAb8483F64d9C6d1EcF9b849Ae677dD3315835cb2"
TOKEN_ADDRESS = "0x55d398326f99059fF775485246999027B3197955"
DECIMALS = 18
API_KEY = "test-api-key"


class FakeFeed(TransferFeed):
    """In-memory feed returning whatever page the test sets."""

    def __init__(self, transfers: List[Transfer] = None):
        self.transfers = list(transfers or [])
        self.calls = 0

    def fetch_incoming(self, limit: int = 50) -> List[Transfer]:
        self.calls += 1
        return list(self.transfers[:limit])


def make_transfer(
    tx_hash: str,
    amount: str,
    to_address: str = GATEWAY_ADDRESS,
    decimals: int = DECIMALS,
    contract_address: str = TOKEN_ADDRESS,
    timestamp: int = 1_700_000_000,
) -> Transfer:
    """Build a transfer whose raw value is exactly `amount` * 10**decimals."""
    raw = int(Decimal(amount).scaleb(decimals))
    return Transfer(
        tx_hash=tx_hash,
        from_address=OTHER_ADDRESS,
        to_address=to_address,
        value=raw,
        timestamp=timestamp,
        contract_address=contract_address,
    )


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def sql_store(session_factory):
    return SqlInvoiceStore(session_factory)


@pytest.fixture
def sql_ledger(session_factory):
    return SqlDedupLedger(session_factory)


@pytest.fixture(params=["memory", "sql"])
def store(request, session_factory):
    """Runs a test against both invoice store implementations."""
    if request.param == "memory":
        return InMemoryInvoiceStore()
    return SqlInvoiceStore(session_factory)


@pytest.fixture(params=["memory", "sql"])
def ledger(request, session_factory):
    """Runs a test against both dedup ledger implementations."""
    if request.param == "memory":
        return InMemoryDedupLedger()
    return SqlDedupLedger(session_factory)


@pytest.fixture
def allocator():
    return TagAllocator(Decimal("0.001"), Decimal("0.099"))


@pytest.fixture
def feed():
    return FakeFeed()


@pytest.fixture
def chain():
    chain = MagicMock()
    chain.address = GATEWAY_ADDRESS
    chain.token_address = TOKEN_ADDRESS
    return chain


@pytest.fixture
def gateway(sql_store, sql_ledger, allocator, chain):
    return GatewayContext(
        store=sql_store,
        ledger=sql_ledger,
        allocator=allocator,
        chain=chain,
        address=GATEWAY_ADDRESS,
        token_address=TOKEN_ADDRESS,
        decimals=DECIMALS,
        poll_ms=12000,
    )


@pytest.fixture
def client(gateway):
    """HTTP client against an app wired to the in-memory SQLite gateway."""
    app = create_app(gateway=gateway, api_key=API_KEY)
    with TestClient(app, headers={"x-api-key": API_KEY}) as test_client:
        yield test_client
