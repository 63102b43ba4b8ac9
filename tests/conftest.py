"""Shared test fixtures.

Settings are read at import time, so the environment is prepared before any
project module is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("LEDGER_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("KNOWN_PEERS", "[]")

from collections.abc import AsyncIterator, Callable  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from config.settings import settings  # noqa: E402
from src.kl_chain.infrastructure.memory_store import InMemoryBlockStore  # noqa: E402
from src.kl_custody.domain.signer import EcdsaSigner  # noqa: E402
from src.main import create_app  # noqa: E402
from src.node import LedgerNode, build_node  # noqa: E402
from tests.helpers import FakePeerClient, login_headers  # noqa: E402


@pytest.fixture(scope="session")
def signer() -> EcdsaSigner:
    return EcdsaSigner.generate()


@pytest.fixture
def make_node(signer: EcdsaSigner) -> Callable[..., LedgerNode]:
    def _make(**kwargs: Any) -> LedgerNode:
        kwargs.setdefault("store", InMemoryBlockStore())
        kwargs.setdefault("peer_client", FakePeerClient())
        kwargs.setdefault("signer", signer)
        return build_node(settings, **kwargs)

    return _make


@pytest.fixture
def node(make_node: Callable[..., LedgerNode]) -> LedgerNode:
    return make_node()


@pytest.fixture
async def client(node: LedgerNode) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to an in-memory node (no DB, no Redis)."""
    app = create_app(node=node, rate_limit=False)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    return await login_headers(client, settings.DEFAULT_ADMIN_EMAIL, settings.DEFAULT_ADMIN_PASSWORD)
