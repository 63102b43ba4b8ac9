"""LedgerNode — one node's wiring of stores, engines and services.

Every node owns its own chain, peer registry, markets and user directory;
nothing is module-global, so several nodes can run in one process (tests
start two or three side by side).

Routers reach the node through `get_node`, which reads it from
`request.app.state.node`.
"""

from dataclasses import dataclass

from starlette.requests import Request

from config.settings import Settings
from src.kl_admin.application.audit_log import AuditLog
from src.kl_admin.application.service import AdminService
from src.kl_chain.application.service import ChainEngine
from src.kl_chain.domain.repository import BlockStoreProtocol
from src.kl_chain.infrastructure.memory_store import InMemoryBlockStore
from src.kl_custody.application.service import CustodyService
from src.kl_custody.domain.signer import EcdsaSigner
from src.kl_gateway.user.service import UserService
from src.kl_gossip.application.service import GossipService, PeerClientProtocol
from src.kl_gossip.infrastructure.peer_client import HttpPeerClient
from src.kl_market.application.service import MarketEngine
from src.kl_positions.application.service import PositionLedger


@dataclass
class LedgerNode:
    settings: Settings
    chain: ChainEngine
    gossip: GossipService
    custody: CustodyService
    markets: MarketEngine
    positions: PositionLedger
    users: UserService
    audit_log: AuditLog
    admin: AdminService


def _default_store(cfg: Settings) -> BlockStoreProtocol:
    if cfg.LEDGER_BACKEND == "memory":
        return InMemoryBlockStore()
    if cfg.LEDGER_BACKEND == "sql":
        # Imported lazily: creating the engine needs the asyncpg driver.
        from src.kl_chain.infrastructure.persistence import SqlBlockStore
        from src.kl_common.database import async_session_factory

        return SqlBlockStore(async_session_factory)
    raise ValueError(f"Unknown LEDGER_BACKEND: {cfg.LEDGER_BACKEND!r}")


def build_node(
    cfg: Settings,
    store: BlockStoreProtocol | None = None,
    peer_client: PeerClientProtocol | None = None,
    signer: EcdsaSigner | None = None,
) -> LedgerNode:
    """Assemble a node. Anything not passed in is built from `cfg`."""
    client = peer_client or HttpPeerClient(timeout=cfg.GOSSIP_TIMEOUT_SECONDS)
    chain = ChainEngine(
        store if store is not None else _default_store(cfg),
        peer_source=client,
        sync_timeout=cfg.SYNC_TIMEOUT_SECONDS,
    )
    gossip = GossipService(chain, client, push_timeout=cfg.GOSSIP_TIMEOUT_SECONDS)
    custody = CustodyService(
        chain,
        gossip,
        signer or EcdsaSigner.load_or_create(cfg.SIGNING_KEY_PATH),
        temperature_min=cfg.TEMPERATURE_MIN_C,
        temperature_max=cfg.TEMPERATURE_MAX_C,
    )
    positions = PositionLedger(starting_credits=cfg.STARTING_CREDITS)
    markets = MarketEngine(positions, initial_liquidity=cfg.MARKET_INITIAL_LIQUIDITY)
    users = UserService()
    users.seed_admin(cfg.DEFAULT_ADMIN_EMAIL, cfg.DEFAULT_ADMIN_PASSWORD)
    audit_log = AuditLog()
    return LedgerNode(
        settings=cfg,
        chain=chain,
        gossip=gossip,
        custody=custody,
        markets=markets,
        positions=positions,
        users=users,
        audit_log=audit_log,
        admin=AdminService(chain, markets, users, audit_log),
    )


def get_node(request: Request) -> LedgerNode:
    return request.app.state.node
