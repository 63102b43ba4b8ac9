"""Admin application service: market resolution, kit rollback, user moderation.

Each action is written to the audit trail after it succeeds.
"""

from typing import Any

from src.kl_admin.application.audit_log import AuditLog
from src.kl_chain.application.service import ChainEngine
from src.kl_common.enums import Outcome, UserRole, UserStatus
from src.kl_gateway.user.models import User
from src.kl_gateway.user.service import UserService
from src.kl_market.application.service import MarketEngine


class AdminService:
    def __init__(
        self,
        chain: ChainEngine,
        markets: MarketEngine,
        users: UserService,
        audit_log: AuditLog,
    ) -> None:
        self._chain = chain
        self._markets = markets
        self._users = users
        self._audit = audit_log

    async def resolve_market(self, market_id: str, outcome: Outcome, actor: str) -> dict[str, Any]:
        """Resolve then settle in one admin action."""
        market = await self._markets.resolve(market_id, outcome)
        settled = await self._markets.settle(market_id)
        self._audit.record(
            "MARKET_RESOLVED", actor, f"market={market_id} outcome={outcome.value} settled={settled}"
        )
        return {
            "market_id": market.market_id,
            "winning_outcome": outcome.value,
            "resolved_at": market.resolved_at,
            "positions_settled": settled,
        }

    async def rollback_kit(self, kit_id: str, actor: str) -> dict[str, Any]:
        removed = await self._chain.rollback_subject(kit_id)
        remaining = len(await self._chain.get_history(kit_id))
        self._audit.record("KIT_ROLLBACK", actor, f"kit={kit_id} block={removed.index}")
        return {
            "kit_id": kit_id,
            "removed_block_index": removed.index,
            "removed_block_hash": removed.hash,
            "remaining_records": remaining,
        }

    def pending_users(self) -> list[User]:
        return self._users.list_pending()

    def approve_user(self, user_id: str, role: UserRole | None, actor: str) -> User:
        user = self._users.approve(user_id, role)
        self._audit.record("USER_APPROVED", actor, f"user={user.email} role={user.role.value}")
        return user

    def set_user_status(self, user_id: str, status: UserStatus, actor: str) -> User:
        user = self._users.set_status(user_id, status)
        self._audit.record("USER_STATUS", actor, f"user={user.email} status={status.value}")
        return user

    def set_user_role(self, user_id: str, role: UserRole, actor: str) -> User:
        user = self._users.set_role(user_id, role)
        self._audit.record("USER_ROLE", actor, f"user={user.email} role={role.value}")
        return user

    def recent_events(self, limit: int) -> list[dict[str, str]]:
        return self._audit.recent(limit)
