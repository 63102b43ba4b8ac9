"""Unit tests for AdminService and the audit trail."""

import logging

import pytest

from src.kl_admin.application.audit_log import AuditLog
from src.kl_admin.application.service import AdminService
from src.kl_chain.application.service import ChainEngine
from src.kl_chain.infrastructure.memory_store import InMemoryBlockStore
from src.kl_common.enums import MarketStatus, Outcome, UserRole, UserStatus
from src.kl_common.errors import MarketNotOpenError, SubjectNotFoundError
from src.kl_gateway.user.service import UserService
from src.kl_market.application.service import MarketEngine
from src.kl_positions.application.service import PositionLedger
from tests.helpers import kit_payloads, make_chain


def _make_admin(blocks=None) -> tuple[AdminService, MarketEngine, PositionLedger, UserService, AuditLog]:
    positions = PositionLedger()
    markets = MarketEngine(positions)
    users = UserService()
    audit = AuditLog()
    admin = AdminService(ChainEngine(InMemoryBlockStore(blocks)), markets, users, audit)
    return admin, markets, positions, users, audit


class TestAuditLog:
    def test_recent_is_newest_first(self) -> None:
        log = AuditLog()
        log.record("A", "admin@kitledger.org")
        log.record("B", "admin@kitledger.org", "detail")
        assert [e["action"] for e in log.recent(10)] == ["B", "A"]
        assert log.recent(1)[0]["detail"] == "detail"

    def test_capacity_bounds_memory(self) -> None:
        log = AuditLog(capacity=3)
        for i in range(5):
            log.record(f"E{i}", "admin")
        assert [e["action"] for e in log.recent(10)] == ["E4", "E3", "E2"]

    def test_zero_limit(self) -> None:
        log = AuditLog()
        log.record("A", "admin")
        assert log.recent(0) == []

    def test_events_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="kl.audit"):
            AuditLog().record("KIT_ROLLBACK", "admin@kitledger.org", "kit=KIT-1")
        assert "KIT_ROLLBACK by admin@kitledger.org kit=KIT-1" in caplog.text


class TestResolveMarket:
    async def test_resolves_settles_and_audits(self) -> None:
        admin, markets, positions, _, audit = _make_admin()
        await markets.create_market("M1", "Arrives?", "KIT-1", None, "admin")
        await markets.buy("M1", "alice", Outcome.YES, 200)
        await markets.buy("M1", "bob", Outcome.NO, 300)

        result = await admin.resolve_market("M1", Outcome.YES, "admin@kitledger.org")

        assert result["positions_settled"] == 2
        assert result["winning_outcome"] == "YES"
        assert markets.get_market("M1").status == MarketStatus.RESOLVED
        assert positions.positions("alice").stats.correct_predictions == 1
        assert audit.recent(1)[0]["action"] == "MARKET_RESOLVED"

    async def test_second_resolution_rejected(self) -> None:
        admin, markets, _, _, audit = _make_admin()
        await markets.create_market("M1", "Arrives?", "KIT-1", None, "admin")
        await admin.resolve_market("M1", Outcome.NO, "admin")
        with pytest.raises(MarketNotOpenError):
            await admin.resolve_market("M1", Outcome.YES, "admin")
        assert len(audit.recent(10)) == 1


class TestRollbackKit:
    async def test_removes_latest_block_for_kit(self) -> None:
        admin, _, _, _, audit = _make_admin(make_chain(kit_payloads("KIT-1", "KIT-2", "KIT-1")))

        result = await admin.rollback_kit("KIT-1", "admin@kitledger.org")

        assert result["removed_block_index"] == 2
        assert result["remaining_records"] == 1
        assert audit.recent(1)[0]["detail"] == "kit=KIT-1 block=2"

    async def test_unknown_kit_not_audited(self) -> None:
        admin, _, _, _, audit = _make_admin()
        with pytest.raises(SubjectNotFoundError):
            await admin.rollback_kit("KIT-404", "admin")
        assert audit.recent(10) == []


class TestUserModeration:
    def test_approve_pending_user(self) -> None:
        admin, _, _, users, audit = _make_admin()
        user = users.register("t@example.com", "Secret123", UserRole.TRANSPORTER)
        assert admin.pending_users() == [user]

        approved = admin.approve_user(user.id, None, "admin@kitledger.org")

        assert approved.status == UserStatus.APPROVED
        assert approved.role == UserRole.TRANSPORTER
        assert admin.pending_users() == []
        assert audit.recent(1)[0]["action"] == "USER_APPROVED"

    def test_status_and_role_changes_audited(self) -> None:
        admin, _, _, users, _ = _make_admin()
        user = users.register("u@example.com", "Secret123")
        admin.set_user_status(user.id, UserStatus.SUSPENDED, "admin")
        admin.set_user_role(user.id, UserRole.TRANSPORTER, "admin")
        assert [e["action"] for e in admin.recent_events(10)] == ["USER_ROLE", "USER_STATUS"]
