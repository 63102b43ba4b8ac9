"""Unit tests for CustodyService (in-memory chain, fake peers)."""

import asyncio

import pytest

from src.kl_chain.application.service import ChainEngine
from src.kl_chain.infrastructure.memory_store import InMemoryBlockStore
from src.kl_common.enums import RecordKind
from src.kl_common.errors import RecordValidationError, SubjectNotFoundError
from src.kl_custody.application.service import CustodyService
from src.kl_custody.domain.models import record_from_payload
from src.kl_custody.domain.rules import validate_record
from src.kl_custody.domain.signer import EcdsaSigner
from src.kl_gossip.application.service import GossipService
from src.kl_gossip.domain.peers import PeerRegistry
from tests.helpers import FakePeerClient, YieldingBlockStore


def _make_service(signer: EcdsaSigner, peers: list[str] | None = None, store=None):
    client = FakePeerClient()
    chain = ChainEngine(store or InMemoryBlockStore())
    gossip = GossipService(chain, client, PeerRegistry(peers))
    return CustodyService(chain, gossip, signer), chain, gossip, client


class TestRegisterKit:
    async def test_appends_signed_record(self, signer: EcdsaSigner) -> None:
        service, chain, _, _ = _make_service(signer)

        block = await service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Geneva Warehouse")

        assert block.index == 0
        assert block.data["kitID"] == "KIT-001"
        assert block.data["kind"] == RecordKind.REGISTERED.value
        assert validate_record(record_from_payload(block.data), signer) == []
        assert await chain.get_history("KIT-001") == [block]

    async def test_out_of_range_temperature_writes_nothing(self, signer: EcdsaSigner) -> None:
        service, chain, _, _ = _make_service(signer)

        with pytest.raises(RecordValidationError) as exc_info:
            await service.register_kit("KIT-001", "Emergency", "Geneva", 12.0, "Geneva")

        assert exc_info.value.errors == ["Temperature out of safe range (2-8°C): 12°C"]
        assert await chain.get_full_chain() == []

    async def test_missing_fields_reported_together(self, signer: EcdsaSigner) -> None:
        service, _, _, _ = _make_service(signer)
        with pytest.raises(RecordValidationError) as exc_info:
            await service.register_kit("KIT-001", "", "", 4.0, "Geneva")
        assert exc_info.value.errors == [
            "Missing required field: type",
            "Missing required field: origin",
        ]

    async def test_duplicate_kit_rejected(self, signer: EcdsaSigner) -> None:
        service, chain, _, _ = _make_service(signer)
        await service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Geneva")
        with pytest.raises(RecordValidationError):
            await service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Geneva")
        assert len(await chain.get_full_chain()) == 1

    async def test_concurrent_duplicate_registrations_admit_one(self, signer: EcdsaSigner) -> None:
        service, chain, _, _ = _make_service(signer, store=YieldingBlockStore())

        results = await asyncio.gather(
            service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Warehouse A"),
            service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Warehouse B"),
            return_exceptions=True,
        )

        rejected = [r for r in results if isinstance(r, RecordValidationError)]
        assert len(rejected) == 1
        assert rejected[0].errors == ["Kit already registered: KIT-001"]
        assert len(await chain.get_history("KIT-001")) == 1

    async def test_broadcasts_committed_block(self, signer: EcdsaSigner) -> None:
        service, _, gossip, client = _make_service(signer, peers=["http://node-b"])

        block = await service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Geneva")
        await gossip.close()

        assert client.pushed == [("http://node-b", block.to_wire())]

    async def test_unreachable_peer_does_not_fail_registration(self, signer: EcdsaSigner) -> None:
        service, chain, gossip, client = _make_service(signer, peers=["http://node-b"])
        client.down.add("http://node-b")

        await service.register_kit("KIT-001", "Emergency", "Geneva", 4.0, "Geneva")
        await gossip.close()

        assert len(await chain.get_full_chain()) == 1


class TestUpdateLocation:
    async def test_carries_fields_forward(self, signer: EcdsaSigner) -> None:
        service, chain, _, _ = _make_service(signer)
        registered = await service.register_kit("KIT-001", "Surgical", "Geneva", 4.0, "Geneva")

        block = await service.update_location(
            "KIT-001", "Nairobi Hub", "t@example.com", "transporter", notes="customs cleared"
        )

        data = block.data
        assert data["kind"] == RecordKind.LOCATION_UPDATE.value
        assert data["location"] == "Nairobi Hub"
        assert data["type"] == "Surgical"
        assert data["temperature"] == 4.0
        assert data["timestamp"] == registered.data["timestamp"]
        assert data["lastUpdatedBy"] == "t@example.com"
        assert data["lastUpdatedRole"] == "transporter"
        assert data["notes"] == "customs cleared"
        assert validate_record(record_from_payload(data), signer) == []
        assert [b.index for b in await chain.get_history("KIT-001")] == [0, 1]

    async def test_new_temperature_and_notes_carried(self, signer: EcdsaSigner) -> None:
        service, _, _, _ = _make_service(signer)
        await service.register_kit("KIT-001", "Surgical", "Geneva", 4.0, "Geneva")
        await service.update_location("KIT-001", "Amman", "t@example.com", "transporter", 6.5, "cool box")

        block = await service.update_location("KIT-001", "Beirut", "t@example.com", "transporter")

        assert block.data["temperature"] == 6.5
        assert block.data["notes"] == "cool box"

    async def test_unsafe_temperature_rejected(self, signer: EcdsaSigner) -> None:
        service, chain, _, _ = _make_service(signer)
        await service.register_kit("KIT-001", "Surgical", "Geneva", 4.0, "Geneva")
        with pytest.raises(RecordValidationError):
            await service.update_location("KIT-001", "Amman", "t@example.com", "transporter", 9.0)
        assert len(await chain.get_full_chain()) == 1

    async def test_unknown_kit(self, signer: EcdsaSigner) -> None:
        service, _, _, _ = _make_service(signer)
        with pytest.raises(SubjectNotFoundError):
            await service.update_location("KIT-404", "Amman", "t@example.com", "transporter")

    async def test_public_key_exposed(self, signer: EcdsaSigner) -> None:
        service, _, _, _ = _make_service(signer)
        assert service.public_key_hex == signer.public_key_hex
