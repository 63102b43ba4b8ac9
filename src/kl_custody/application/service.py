"""CustodyService: turns kit registrations and location updates into blocks.

Flow for both operations: build record -> sign -> validate -> append to the
chain -> schedule one gossip broadcast. A record that fails validation is
rejected before anything is written.
"""

import logging

from src.kl_chain.application.service import ChainEngine
from src.kl_chain.domain.models import Block
from src.kl_common.datetime_utils import iso_timestamp
from src.kl_common.errors import RecordValidationError, SubjectNotFoundError
from src.kl_custody.domain.models import (
    KitRegistration,
    LocationUpdate,
    record_from_payload,
)
from src.kl_custody.domain.rules import validate_record
from src.kl_custody.domain.signer import EcdsaSigner
from src.kl_gossip.application.service import GossipService

logger = logging.getLogger(__name__)


class CustodyService:
    def __init__(
        self,
        chain: ChainEngine,
        gossip: GossipService,
        signer: EcdsaSigner,
        temperature_min: float = 2.0,
        temperature_max: float = 8.0,
    ) -> None:
        self._chain = chain
        self._gossip = gossip
        self._signer = signer
        self._temperature_min = temperature_min
        self._temperature_max = temperature_max

    @property
    def public_key_hex(self) -> str:
        return self._signer.public_key_hex

    def _validate(self, record: KitRegistration) -> None:
        errors = validate_record(
            record, self._signer, self._temperature_min, self._temperature_max
        )
        if errors:
            logger.warning("Rejected record for kit %s: %s", record.kit_id, errors)
            raise RecordValidationError(errors)

    async def _commit(self, record: KitRegistration, require_new_subject: bool = False) -> Block:
        block = await self._chain.append_record(
            record.to_payload(), require_new_subject=require_new_subject
        )
        self._gossip.schedule_broadcast(block)
        return block

    async def register_kit(
        self,
        kit_id: str,
        kit_type: str,
        origin: str,
        temperature: float,
        location: str,
    ) -> Block:
        unsigned = KitRegistration(
            kit_id=kit_id,
            type=kit_type,
            origin=origin,
            temperature=temperature,
            location=location,
            timestamp=iso_timestamp(),
        )
        record = unsigned.with_signature(self._signer.sign(unsigned.signing_message()))
        self._validate(record)
        block = await self._commit(record, require_new_subject=True)
        logger.info("Kit %s registered at %s (block %d)", kit_id, location, block.index)
        return block

    async def update_location(
        self,
        kit_id: str,
        new_location: str,
        updated_by: str,
        updated_role: str,
        temperature: float | None = None,
        notes: str | None = None,
    ) -> Block:
        """Append a LocationUpdate carrying the kit's latest fields forward.

        The record is re-signed because location and temperature are part of
        the signed message.
        """
        latest = await self._chain.get_latest_for_subject(kit_id)
        if latest is None:
            raise SubjectNotFoundError(kit_id)
        try:
            previous = record_from_payload(latest.data)
        except ValueError as e:
            raise RecordValidationError([str(e)]) from e

        carried_notes = previous.notes if isinstance(previous, LocationUpdate) else ""
        unsigned = LocationUpdate(
            kit_id=previous.kit_id,
            type=previous.type,
            origin=previous.origin,
            temperature=previous.temperature if temperature is None else temperature,
            location=new_location,
            timestamp=previous.timestamp,
            last_updated_by=updated_by,
            last_updated_role=updated_role,
            last_updated_timestamp=iso_timestamp(),
            notes=notes or carried_notes,
        )
        record = unsigned.with_signature(self._signer.sign(unsigned.signing_message()))
        self._validate(record)
        block = await self._commit(record)
        logger.info(
            "Kit %s moved to %s by %s (block %d)", kit_id, new_location, updated_by, block.index
        )
        return block
