"""Custody record variants carried as block payloads.

Both variants serialise to the flat camelCase payload stored in
Block.data; `kind` tags which variant a payload is.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from src.kl_common.enums import RecordKind


def format_temperature(value: float | int) -> str:
    """Render a temperature the way it appears in the signed message (4.0 -> "4")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class KitRegistration:
    kit_id: str
    type: str
    origin: str
    temperature: float
    location: str
    timestamp: str
    signature: str = ""

    kind = RecordKind.REGISTERED

    def signing_message(self) -> str:
        return (
            f"{self.kit_id}{self.type}{self.origin}"
            f"{format_temperature(self.temperature)}{self.location}{self.timestamp}"
        )

    def with_signature(self, signature: str) -> "KitRegistration":
        """Copy of this record (same variant) carrying `signature`."""
        return replace(self, signature=signature)

    def to_payload(self) -> dict[str, Any]:
        return {
            "kitID": self.kit_id,
            "type": self.type,
            "origin": self.origin,
            "temperature": self.temperature,
            "location": self.location,
            "timestamp": self.timestamp,
            "signature": self.signature,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class LocationUpdate(KitRegistration):
    """A registration's fields carried forward with a new location/temperature."""

    last_updated_by: str = ""
    last_updated_role: str = ""
    last_updated_timestamp: str = ""
    notes: str = field(default="")

    kind = RecordKind.LOCATION_UPDATE

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload.update(
            {
                "lastUpdatedBy": self.last_updated_by,
                "lastUpdatedRole": self.last_updated_role,
                "lastUpdatedTimestamp": self.last_updated_timestamp,
                "notes": self.notes,
            }
        )
        return payload


def record_from_payload(payload: dict[str, Any]) -> KitRegistration:
    """Rebuild a record from a block payload. Raises ValueError if incomplete."""
    try:
        common = {
            "kit_id": payload["kitID"],
            "type": payload["type"],
            "origin": payload["origin"],
            "temperature": payload["temperature"],
            "location": payload["location"],
            "timestamp": payload["timestamp"],
            "signature": payload.get("signature", ""),
        }
    except KeyError as e:
        raise ValueError(f"custody payload missing field {e.args[0]}") from e
    if payload.get("kind") == RecordKind.LOCATION_UPDATE.value:
        return LocationUpdate(
            **common,
            last_updated_by=payload.get("lastUpdatedBy", ""),
            last_updated_role=payload.get("lastUpdatedRole", ""),
            last_updated_timestamp=payload.get("lastUpdatedTimestamp", ""),
            notes=payload.get("notes", ""),
        )
    return KitRegistration(**common)
