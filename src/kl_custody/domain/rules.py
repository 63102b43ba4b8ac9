"""Custody record validation rules. Pure: returns error strings, never raises."""

from src.kl_custody.domain.models import KitRegistration, format_temperature
from src.kl_custody.domain.signer import EcdsaSigner

_REQUIRED_TEXT_FIELDS = (
    ("kit_id", "kitID"),
    ("type", "type"),
    ("origin", "origin"),
    ("location", "location"),
)


def validate_record(
    record: KitRegistration,
    signer: EcdsaSigner,
    temperature_min: float = 2.0,
    temperature_max: float = 8.0,
) -> list[str]:
    errors: list[str] = []

    for attr, wire_name in _REQUIRED_TEXT_FIELDS:
        value = getattr(record, attr)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"Missing required field: {wire_name}")

    temperature = record.temperature
    if isinstance(temperature, bool) or not isinstance(temperature, int | float):
        errors.append(f"Temperature must be numeric: {temperature!r}")
    elif not temperature_min <= temperature <= temperature_max:
        errors.append(
            f"Temperature out of safe range "
            f"({format_temperature(temperature_min)}-{format_temperature(temperature_max)}°C): "
            f"{format_temperature(temperature)}°C"
        )

    if not record.signature:
        errors.append("Missing digital signature")
    elif not signer.verify(record.signing_message(), record.signature):
        errors.append("Invalid cryptographic signature")

    return errors
