"""Deterministic block digest.

hash = SHA-256( str(index) + timestamp + canonical_json(data) + previous_hash )

Any two nodes computing the same block independently must produce the same
hex digest, so `data` is canonicalised: keys sorted, no whitespace, and
integral floats written as integers (a payload that went through a JSON
store as 4.0 must hash the same as one carrying 4).
"""

import hashlib
import json
from typing import Any

GENESIS_PREVIOUS_HASH = "0" * 64


def _normalize(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def canonical_json(data: Any) -> str:
    return json.dumps(
        _normalize(data),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def compute_hash(index: int, timestamp: str, data: Any, previous_hash: str) -> str:
    """Pure function: same inputs always yield the same hex digest."""
    material = f"{index}{timestamp}{canonical_json(data)}{previous_hash}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()
