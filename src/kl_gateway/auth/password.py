"""Password hashing with the ``bcrypt`` library directly (>=4.0)."""

import bcrypt

# Verified against on unknown emails so login timing does not reveal which
# accounts exist.
_DUMMY_HASH = bcrypt.hashpw(b"kit-ledger-dummy-password", bcrypt.gensalt()).decode("utf-8")


def hash_password(plain: str) -> str:
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def burn_verify(plain: str) -> None:
    """Spend one bcrypt check against a throwaway hash."""
    verify_password(plain, _DUMMY_HASH)
