"""Global enums — values are the on-the-wire strings."""

from enum import Enum


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"

    @property
    def other(self) -> "Outcome":
        return Outcome.NO if self is Outcome.YES else Outcome.YES


class MarketStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class TradeDirection(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class BlockStatus(str, Enum):
    """Verification tag attached to blocks received from peers."""
    VERIFIED = "verified"
    TAMPERED = "tampered"
    UNVERIFIED = "unverified"


class TamperReason(str, Enum):
    INVALID_HASH = "INVALID_HASH"
    BROKEN_LINK = "BROKEN_LINK"


class AuditStatus(str, Enum):
    EMPTY = "Empty"
    SECURE = "Secure"
    TAMPERED = "Tampered"


class RecordKind(str, Enum):
    """Custody record variant: initial registration or a carried-forward update."""
    REGISTERED = "REGISTERED"
    LOCATION_UPDATE = "LOCATION_UPDATE"


class UserRole(str, Enum):
    ADMIN = "admin"
    TRANSPORTER = "transporter"
    USER = "user"


class UserStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    SUSPENDED = "Suspended"
