"""User directory record. Held in memory by UserService; never persisted to the chain."""

from dataclasses import dataclass

from src.kl_common.enums import UserRole, UserStatus


@dataclass
class User:
    id: str
    email: str
    password_hash: str
    role: UserRole
    status: UserStatus
    created_at: str

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED
