"""UserService: in-memory user directory with approval workflow.

New accounts start Pending and cannot log in until an admin approves them.
A default admin is seeded at node start from settings.
"""

import logging
import uuid

from src.kl_common.datetime_utils import iso_timestamp
from src.kl_common.enums import UserRole, UserStatus
from src.kl_common.errors import (
    AccountNotApprovedError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    InvalidUserAttributeError,
    UserNotFoundError,
)
from src.kl_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.kl_gateway.auth.password import burn_verify, hash_password, verify_password
from src.kl_gateway.user.models import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def _by_email(self, email: str) -> User | None:
        email = email.lower()
        return next((u for u in self._users.values() if u.email == email), None)

    def get(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def find(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def register(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.PENDING,
    ) -> User:
        if self._by_email(email) is not None:
            raise EmailExistsError()
        user = User(
            id=str(uuid.uuid4()),
            email=email.lower(),
            password_hash=hash_password(password),
            role=role,
            status=status,
            created_at=iso_timestamp(),
        )
        self._users[user.id] = user
        logger.info("Registered user %s (role=%s, status=%s)", user.email, role.value, status.value)
        return user

    def seed_admin(self, email: str, password: str) -> User:
        """Create the default admin if no account with that email exists."""
        existing = self._by_email(email)
        if existing is not None:
            return existing
        return self.register(email, password, UserRole.ADMIN, UserStatus.APPROVED)

    def login(self, email: str, password: str) -> tuple[User, str, str]:
        """Return (user, access_token, refresh_token).

        Unknown email and wrong password raise the same error.
        """
        user = self._by_email(email)
        if user is None:
            burn_verify(password)
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_approved:
            raise AccountNotApprovedError(user.status.value)
        return (
            user,
            create_access_token(user.id, user.role.value),
            create_refresh_token(user.id),
        )

    def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, expected_type="refresh")
        user = self._users.get(str(payload["sub"]))
        if user is None or not user.is_approved:
            raise InvalidRefreshTokenError()
        return create_access_token(user.id, user.role.value)

    # ------------------------------------------------------------------
    # Moderation (admin)
    # ------------------------------------------------------------------

    def list_pending(self) -> list[User]:
        return [u for u in self._users.values() if u.status == UserStatus.PENDING]

    def approve(self, user_id: str, role: UserRole | None = None) -> User:
        user = self.get(user_id)
        user.status = UserStatus.APPROVED
        if role is not None:
            user.role = role
        logger.info("Approved user %s (role=%s)", user.email, user.role.value)
        return user

    def set_status(self, user_id: str, status: UserStatus) -> User:
        user = self.get(user_id)
        if user.role == UserRole.ADMIN and status != UserStatus.APPROVED:
            admins = [
                u for u in self._users.values()
                if u.role == UserRole.ADMIN and u.is_approved and u.id != user.id
            ]
            if not admins:
                raise InvalidUserAttributeError("Cannot deactivate the last approved admin")
        user.status = status
        logger.info("User %s status set to %s", user.email, status.value)
        return user

    def set_role(self, user_id: str, role: UserRole) -> User:
        user = self.get(user_id)
        user.role = role
        logger.info("User %s role set to %s", user.email, role.value)
        return user
