"""Unit tests for kl_gateway: tokens, passwords, request schemas and UserService."""

from unittest.mock import patch

import pytest
from jose import jwt
from pydantic import ValidationError

from config.settings import settings
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
from src.kl_gateway.auth.password import hash_password, verify_password
from src.kl_gateway.user.schemas import RegisterRequest
from src.kl_gateway.user.service import UserService


def test_access_token_carries_role() -> None:
    payload = jwt.get_unverified_claims(create_access_token("user-123", "transporter"))
    assert payload["sub"] == "user-123"
    assert payload["role"] == "transporter"
    assert payload["type"] == "access"


def test_refresh_token_claims() -> None:
    payload = jwt.get_unverified_claims(create_refresh_token("user-123"))
    assert payload["sub"] == "user-123"
    assert payload["type"] == "refresh"
    assert "role" not in payload


def test_token_types_are_not_interchangeable() -> None:
    with pytest.raises(InvalidRefreshTokenError):
        decode_token(create_access_token("u", "user"), expected_type="refresh")
    with pytest.raises(InvalidCredentialsError):
        decode_token(create_refresh_token("u"), expected_type="access")


def test_expired_access_token_rejected() -> None:
    with patch.object(settings, "JWT_EXPIRE_MINUTES", -1):
        token = create_access_token("u", "user")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token, expected_type="access")


def test_token_signed_with_other_secret_rejected() -> None:
    forged = jwt.encode({"sub": "u", "type": "access"}, "not-the-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(forged, expected_type="access")


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)


class TestRegisterRequest:
    def test_valid_input(self) -> None:
        req = RegisterRequest(email="alice@example.com", password="Secret123")
        assert req.role == UserRole.USER

    def test_transporter_may_self_register(self) -> None:
        req = RegisterRequest(email="t@example.com", password="Secret123", role="transporter")
        assert req.role == UserRole.TRANSPORTER

    def test_admin_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="a@example.com", password="Secret123", role="admin")

    @pytest.mark.parametrize("password", ["Ab1", "lettersonly", "12345678"])
    def test_weak_password_rejected(self, password: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="a@example.com", password=password)

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(email="not-an-email", password="Secret123")


class TestUserService:
    def _service(self) -> UserService:
        users = UserService()
        users.seed_admin("admin@kitledger.org", "AdminPass1")
        return users

    def test_seed_admin_is_idempotent(self) -> None:
        users = self._service()
        first = users.seed_admin("admin@kitledger.org", "AdminPass1")
        assert users.seed_admin("ADMIN@kitledger.org", "Other1234").id == first.id
        assert first.role == UserRole.ADMIN and first.is_approved

    def test_new_user_is_pending_and_cannot_log_in(self) -> None:
        users = self._service()
        user = users.register("Alice@Example.com", "Secret123")
        assert user.email == "alice@example.com"
        assert user.status == UserStatus.PENDING
        with pytest.raises(AccountNotApprovedError):
            users.login("alice@example.com", "Secret123")

    def test_duplicate_email_rejected_case_insensitively(self) -> None:
        users = self._service()
        users.register("alice@example.com", "Secret123")
        with pytest.raises(EmailExistsError):
            users.register("ALICE@example.com", "Secret123")

    def test_approved_user_logs_in(self) -> None:
        users = self._service()
        user = users.register("t@example.com", "Secret123", UserRole.TRANSPORTER)
        users.approve(user.id)

        logged_in, access, refresh = users.login("t@example.com", "Secret123")

        assert logged_in.id == user.id
        assert decode_token(access, "access")["role"] == "transporter"
        assert decode_token(users.refresh(refresh), "access")["sub"] == user.id

    def test_wrong_password_and_unknown_email_look_alike(self) -> None:
        users = self._service()
        with pytest.raises(InvalidCredentialsError):
            users.login("admin@kitledger.org", "WrongPass1")
        with pytest.raises(InvalidCredentialsError):
            users.login("nobody@example.com", "WrongPass1")

    def test_refresh_refused_after_suspension(self) -> None:
        users = self._service()
        user = users.register("u@example.com", "Secret123")
        users.approve(user.id)
        _, _, refresh = users.login("u@example.com", "Secret123")
        users.set_status(user.id, UserStatus.SUSPENDED)
        with pytest.raises(InvalidRefreshTokenError):
            users.refresh(refresh)

    def test_approve_can_assign_role(self) -> None:
        users = self._service()
        user = users.register("u@example.com", "Secret123")
        assert users.approve(user.id, UserRole.TRANSPORTER).role == UserRole.TRANSPORTER
        assert users.list_pending() == []

    def test_last_admin_cannot_be_suspended(self) -> None:
        users = self._service()
        admin = users.seed_admin("admin@kitledger.org", "AdminPass1")
        with pytest.raises(InvalidUserAttributeError):
            users.set_status(admin.id, UserStatus.SUSPENDED)

    def test_admin_can_be_suspended_when_another_remains(self) -> None:
        users = self._service()
        admin = users.seed_admin("admin@kitledger.org", "AdminPass1")
        other = users.register("second@kitledger.org", "Secret123", UserRole.ADMIN, UserStatus.APPROVED)
        assert users.set_status(admin.id, UserStatus.SUSPENDED).status == UserStatus.SUSPENDED
        assert other.is_approved

    def test_unknown_user(self) -> None:
        with pytest.raises(UserNotFoundError):
            self._service().approve("missing")
