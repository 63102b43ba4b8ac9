"""FastAPI auth dependencies: get_current_user, require_roles.

Usage in any protected router:
    from src.kl_gateway.auth.dependencies import get_current_user, require_roles

    @router.post("/kits")
    async def register_kit(user: Annotated[User, Depends(require_roles(UserRole.ADMIN))]):
        ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.kl_common.enums import UserRole
from src.kl_common.errors import AccountNotApprovedError, InvalidCredentialsError, PermissionDeniedError
from src.kl_gateway.auth.jwt_handler import decode_token
from src.kl_gateway.user.models import User
from src.node import LedgerNode, get_node

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    node: Annotated[LedgerNode, Depends(get_node)],
) -> User:
    """Validate the Bearer token and return the (still approved) user.

    HTTP 401 if the token is missing, invalid, expired or names an unknown
    user; 403 (AccountNotApprovedError) if the account is no longer approved.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    user = node.users.find(user_id) if user_id else None
    if user is None:
        raise _CREDENTIALS_EXCEPTION
    if not user.is_approved:
        raise AccountNotApprovedError(user.status.value)
    return user


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """Dependency factory: the current user must hold one of `roles`."""
    allowed = {r.value for r in roles}
    label = " or ".join(sorted(allowed))

    async def _check(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role.value not in allowed:
            raise PermissionDeniedError(label)
        return current_user

    return _check
