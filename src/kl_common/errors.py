"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Ledger/Custody
  3xxx: Market
  5xxx: Position
  6xxx: Peer
  9xxx: System

Integrity problems (hash mismatch, broken link) are NOT exceptions: the
audit operations return them as TamperFinding data.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Email already registered", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid email or password", 401)


class AccountNotApprovedError(AppError):
    def __init__(self, status: str) -> None:
        super().__init__(1003, f"Account is not approved (status={status})", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Refresh token is invalid or expired", 401)


class PermissionDeniedError(AppError):
    def __init__(self, required: str) -> None:
        super().__init__(1005, f"Insufficient permissions: requires {required}", 403)


class UserNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1006, f"User not found: {user_id}", 404)


class InvalidUserAttributeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1007, detail, 422)


# --- 2xxx: Ledger/Custody ---

class RecordValidationError(AppError):
    """Custody record rejected before any durable write."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(2001, "Record validation failed: " + "; ".join(self.errors), 422)


class BlockRejectedError(AppError):
    """Conflicting, stale, tampered or malformed block pushed by a peer."""

    def __init__(self, index: object, reason: str) -> None:
        self.reason = reason
        super().__init__(2002, f"Block {index} rejected: {reason}", 409)


class SubjectNotFoundError(AppError):
    def __init__(self, subject_id: str) -> None:
        super().__init__(2003, f"No records found for kit ID: {subject_id}", 404)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotOpenError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3002, f"Market is not open for trading: {market_id}", 422)


class MarketExistsError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market already exists: {market_id}", 409)


class InsufficientLiquidityError(AppError):
    def __init__(self, outcome: str, requested: int, pool: int) -> None:
        super().__init__(
            3004,
            f"Insufficient liquidity: requested {requested} {outcome} shares, pool holds {pool}",
            422,
        )


class InvalidTradeAmountError(AppError):
    def __init__(self, amount: object) -> None:
        super().__init__(3005, f"Share amount must be a positive integer, got {amount}", 422)


class MarketNotResolvedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3006, f"Market has not been resolved: {market_id}", 422)


# --- 5xxx: Position ---

class InsufficientCreditsError(AppError):
    def __init__(self, required: float, available: float) -> None:
        super().__init__(
            5001,
            f"Insufficient credits: required {required:.2f}, available {available:.2f}",
            422,
        )


class InsufficientSharesError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5002, f"Insufficient shares: {detail}", 422)


class ParticipantNotFoundError(AppError):
    def __init__(self, participant_id: str) -> None:
        super().__init__(5003, f"Participant account not found: {participant_id}", 404)


# --- 6xxx: Peer ---

class UnavailablePeerError(AppError):
    def __init__(self, peer: str, detail: str) -> None:
        self.peer = peer
        super().__init__(6001, f"Peer unavailable: {peer} ({detail})", 502)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
