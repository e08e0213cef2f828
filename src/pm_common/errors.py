"""Unified error codes and custom exceptions.

Error code ranges:
  3xxx: Market
  5xxx: Position
  6xxx: AMM core (pool pricing, betting, settlement)
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


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotActiveError(AppError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(3002, f"Market {market_id} is not active (status={status})", 422)


class MarketAlreadyExistsError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market already exists: {market_id}", 409)


class MarketNotResolvedError(AppError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(3004, f"Market {market_id} is not resolved (status={status})", 422)


class MarketIdMismatchError(AppError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(3005, f"Market ID mismatch: expected {expected}, got {actual}", 422)


# --- 5xxx: Position ---

class InsufficientPositionError(AppError):
    def __init__(self, held: int, requested: int) -> None:
        super().__init__(
            5001,
            f"Insufficient shares: held {held}, selling {requested}",
            422,
        )


# --- 6xxx: AMM core ---

class InvalidArgumentError(AppError):
    """Non-positive amount, out-of-range percentage. Caller error, not retryable as-is."""

    def __init__(self, detail: str) -> None:
        super().__init__(6001, f"Invalid argument: {detail}", 400)


class InsufficientLiquidityError(AppError):
    """Trade would fully or over-drain a reserve side. Retry with a smaller amount."""

    def __init__(self, detail: str = "Insufficient liquidity for this swap") -> None:
        super().__init__(6002, detail, 422)


class PriceCapExceededError(AppError):
    """Resulting pool state would price an outcome above the protocol ceiling."""

    def __init__(self, outcome: str, price_cap: float) -> None:
        self.outcome = outcome
        super().__init__(
            6003,
            f"Trade would push {outcome} price above {price_cap * 100:.0f}% cap",
            422,
        )


class SolvencyCheckFailedError(AppError):
    """Collateral does not cover winning-side payouts. Fatal for the market."""

    def __init__(self, market_id: str, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            6004,
            f"Pool solvency check failed for {market_id}: "
            f"winning shares {required} > collateral {available}",
            500,
        )


class OracleNotAllowedError(AppError):
    def __init__(self, oracle_source: str) -> None:
        super().__init__(6005, f"Oracle source not allowed: {oracle_source}", 403)
