"""Tests for pm_common.errors."""

from src.pm_common.errors import (
    AppError,
    InsufficientLiquidityError,
    InsufficientPositionError,
    InvalidArgumentError,
    MarketAlreadyExistsError,
    MarketIdMismatchError,
    MarketNotActiveError,
    MarketNotFoundError,
    MarketNotResolvedError,
    OracleNotAllowedError,
    PriceCapExceededError,
    SolvencyCheckFailedError,
)


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=6001, message="bad")
        assert err.code == 6001
        assert err.message == "bad"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestMarketErrors:
    def test_market_not_found(self) -> None:
        err = MarketNotFoundError("MKT-1")
        assert err.code == 3001
        assert err.http_status == 404

    def test_market_not_active_mentions_status(self) -> None:
        err = MarketNotActiveError("MKT-1", "RESOLVED")
        assert err.code == 3002
        assert "RESOLVED" in err.message

    def test_market_already_exists(self) -> None:
        assert MarketAlreadyExistsError("MKT-1").http_status == 409

    def test_market_not_resolved(self) -> None:
        assert MarketNotResolvedError("MKT-1", "ACTIVE").code == 3004

    def test_market_id_mismatch(self) -> None:
        err = MarketIdMismatchError("a", "b")
        assert err.code == 3005
        assert "a" in err.message and "b" in err.message


class TestAmmErrors:
    def test_invalid_argument(self) -> None:
        err = InvalidArgumentError("amount must be positive")
        assert err.code == 6001
        assert err.http_status == 400
        assert "amount must be positive" in err.message

    def test_insufficient_liquidity_default_message(self) -> None:
        err = InsufficientLiquidityError()
        assert err.code == 6002
        assert "liquidity" in err.message.lower()

    def test_price_cap_exceeded(self) -> None:
        err = PriceCapExceededError("YES", 0.99)
        assert err.code == 6003
        assert err.outcome == "YES"
        assert "99%" in err.message

    def test_solvency_check_failed(self) -> None:
        err = SolvencyCheckFailedError("MKT-1", required=500, available=400)
        assert err.code == 6004
        assert err.required == 500
        assert err.available == 400

    def test_oracle_not_allowed(self) -> None:
        assert OracleNotAllowedError("rogue").code == 6005

    def test_insufficient_position(self) -> None:
        err = InsufficientPositionError(held=10, requested=20)
        assert err.code == 5001
        assert "10" in err.message and "20" in err.message
