"""Unit tests for pm_amm application schemas (wire/storage records)."""
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.pm_amm.application.schemas import (
    BetResultRecord,
    MarketResolutionRecord,
    MarketSettlementRecord,
    PoolStateRecord,
    QuoteRecord,
    SellResultRecord,
    UserPositionRecord,
)
from src.pm_amm.domain.mint_swap import place_bet, quote_bet, sell_position
from src.pm_amm.domain.models import PoolState
from src.pm_common.enums import Outcome
from src.pm_common.usdc import usdc
from src.pm_settlement.domain.models import MarketResolution, UserPosition
from src.pm_settlement.domain.settlement import calculate_market_settlement

RESOLUTION = MarketResolution(
    market_id="mkt-1",
    winning_outcome=Outcome.NO,
    resolved_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    oracle_source="uma",
    oracle_data='{"round": 7}',
)


class TestPoolStateRecord:
    def test_reloads_exactly(self, pool: PoolState) -> None:
        record = PoolStateRecord.from_domain(pool)
        restored = PoolStateRecord.model_validate_json(record.model_dump_json()).to_domain()
        assert restored == pool

    def test_big_ints_serialized_as_strings(self, pool: PoolState) -> None:
        dumped = PoolStateRecord.from_domain(pool).model_dump(mode="json")
        assert dumped["k"] == str(10**18)
        assert dumped["yes_reserves"] == "1000000000"

    def test_precision_beyond_float(self, pool: PoolState) -> None:
        huge = 2**80 + 1
        record = PoolStateRecord.from_domain(pool).model_copy(update={"k": huge})
        assert PoolStateRecord.model_validate_json(record.model_dump_json()).k == huge

    def test_float_rejected(self, pool: PoolState) -> None:
        data = PoolStateRecord.from_domain(pool).model_dump()
        data["yes_reserves"] = 1.5e9
        with pytest.raises(ValidationError):
            PoolStateRecord.model_validate(data)

    def test_frozen(self, pool: PoolState) -> None:
        record = PoolStateRecord.from_domain(pool)
        with pytest.raises(ValidationError):
            record.k = 1


class TestResultRecords:
    def test_bet_result(self, pool: PoolState) -> None:
        record = BetResultRecord.from_domain(place_bet(pool, usdc(100), Outcome.YES))
        dumped = record.model_dump(mode="json")
        assert dumped["total_shares"] == "190909091"
        assert dumped["outcome"] == "YES"
        assert dumped["new_pool_state"]["yes_reserves"] == "909090909"

    def test_sell_result(self, pool: PoolState) -> None:
        bet = place_bet(pool, usdc(100), Outcome.YES)
        sold = sell_position(bet.new_pool_state, bet.total_shares, Outcome.YES)
        dumped = SellResultRecord.from_domain(sold).model_dump(mode="json")
        assert dumped["usdc_out"] == "99000000"
        assert dumped["fee"] == "1000000"

    def test_quote(self, pool: PoolState) -> None:
        quote = quote_bet(pool, usdc(100), Outcome.NO)
        assert quote is not None
        assert QuoteRecord.from_domain(quote).model_dump(mode="json")["expected_shares"] == "190909091"


class TestSettlementRecords:
    def test_position_round_trip(self) -> None:
        position = UserPosition("alice", "mkt-1", yes_shares=5, no_shares=7, total_cost_basis=11)
        record = UserPositionRecord.from_domain(position)
        assert UserPositionRecord.model_validate_json(record.model_dump_json()).to_domain() == position

    def test_position_accepts_string_ints(self) -> None:
        record = UserPositionRecord.model_validate(
            {"user_id": "a", "market_id": "m", "yes_shares": "123456789012345678901234567890"}
        )
        assert record.yes_shares == 123456789012345678901234567890

    def test_resolution_round_trip(self) -> None:
        record = MarketResolutionRecord.from_domain(RESOLUTION)
        restored = MarketResolutionRecord.model_validate_json(record.model_dump_json()).to_domain()
        assert restored == RESOLUTION

    def test_market_settlement(self) -> None:
        positions = [
            UserPosition("alice", "mkt-1", no_shares=usdc(20), total_cost_basis=usdc(10)),
            UserPosition("bob", "mkt-1", yes_shares=usdc(20), total_cost_basis=usdc(10)),
        ]
        settlement = calculate_market_settlement(positions, RESOLUTION)
        dumped = MarketSettlementRecord.from_domain(settlement).model_dump(mode="json")
        assert dumped["resolution"]["winning_outcome"] == "NO"
        assert [u["user_id"] for u in dumped["user_payouts"]] == ["alice", "bob"]
        # profit 10 USDC at 1% -> 0.1 USDC fee
        assert dumped["user_payouts"][0]["protocol_fee"] == "100000"
        assert dumped["total_payout"] == "19900000"
