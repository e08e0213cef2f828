"""Wire/storage records for the persistence and transport collaborators.

Reserve, share and collateral quantities are arbitrary-precision ints and are
serialized as decimal strings, never floats, so a stored PoolState reloads
bit-for-bit. Float fields are display values only.
"""
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer

from src.pm_amm.domain.models import BetQuote, BetResult, PoolState, SellResult
from src.pm_common.enums import Outcome
from src.pm_settlement.domain.models import (
    MarketResolution,
    MarketSettlement,
    UserPosition,
    UserSettlement,
)


def _parse_int(value: object) -> object:
    # float input would already have lost precision; reject it outright
    if isinstance(value, float):
        raise ValueError("fixed-point quantities must be int or decimal string, not float")
    if isinstance(value, str):
        return int(value)
    return value


BigInt = Annotated[
    int,
    BeforeValidator(_parse_int),
    PlainSerializer(lambda v: str(v), return_type=str),
]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class PoolStateRecord(_Record):
    market_id: str
    yes_reserves: BigInt
    no_reserves: BigInt
    k: BigInt
    virtual_liquidity: BigInt
    total_collateral: BigInt
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, pool: PoolState) -> "PoolStateRecord":
        return cls(
            market_id=pool.market_id,
            yes_reserves=pool.yes_reserves,
            no_reserves=pool.no_reserves,
            k=pool.k,
            virtual_liquidity=pool.virtual_liquidity,
            total_collateral=pool.total_collateral,
            created_at=pool.created_at,
            updated_at=pool.updated_at,
        )

    def to_domain(self) -> PoolState:
        return PoolState(
            market_id=self.market_id,
            yes_reserves=self.yes_reserves,
            no_reserves=self.no_reserves,
            k=self.k,
            virtual_liquidity=self.virtual_liquidity,
            total_collateral=self.total_collateral,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserPositionRecord(_Record):
    user_id: str
    market_id: str
    yes_shares: BigInt = 0
    no_shares: BigInt = 0
    total_cost_basis: BigInt = 0

    @classmethod
    def from_domain(cls, position: UserPosition) -> "UserPositionRecord":
        return cls(
            user_id=position.user_id,
            market_id=position.market_id,
            yes_shares=position.yes_shares,
            no_shares=position.no_shares,
            total_cost_basis=position.total_cost_basis,
        )

    def to_domain(self) -> UserPosition:
        return UserPosition(
            user_id=self.user_id,
            market_id=self.market_id,
            yes_shares=self.yes_shares,
            no_shares=self.no_shares,
            total_cost_basis=self.total_cost_basis,
        )


class BetResultRecord(_Record):
    usdc_in: BigInt
    outcome: Outcome
    minted_shares: BigInt
    swapped_shares: BigInt
    total_shares: BigInt
    effective_price: float
    new_probability: float
    new_pool_state: PoolStateRecord

    @classmethod
    def from_domain(cls, result: BetResult) -> "BetResultRecord":
        return cls(
            usdc_in=result.usdc_in,
            outcome=result.outcome,
            minted_shares=result.minted_shares,
            swapped_shares=result.swapped_shares,
            total_shares=result.total_shares,
            effective_price=result.effective_price,
            new_probability=result.new_probability,
            new_pool_state=PoolStateRecord.from_domain(result.new_pool_state),
        )


class SellResultRecord(_Record):
    usdc_out: BigInt
    shares_sold: BigInt
    shares_swapped: BigInt
    pairs_burned: BigInt
    fee: BigInt
    effective_price: float
    price_impact: float
    new_pool_state: PoolStateRecord

    @classmethod
    def from_domain(cls, result: SellResult) -> "SellResultRecord":
        return cls(
            usdc_out=result.usdc_out,
            shares_sold=result.shares_sold,
            shares_swapped=result.shares_swapped,
            pairs_burned=result.pairs_burned,
            fee=result.fee,
            effective_price=result.effective_price,
            price_impact=result.price_impact,
            new_pool_state=PoolStateRecord.from_domain(result.new_pool_state),
        )


class QuoteRecord(_Record):
    expected_shares: BigInt
    effective_price: float
    price_impact: float  # probability points

    @classmethod
    def from_domain(cls, quote: BetQuote) -> "QuoteRecord":
        return cls(
            expected_shares=quote.expected_shares,
            effective_price=quote.effective_price,
            price_impact=quote.price_impact,
        )


class MarketResolutionRecord(_Record):
    market_id: str
    winning_outcome: Outcome
    resolved_at: datetime
    oracle_source: str
    oracle_data: str | None = None

    @classmethod
    def from_domain(cls, resolution: MarketResolution) -> "MarketResolutionRecord":
        return cls(
            market_id=resolution.market_id,
            winning_outcome=resolution.winning_outcome,
            resolved_at=resolution.resolved_at,
            oracle_source=resolution.oracle_source,
            oracle_data=resolution.oracle_data,
        )

    def to_domain(self) -> MarketResolution:
        return MarketResolution(
            market_id=self.market_id,
            winning_outcome=self.winning_outcome,
            resolved_at=self.resolved_at,
            oracle_source=self.oracle_source,
            oracle_data=self.oracle_data,
        )


class UserSettlementRecord(_Record):
    user_id: str
    winning_shares: BigInt
    losing_shares: BigInt
    gross_payout: BigInt
    protocol_fee: BigInt
    net_payout: BigInt
    profit_loss: BigInt

    @classmethod
    def from_domain(cls, settlement: UserSettlement) -> "UserSettlementRecord":
        return cls(
            user_id=settlement.user_id,
            winning_shares=settlement.winning_shares,
            losing_shares=settlement.losing_shares,
            gross_payout=settlement.gross_payout,
            protocol_fee=settlement.protocol_fee,
            net_payout=settlement.net_payout,
            profit_loss=settlement.profit_loss,
        )


class MarketSettlementRecord(_Record):
    market_id: str
    resolution: MarketResolutionRecord
    user_payouts: list[UserSettlementRecord]
    total_payout: BigInt
    protocol_fee_collected: BigInt

    @classmethod
    def from_domain(cls, settlement: MarketSettlement) -> "MarketSettlementRecord":
        return cls(
            market_id=settlement.market_id,
            resolution=MarketResolutionRecord.from_domain(settlement.resolution),
            user_payouts=[UserSettlementRecord.from_domain(u) for u in settlement.user_payouts],
            total_payout=settlement.total_payout,
            protocol_fee_collected=settlement.protocol_fee_collected,
        )
