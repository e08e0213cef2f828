"""Domain models for pm_amm — immutable dataclasses, no business logic.

Quantities are int in USDC base units (6 decimals). Float fields are
derived display values only.
"""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import Outcome


@dataclass(frozen=True)
class PoolConfig:
    market_id: str
    initial_liquidity: int
    virtual_liquidity: int | None = None  # None -> settings.DEFAULT_VIRTUAL_LIQUIDITY


@dataclass(frozen=True)
class PoolState:
    """Reserve state of one binary market. Replaced wholesale, never mutated."""

    market_id: str
    yes_reserves: int
    no_reserves: int
    k: int                   # fixed at creation, swaps never change it
    virtual_liquidity: int   # price-only offset, not swappable
    total_collateral: int    # USDC minted into the pool
    created_at: datetime
    updated_at: datetime

    def reserves_of(self, outcome: Outcome) -> int:
        return self.yes_reserves if outcome is Outcome.YES else self.no_reserves


@dataclass(frozen=True)
class PoolPrices:
    yes_price: float          # clamped to [MIN_PRICE, PRICE_CAP]
    no_price: float
    yes_probability: float    # unclamped, percent
    no_probability: float


@dataclass(frozen=True)
class SwapResult:
    amount_out: int
    effective_price: float    # amount_in / amount_out
    price_impact: float       # relative % change of the acquired outcome's spot price
    new_pool_state: PoolState


@dataclass(frozen=True)
class BetResult:
    usdc_in: int
    outcome: Outcome
    minted_shares: int
    swapped_shares: int
    total_shares: int
    effective_price: float
    new_probability: float
    new_pool_state: PoolState


@dataclass(frozen=True)
class BetQuote:
    expected_shares: int
    effective_price: float
    price_impact: float       # absolute probability-point change, NOT the swap's relative %


@dataclass(frozen=True)
class SellResult:
    usdc_out: int
    shares_sold: int
    shares_swapped: int       # sold shares routed through the curve
    pairs_burned: int         # YES+NO pairs redeemed for USDC
    fee: int
    effective_price: float    # usdc_out / shares_sold
    price_impact: float       # relative % change of the sold outcome's spot price
    new_pool_state: PoolState


@dataclass(frozen=True)
class PositionValue:
    yes_value: float
    no_value: float
    total_value: float
