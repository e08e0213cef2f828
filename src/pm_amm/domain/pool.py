"""Pool engine — constant product (x * y = k) pricing and swaps.

Dual-formula model:
  1. Collateralization: 1 USDC = 1 YES + 1 NO
  2. Trading: yes_reserves * no_reserves = k

Price of an outcome is proportional to the OPPOSITE side's reserves:
  price_YES = no / (yes + no)
Buying YES drains YES reserves and fills NO reserves, so its price rises.
"""

import logging
from dataclasses import replace

from config.settings import settings
from src.pm_amm.domain.models import PoolConfig, PoolPrices, PoolState, SwapResult
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import Outcome
from src.pm_common.errors import InsufficientLiquidityError, InvalidArgumentError
from src.pm_common.result import Err, Ok, capture
from src.pm_common.usdc import to_float

logger = logging.getLogger(__name__)


def create_pool(config: PoolConfig) -> PoolState:
    """Open a pool at 50/50 with equal reserves.

    Initial liquidity is deposited twice over (one USDC per YES share and one
    per NO share), so total_collateral starts at 2 x initial_liquidity.
    """
    if config.initial_liquidity <= 0:
        raise InvalidArgumentError(
            f"initial liquidity must be positive, got {config.initial_liquidity}"
        )
    virtual = config.virtual_liquidity
    if virtual is None:
        virtual = settings.DEFAULT_VIRTUAL_LIQUIDITY
    if virtual < 0:
        raise InvalidArgumentError(f"virtual liquidity must be non-negative, got {virtual}")

    now = utc_now()
    liquidity = config.initial_liquidity
    return PoolState(
        market_id=config.market_id,
        yes_reserves=liquidity,
        no_reserves=liquidity,
        k=liquidity * liquidity,
        virtual_liquidity=virtual,
        total_collateral=liquidity * 2,
        created_at=now,
        updated_at=now,
    )


def _raw_prices(pool: PoolState) -> tuple[float, float]:
    """Unclamped (yes_price, no_price); they sum to 1."""
    effective_yes = pool.yes_reserves + pool.virtual_liquidity
    effective_no = pool.no_reserves + pool.virtual_liquidity
    total = effective_yes + effective_no
    return effective_no / total, effective_yes / total


def _clamp(price: float) -> float:
    return min(max(price, settings.MIN_PRICE), settings.PRICE_CAP)


def get_prices(pool: PoolState) -> PoolPrices:
    """Implied prices from reserves plus virtual liquidity.

    Prices are clamped to [MIN_PRICE, PRICE_CAP] for display; probabilities
    are the unclamped prices in percent. Neither feeds back into reserves.
    """
    yes_price, no_price = _raw_prices(pool)
    return PoolPrices(
        yes_price=_clamp(yes_price),
        no_price=_clamp(no_price),
        yes_probability=yes_price * 100,
        no_probability=no_price * 100,
    )


def get_spot_price(pool: PoolState, outcome: Outcome) -> float:
    prices = get_prices(pool)
    return prices.yes_price if outcome is Outcome.YES else prices.no_price


def calculate_swap(pool: PoolState, amount_in: int, sell_outcome: Outcome) -> SwapResult:
    """Sell amount_in shares of sell_outcome into the pool for the opposite side.

    new_sold  = sold + amount_in
    new_other = k // new_sold          (truncating)
    amount_out = other - new_other
    """
    if amount_in <= 0:
        raise InvalidArgumentError(f"swap amount must be positive, got {amount_in}")

    buy_outcome = sell_outcome.opposite
    spot_before = get_spot_price(pool, buy_outcome)

    if sell_outcome is Outcome.NO:
        new_no = pool.no_reserves + amount_in
        new_yes = pool.k // new_no
        amount_out = pool.yes_reserves - new_yes
    else:
        new_yes = pool.yes_reserves + amount_in
        new_no = pool.k // new_yes
        amount_out = pool.no_reserves - new_no

    if amount_out <= 0 or new_yes <= 0 or new_no <= 0:
        raise InsufficientLiquidityError(
            f"Insufficient liquidity: selling {amount_in} {sell_outcome.value} "
            f"yields {amount_out} {buy_outcome.value}"
        )

    new_pool = replace(pool, yes_reserves=new_yes, no_reserves=new_no, updated_at=utc_now())
    spot_after = get_spot_price(new_pool, buy_outcome)

    logger.debug(
        "swap market=%s in=%d %s out=%d %s reserves=(%d, %d)",
        pool.market_id, amount_in, sell_outcome.value, amount_out, buy_outcome.value,
        new_yes, new_no,
    )
    return SwapResult(
        amount_out=amount_out,
        effective_price=amount_in / amount_out,
        price_impact=abs(spot_after - spot_before) / spot_before * 100,
        new_pool_state=new_pool,
    )


def try_calculate_swap(
    pool: PoolState, amount_in: int, sell_outcome: Outcome
) -> Ok[SwapResult] | Err:
    return capture(lambda: calculate_swap(pool, amount_in, sell_outcome))


def validate_price_cap(pool: PoolState) -> bool:
    """True iff neither outcome's implied price is above PRICE_CAP.

    Checked against the unclamped prices; the display clamp would otherwise
    hide every breach.
    """
    yes_price, no_price = _raw_prices(pool)
    return yes_price <= settings.PRICE_CAP and no_price <= settings.PRICE_CAP


def is_swap_allowed(pool: PoolState, amount_in: int, sell_outcome: Outcome) -> bool:
    result = try_calculate_swap(pool, amount_in, sell_outcome)
    if isinstance(result, Err):
        return False
    return validate_price_cap(result.value.new_pool_state)


def get_pool_summary(pool: PoolState) -> str:
    """Human-readable summary of reserves, prices and collateral."""
    prices = get_prices(pool)
    rule = "━" * 35
    return "\n".join([
        f"Pool: {pool.market_id}",
        rule,
        "Reserves:",
        f"  YES: {to_float(pool.yes_reserves)} shares",
        f"  NO:  {to_float(pool.no_reserves)} shares",
        f"  k:   {pool.k}",
        "",
        "Prices:",
        f"  YES: ${prices.yes_price:.4f} ({prices.yes_probability:.1f}%)",
        f"  NO:  ${prices.no_price:.4f} ({prices.no_probability:.1f}%)",
        "",
        f"Total Collateral: ${to_float(pool.total_collateral)} USDC",
        f"Virtual Liquidity: ${to_float(pool.virtual_liquidity)} USDC",
        rule,
    ])
