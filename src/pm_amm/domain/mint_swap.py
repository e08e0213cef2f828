"""Mint & Swap — the betting primitive, plus its inverse and position helpers.

Betting 100 USDC on YES against a 1000/1000 pool:
  1. Mint:  100 USDC -> 100 YES + 100 NO
  2. Swap:  100 NO sold into the pool -> ~90.909091 YES
  Result:   ~190.909091 YES, effective price ~0.5238
"""

import logging
import math
from dataclasses import replace

from config.settings import settings
from src.pm_amm.domain.models import (
    BetQuote,
    BetResult,
    PoolState,
    PositionValue,
    SellResult,
)
from src.pm_amm.domain.pool import (
    calculate_swap,
    get_prices,
    get_spot_price,
    validate_price_cap,
)
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import Outcome
from src.pm_common.errors import (
    InsufficientLiquidityError,
    InvalidArgumentError,
    PriceCapExceededError,
)
from src.pm_common.result import Err, Ok, capture
from src.pm_common.usdc import ONE_USDC, bps_ceil

logger = logging.getLogger(__name__)


def _probability(pool: PoolState, outcome: Outcome) -> float:
    prices = get_prices(pool)
    return prices.yes_probability if outcome is Outcome.YES else prices.no_probability


def place_bet(pool: PoolState, usdc_amount: int, bet_on: Outcome) -> BetResult:
    """Execute a Mint & Swap bet. All-or-nothing: a cap breach rejects the bet."""
    if usdc_amount <= 0:
        raise InvalidArgumentError(f"bet amount must be positive, got {usdc_amount}")

    # Step 1: mint, 1 USDC -> 1 YES + 1 NO
    minted_shares = usdc_amount

    # Step 2: sell the unwanted side into the pool
    swap = calculate_swap(pool, minted_shares, bet_on.opposite)
    if not validate_price_cap(swap.new_pool_state):
        raise PriceCapExceededError(bet_on.value, settings.PRICE_CAP)

    swapped_shares = swap.amount_out
    total_shares = minted_shares + swapped_shares
    new_pool = replace(
        swap.new_pool_state,
        total_collateral=pool.total_collateral + usdc_amount,
    )

    logger.debug(
        "bet market=%s usdc=%d on=%s minted=%d swapped=%d",
        pool.market_id, usdc_amount, bet_on.value, minted_shares, swapped_shares,
    )
    return BetResult(
        usdc_in=usdc_amount,
        outcome=bet_on,
        minted_shares=minted_shares,
        swapped_shares=swapped_shares,
        total_shares=total_shares,
        effective_price=usdc_amount / total_shares,
        new_probability=_probability(swap.new_pool_state, bet_on),
        new_pool_state=new_pool,
    )


def try_place_bet(pool: PoolState, usdc_amount: int, bet_on: Outcome) -> Ok[BetResult] | Err:
    return capture(lambda: place_bet(pool, usdc_amount, bet_on))


def quote_bet(pool: PoolState, usdc_amount: int, bet_on: Outcome) -> BetQuote | None:
    """Preview a bet without committing it. None if the bet would fail for any reason.

    price_impact here is the absolute change in the chosen outcome's probability
    (percentage points), unlike SwapResult.price_impact which is a relative %.
    """
    result = try_place_bet(pool, usdc_amount, bet_on)
    if isinstance(result, Err):
        return None
    bet = result.value
    return BetQuote(
        expected_shares=bet.total_shares,
        effective_price=bet.effective_price,
        price_impact=abs(bet.new_probability - _probability(pool, bet_on)),
    )


def _swap_in_for_burn(pool: PoolState, shares: int, outcome: Outcome) -> int:
    """Shares x to swap so that the opposite side received covers shares - x.

    Solves (R + x)(Q - (shares - x)) = k for x, where R is the sold side's
    reserves and Q the opposite side's:
        x = (sqrt((R - c)^2 + 4k) - (R + c)) / 2,   c = Q - shares
    starting from the floored root and stepping to the smallest x for which
    the truncating swap formula covers the burn. Returns shares if nothing can
    be burned.
    """
    sold = pool.reserves_of(outcome)
    other = pool.reserves_of(outcome.opposite)
    c = other - shares
    root = math.isqrt((sold - c) ** 2 + 4 * pool.k)
    x = min(max((root - (sold + c)) // 2, 0), shares)

    def covers(n: int) -> bool:
        return other - pool.k // (sold + n) >= shares - n

    while x > 0 and covers(x - 1):
        x -= 1
    while x < shares and not covers(x):
        x += 1
    return x


def sell_position(pool: PoolState, shares_amount: int, outcome: Outcome) -> SellResult:
    """Sell shares of `outcome` back to the pool for USDC.

    The inverse of Mint & Swap: part of the shares is swapped for the opposite
    side, then complete YES+NO pairs are burned for 1 USDC each. A SELL_FEE_BPS
    fee (ceiling) is withheld from the burned amount, so a buy immediately
    followed by a sell of the same shares always returns less than was paid.
    The caller must check the seller holds at least shares_amount.
    """
    if shares_amount <= 0:
        raise InvalidArgumentError(f"sell amount must be positive, got {shares_amount}")

    swapped = _swap_in_for_burn(pool, shares_amount, outcome)
    burned = shares_amount - swapped
    if burned <= 0:
        raise InsufficientLiquidityError(
            f"Insufficient liquidity: selling {shares_amount} {outcome.value} redeems nothing"
        )

    new_sold = pool.reserves_of(outcome) + swapped
    new_other = pool.reserves_of(outcome.opposite) - burned
    if new_other <= 0 or burned > pool.total_collateral:
        raise InsufficientLiquidityError(
            f"Insufficient liquidity: selling {shares_amount} {outcome.value} drains the pool"
        )

    fee = bps_ceil(burned, settings.SELL_FEE_BPS)
    usdc_out = burned - fee
    if usdc_out <= 0:
        raise InsufficientLiquidityError(
            f"Sell of {shares_amount} {outcome.value} is too small to cover the fee"
        )

    if outcome is Outcome.YES:
        new_yes, new_no = new_sold, new_other
    else:
        new_yes, new_no = new_other, new_sold
    new_pool = replace(
        pool,
        yes_reserves=new_yes,
        no_reserves=new_no,
        total_collateral=pool.total_collateral - burned,
        updated_at=utc_now(),
    )
    if not validate_price_cap(new_pool):
        raise PriceCapExceededError(outcome.opposite.value, settings.PRICE_CAP)

    spot_before = get_spot_price(pool, outcome)
    spot_after = get_spot_price(new_pool, outcome)

    logger.debug(
        "sell market=%s shares=%d %s swapped=%d burned=%d fee=%d",
        pool.market_id, shares_amount, outcome.value, swapped, burned, fee,
    )
    return SellResult(
        usdc_out=usdc_out,
        shares_sold=shares_amount,
        shares_swapped=swapped,
        pairs_burned=burned,
        fee=fee,
        effective_price=usdc_out / shares_amount,
        price_impact=abs(spot_after - spot_before) / spot_before * 100,
        new_pool_state=new_pool,
    )


def place_safe_mode_bet(
    pool: PoolState,
    principal_balance: int,
    accrued_yield: int,
    yield_percent_to_bet: float,
    bet_on: Outcome,
) -> BetResult | None:
    """Bet only a share of accrued yield, never principal.

    None when there is no yield to bet (a no-op, not an error).
    """
    if principal_balance <= 0:
        raise InvalidArgumentError("a vault deposit is required to use Safe Mode")
    if accrued_yield <= 0:
        return None
    if yield_percent_to_bet <= 0 or yield_percent_to_bet > 100:
        raise InvalidArgumentError(
            f"yield percentage must be in (0, 100], got {yield_percent_to_bet}"
        )

    # percentage kept to 2 decimals: 12.345% -> 1234 / 10000
    yield_to_bet = accrued_yield * math.floor(yield_percent_to_bet * 100) // 10_000
    if yield_to_bet <= 0:
        return None
    return place_bet(pool, yield_to_bet, bet_on)


def get_position_value(yes_shares: int, no_shares: int, pool: PoolState) -> PositionValue:
    """Mark-to-market value in USDC at current (clamped) spot prices."""
    prices = get_prices(pool)
    yes_value = yes_shares / ONE_USDC * prices.yes_price
    no_value = no_shares / ONE_USDC * prices.no_price
    return PositionValue(yes_value=yes_value, no_value=no_value, total_value=yes_value + no_value)


def calculate_payout(shares: int) -> int:
    """Each winning share redeems for exactly one USDC unit."""
    return shares
