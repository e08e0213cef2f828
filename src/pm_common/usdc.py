"""Integer arithmetic utilities for USDC-denominated quantities.

All amounts, reserves, and share counts are int scaled by 10**6 (USDC's
on-chain precision). Floats only ever appear as derived display values
(prices, probabilities, price impact) and never flow back into reserves.
"""

USDC_DECIMALS = 6
ONE_USDC = 10**USDC_DECIMALS
BPS_DENOMINATOR = 10_000


def usdc(whole: int) -> int:
    """Whole USDC to base units: usdc(100) -> 100_000_000."""
    return whole * ONE_USDC


def to_float(amount: int) -> float:
    """Base units to a float number of USDC/shares, display only."""
    return amount / ONE_USDC


def usdc_to_display(amount: int) -> str:
    """Convert base units to display string: 1_500_000 -> '$1.50', -250_000 -> '-$0.25'."""
    if amount < 0:
        return "-" + usdc_to_display(-amount)
    cents = (amount + ONE_USDC // 200) // (ONE_USDC // 100)  # round half up to cents
    return f"${cents // 100:,}.{cents % 100:02d}"


def bps_floor(amount: int, bps: int) -> int:
    """amount x bps / 10000, truncated (payer keeps the remainder)."""
    return amount * bps // BPS_DENOMINATOR


def bps_ceil(amount: int, bps: int) -> int:
    """Ceiling division fee: platform never loses to rounding.

    fee = ceil(amount * bps / 10000)
    Using integer ceiling: (a + b - 1) // b
    """
    if amount == 0 or bps == 0:
        return 0
    return (amount * bps + BPS_DENOMINATOR - 1) // BPS_DENOMINATOR
