"""Protocol fee on settlement — charged on profit, never on returned stake."""

from src.pm_common.usdc import bps_floor


def calc_protocol_fee(gross_payout: int, cost_basis: int, fee_bps: int) -> int:
    """floor(profit x fee_bps / 10000); zero when the payout is not a profit."""
    if gross_payout <= cost_basis:
        return 0
    return bps_floor(gross_payout - cost_basis, fee_bps)
