"""Market settlement — payouts, protocol fee, solvency and audit proofs.

Winner-take-all: on YES, 1 YES share = 1 USDC and 1 NO share = 0 (and vice
versa). Losing shares pay nothing regardless of cost basis.
"""

import base64
import hashlib
import json
import logging
from dataclasses import replace
from typing import Any

from config.settings import settings
from src.pm_amm.domain.mint_swap import calculate_payout
from src.pm_amm.domain.models import PoolState
from src.pm_common.datetime_utils import to_epoch_ms, utc_now
from src.pm_common.enums import Outcome
from src.pm_common.errors import MarketIdMismatchError, SolvencyCheckFailedError
from src.pm_common.usdc import to_float, usdc_to_display
from src.pm_settlement.domain.fee import calc_protocol_fee
from src.pm_settlement.domain.models import (
    FinalizedPool,
    MarketResolution,
    MarketSettlement,
    SettlementProof,
    UserPosition,
    UserSettlement,
)

logger = logging.getLogger(__name__)


def _split_shares(position: UserPosition, winning_outcome: Outcome) -> tuple[int, int]:
    """(winning_shares, losing_shares)"""
    if winning_outcome is Outcome.YES:
        return position.yes_shares, position.no_shares
    return position.no_shares, position.yes_shares


def calculate_user_settlement(
    position: UserPosition,
    winning_outcome: Outcome,
    apply_fee: bool = True,
) -> UserSettlement:
    winning_shares, losing_shares = _split_shares(position, winning_outcome)
    gross_payout = calculate_payout(winning_shares)
    protocol_fee = (
        calc_protocol_fee(gross_payout, position.total_cost_basis, settings.PROTOCOL_FEE_BPS)
        if apply_fee
        else 0
    )
    net_payout = gross_payout - protocol_fee
    return UserSettlement(
        user_id=position.user_id,
        winning_shares=winning_shares,
        losing_shares=losing_shares,
        gross_payout=gross_payout,
        protocol_fee=protocol_fee,
        net_payout=net_payout,
        profit_loss=net_payout - position.total_cost_basis,
    )


def calculate_market_settlement(
    positions: list[UserPosition],
    resolution: MarketResolution,
) -> MarketSettlement:
    """Settle every position of the resolved market; other markets' positions are skipped."""
    payouts: list[UserSettlement] = []
    total_payout = 0
    fee_collected = 0
    for position in positions:
        if position.market_id != resolution.market_id:
            continue
        settlement = calculate_user_settlement(position, resolution.winning_outcome)
        payouts.append(settlement)
        total_payout += settlement.net_payout
        fee_collected += settlement.protocol_fee

    logger.debug(
        "settlement market=%s users=%d payout=%d fee=%d",
        resolution.market_id, len(payouts), total_payout, fee_collected,
    )
    return MarketSettlement(
        market_id=resolution.market_id,
        resolution=resolution,
        user_payouts=payouts,
        total_payout=total_payout,
        protocol_fee_collected=fee_collected,
    )


def _total_winning_shares(
    pool: PoolState, positions: list[UserPosition], winning_outcome: Outcome
) -> int:
    return sum(
        _split_shares(p, winning_outcome)[0]
        for p in positions
        if p.market_id == pool.market_id
    )


def validate_pool_solvency(
    pool: PoolState,
    positions: list[UserPosition],
    winning_outcome: Outcome,
) -> bool:
    """True iff total_collateral covers every winning share at 1 USDC."""
    return _total_winning_shares(pool, positions, winning_outcome) <= pool.total_collateral


def assert_pool_solvency(
    pool: PoolState,
    positions: list[UserPosition],
    winning_outcome: Outcome,
) -> None:
    """Raise SolvencyCheckFailedError if the pool cannot pay its winners.

    A failure means upstream accounting is corrupt; resolution must halt.
    """
    required = _total_winning_shares(pool, positions, winning_outcome)
    if required > pool.total_collateral:
        logger.error(
            "Solvency violated: market=%s winning_shares=%d collateral=%d",
            pool.market_id, required, pool.total_collateral,
        )
        raise SolvencyCheckFailedError(pool.market_id, required, pool.total_collateral)


def finalize_pool(pool: PoolState, resolution: MarketResolution) -> FinalizedPool:
    if pool.market_id != resolution.market_id:
        raise MarketIdMismatchError(pool.market_id, resolution.market_id)
    return FinalizedPool(pool=replace(pool, updated_at=utc_now()), resolution=resolution)


def verify_oracle_source(resolution: MarketResolution, allowed_oracles: list[str]) -> bool:
    return resolution.oracle_source in allowed_oracles


# --- Proofs ---
#
# Canonical form: JSON, sorted keys, no whitespace, ints as decimal strings,
# timestamps as epoch milliseconds. No wall-clock input, so two parties with
# the same settlement data produce byte-identical proofs.

def _canonical_json(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode()


def _user_settlement_payload(settlement: UserSettlement) -> dict[str, Any]:
    return {
        "userId": settlement.user_id,
        "winningShares": str(settlement.winning_shares),
        "losingShares": str(settlement.losing_shares),
        "grossPayout": str(settlement.gross_payout),
        "protocolFee": str(settlement.protocol_fee),
        "netPayout": str(settlement.net_payout),
        "pnl": str(settlement.profit_loss),
    }


def _build_proof(payload: dict[str, Any], pnl: int) -> SettlementProof:
    canonical = _canonical_json(payload)
    return SettlementProof(
        encoded_proof=base64.b64encode(canonical).decode("ascii"),
        proof_hash="0x" + hashlib.sha256(canonical).hexdigest(),
        pnl=pnl,
    )


def generate_settlement_proof(
    settlement: UserSettlement,
    market_id: str,
    session_id: str,
    resolution: MarketResolution,
) -> SettlementProof:
    """Proof of one user's settlement, for on-chain or off-chain verification."""
    if resolution.market_id != market_id:
        raise MarketIdMismatchError(market_id, resolution.market_id)
    payload = _user_settlement_payload(settlement)
    payload.update({
        "sessionId": session_id,
        "marketId": market_id,
        "winningOutcome": resolution.winning_outcome.value,
        "resolvedAt": to_epoch_ms(resolution.resolved_at),
    })
    return _build_proof(payload, settlement.profit_loss)


def generate_market_settlement_proof(settlement: MarketSettlement) -> SettlementProof:
    """Proof over a whole market settlement; user order is normalised by user_id."""
    resolution = settlement.resolution
    payload = {
        "marketId": settlement.market_id,
        "winningOutcome": resolution.winning_outcome.value,
        "resolvedAt": to_epoch_ms(resolution.resolved_at),
        "oracleSource": resolution.oracle_source,
        "userPayouts": [
            _user_settlement_payload(u)
            for u in sorted(settlement.user_payouts, key=lambda u: u.user_id)
        ],
        "totalPayout": str(settlement.total_payout),
        "protocolFeeCollected": str(settlement.protocol_fee_collected),
    }
    pnl = sum(u.profit_loss for u in settlement.user_payouts)
    return _build_proof(payload, pnl)


def format_settlement_summary(settlement: MarketSettlement) -> str:
    double_rule = "═" * 63
    rule = "─" * 63
    resolution = settlement.resolution
    lines = [
        double_rule,
        f"MARKET SETTLEMENT: {settlement.market_id}",
        double_rule,
        f"Winning Outcome: {resolution.winning_outcome.value}",
        f"Resolved At: {resolution.resolved_at.isoformat()}",
        f"Oracle: {resolution.oracle_source}",
        "",
        "USER PAYOUTS:",
        rule,
    ]
    for payout in settlement.user_payouts:
        pnl_sign = "+" if payout.profit_loss >= 0 else ""
        lines.extend([
            f"  {payout.user_id}:",
            f"    Winning Shares: {to_float(payout.winning_shares)}",
            f"    Net Payout: {usdc_to_display(payout.net_payout)}",
            f"    P&L: {pnl_sign}{usdc_to_display(payout.profit_loss)}",
        ])
    lines.extend([
        rule,
        f"Total Payout: {usdc_to_display(settlement.total_payout)}",
        f"Protocol Fee: {usdc_to_display(settlement.protocol_fee_collected)}",
        double_rule,
    ])
    return "\n".join(lines)
