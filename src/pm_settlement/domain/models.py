"""Domain models for pm_settlement — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime

from src.pm_amm.domain.models import PoolState
from src.pm_common.enums import Outcome


@dataclass(frozen=True)
class UserPosition:
    user_id: str
    market_id: str
    yes_shares: int = 0
    no_shares: int = 0
    total_cost_basis: int = 0   # USDC spent, cumulative


@dataclass(frozen=True)
class MarketResolution:
    market_id: str
    winning_outcome: Outcome
    resolved_at: datetime
    oracle_source: str          # provenance only, not verified here
    oracle_data: str | None = None


@dataclass(frozen=True)
class UserSettlement:
    user_id: str
    winning_shares: int
    losing_shares: int
    gross_payout: int
    protocol_fee: int
    net_payout: int
    profit_loss: int            # signed, net_payout - cost basis


@dataclass(frozen=True)
class MarketSettlement:
    market_id: str
    resolution: MarketResolution
    user_payouts: list[UserSettlement] = field(default_factory=list)
    total_payout: int = 0
    protocol_fee_collected: int = 0


@dataclass(frozen=True)
class SettlementProof:
    encoded_proof: str          # base64 of the canonical JSON
    proof_hash: str             # 0x-prefixed sha256 of the canonical JSON
    pnl: int


@dataclass(frozen=True)
class FinalizedPool:
    """A pool closed to trading by a resolution."""

    pool: PoolState
    resolution: MarketResolution
