"""PoolManager — per-market orchestrator over the pool, betting and settlement engines.

The engines are pure functions over immutable PoolState values. This class owns
the only mutable state: one ManagedMarket per market id, each guarded by its own
asyncio.Lock so at most one mutating operation per market is in flight. Reads
take a snapshot of the current PoolState and need no lock.
"""
import asyncio
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime

from src.pm_amm.domain.mint_swap import (
    get_position_value,
    place_bet,
    place_safe_mode_bet,
    quote_bet,
    sell_position,
)
from src.pm_amm.domain.models import (
    BetQuote,
    BetResult,
    PoolConfig,
    PoolPrices,
    PoolState,
    PositionValue,
    SellResult,
)
from src.pm_amm.domain.pool import create_pool, get_prices
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import MarketStatus, Outcome
from src.pm_common.errors import (
    InsufficientPositionError,
    MarketAlreadyExistsError,
    MarketNotActiveError,
    MarketNotFoundError,
    MarketNotResolvedError,
    OracleNotAllowedError,
)
from src.pm_settlement.domain.models import MarketResolution, MarketSettlement, UserPosition
from src.pm_settlement.domain.settlement import (
    assert_pool_solvency,
    calculate_market_settlement,
    finalize_pool,
    verify_oracle_source,
)

logger = logging.getLogger(__name__)


@dataclass
class BetRecord:
    bet_id: str
    timestamp: datetime
    usdc_amount: int
    outcome: Outcome
    shares_received: int
    effective_price: float


@dataclass
class ManagedPosition:
    yes_shares: int = 0
    no_shares: int = 0
    total_cost_basis: int = 0
    bets: list[BetRecord] = field(default_factory=list)

    def shares_of(self, outcome: Outcome) -> int:
        return self.yes_shares if outcome is Outcome.YES else self.no_shares


@dataclass
class ManagedMarket:
    pool: PoolState
    positions: dict[str, ManagedPosition] = field(default_factory=dict)
    status: MarketStatus = MarketStatus.ACTIVE
    resolution: MarketResolution | None = None
    settlement: MarketSettlement | None = None


class PoolManager:
    def __init__(self, allowed_oracles: list[str] | None = None) -> None:
        self._markets: dict[str, ManagedMarket] = {}
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._allowed_oracles = allowed_oracles

    def _get_or_create_lock(self, market_id: str) -> asyncio.Lock:
        return self._market_locks[market_id]

    def _get_market_lock(self, market_id: str) -> asyncio.Lock:
        # markets are never removed; unknown ids never get a lock entry
        if market_id not in self._markets:
            raise MarketNotFoundError(market_id)
        return self._market_locks[market_id]

    def _get_market(self, market_id: str) -> ManagedMarket:
        managed = self._markets.get(market_id)
        if managed is None:
            raise MarketNotFoundError(market_id)
        return managed

    def _get_active_market(self, market_id: str) -> ManagedMarket:
        managed = self._get_market(market_id)
        if managed.status is not MarketStatus.ACTIVE:
            raise MarketNotActiveError(market_id, managed.status.value)
        return managed

    # --- Mutations (serialized per market) ---

    async def create_market(self, config: PoolConfig) -> PoolState:
        pool = create_pool(config)
        async with self._get_or_create_lock(config.market_id):
            if config.market_id in self._markets:
                raise MarketAlreadyExistsError(config.market_id)
            self._markets[config.market_id] = ManagedMarket(pool=pool)
        logger.info(
            "Created market: %s liquidity=%d virtual=%d",
            config.market_id, config.initial_liquidity, pool.virtual_liquidity,
        )
        return pool

    async def place_bet(
        self, market_id: str, user_id: str, usdc_amount: int, bet_on: Outcome
    ) -> BetResult:
        async with self._get_market_lock(market_id):
            managed = self._get_active_market(market_id)
            result = place_bet(managed.pool, usdc_amount, bet_on)
            self._record_bet(managed, user_id, result)
        logger.info(
            "Bet placed: market=%s user=%s usdc=%d on=%s shares=%d",
            market_id, user_id, usdc_amount, bet_on.value, result.total_shares,
        )
        return result

    async def place_safe_mode_bet(
        self,
        market_id: str,
        user_id: str,
        principal_balance: int,
        accrued_yield: int,
        yield_percent_to_bet: float,
        bet_on: Outcome,
    ) -> BetResult | None:
        async with self._get_market_lock(market_id):
            managed = self._get_active_market(market_id)
            result = place_safe_mode_bet(
                managed.pool, principal_balance, accrued_yield, yield_percent_to_bet, bet_on
            )
            if result is None:
                return None
            self._record_bet(managed, user_id, result)
        logger.info(
            "Safe-mode bet placed: market=%s user=%s usdc=%d on=%s",
            market_id, user_id, result.usdc_in, bet_on.value,
        )
        return result

    def _record_bet(self, managed: ManagedMarket, user_id: str, result: BetResult) -> None:
        managed.pool = result.new_pool_state
        position = managed.positions.setdefault(user_id, ManagedPosition())
        if result.outcome is Outcome.YES:
            position.yes_shares += result.total_shares
        else:
            position.no_shares += result.total_shares
        position.total_cost_basis += result.usdc_in
        position.bets.append(BetRecord(
            bet_id=str(uuid.uuid4()),
            timestamp=utc_now(),
            usdc_amount=result.usdc_in,
            outcome=result.outcome,
            shares_received=result.total_shares,
            effective_price=result.effective_price,
        ))

    async def sell_position(
        self, market_id: str, user_id: str, shares_amount: int, outcome: Outcome
    ) -> SellResult:
        async with self._get_market_lock(market_id):
            managed = self._get_active_market(market_id)
            position = managed.positions.get(user_id)
            held = position.shares_of(outcome) if position else 0
            if position is None or held < shares_amount:
                raise InsufficientPositionError(held, shares_amount)

            result = sell_position(managed.pool, shares_amount, outcome)
            managed.pool = result.new_pool_state
            if outcome is Outcome.YES:
                position.yes_shares -= shares_amount
            else:
                position.no_shares -= shares_amount
        logger.info(
            "Position sold: market=%s user=%s shares=%d %s usdc_out=%d",
            market_id, user_id, shares_amount, outcome.value, result.usdc_out,
        )
        return result

    async def resolve_market(self, resolution: MarketResolution) -> None:
        """ACTIVE -> RESOLVED, only if the oracle is allowed and the pool is solvent."""
        market_id = resolution.market_id
        async with self._get_market_lock(market_id):
            managed = self._get_active_market(market_id)
            if self._allowed_oracles is not None and not verify_oracle_source(
                resolution, self._allowed_oracles
            ):
                raise OracleNotAllowedError(resolution.oracle_source)
            assert_pool_solvency(
                managed.pool, self.get_all_positions(market_id), resolution.winning_outcome
            )
            finalized = finalize_pool(managed.pool, resolution)
            managed.pool = finalized.pool
            managed.resolution = finalized.resolution
            managed.status = MarketStatus.RESOLVED
        logger.info(
            "Market resolved: %s outcome=%s oracle=%s",
            market_id, resolution.winning_outcome.value, resolution.oracle_source,
        )

    async def cancel_market(self, market_id: str) -> None:
        async with self._get_market_lock(market_id):
            managed = self._get_active_market(market_id)
            managed.status = MarketStatus.CANCELLED
        logger.info("Market cancelled: %s", market_id)

    async def settle_market(self, market_id: str) -> MarketSettlement:
        """RESOLVED -> SETTLED. Settling an already settled market returns the same result."""
        async with self._get_market_lock(market_id):
            managed = self._get_market(market_id)
            if managed.status is MarketStatus.SETTLED and managed.settlement is not None:
                return managed.settlement
            if managed.status is not MarketStatus.RESOLVED or managed.resolution is None:
                raise MarketNotResolvedError(market_id, managed.status.value)
            settlement = calculate_market_settlement(
                self.get_all_positions(market_id), managed.resolution
            )
            managed.settlement = settlement
            managed.status = MarketStatus.SETTLED
        logger.info(
            "Market settled: %s users=%d payout=%d fee=%d",
            market_id, len(settlement.user_payouts),
            settlement.total_payout, settlement.protocol_fee_collected,
        )
        return settlement

    # --- Reads (snapshot, no lock) ---

    def get_pool(self, market_id: str) -> PoolState | None:
        managed = self._markets.get(market_id)
        return managed.pool if managed else None

    def get_status(self, market_id: str) -> MarketStatus | None:
        managed = self._markets.get(market_id)
        return managed.status if managed else None

    def get_prices(self, market_id: str) -> PoolPrices | None:
        pool = self.get_pool(market_id)
        return get_prices(pool) if pool else None

    def get_active_markets(self) -> list[PoolState]:
        return [m.pool for m in self._markets.values() if m.status is MarketStatus.ACTIVE]

    def quote_bet(self, market_id: str, usdc_amount: int, bet_on: Outcome) -> BetQuote | None:
        managed = self._markets.get(market_id)
        if managed is None or managed.status is not MarketStatus.ACTIVE:
            return None
        return quote_bet(managed.pool, usdc_amount, bet_on)

    def get_position(self, market_id: str, user_id: str) -> UserPosition | None:
        managed = self._markets.get(market_id)
        if managed is None or user_id not in managed.positions:
            return None
        return self._to_user_position(market_id, user_id, managed.positions[user_id])

    def get_bets(self, market_id: str, user_id: str) -> list[BetRecord]:
        managed = self._markets.get(market_id)
        if managed is None or user_id not in managed.positions:
            return []
        return list(managed.positions[user_id].bets)

    def get_all_positions(self, market_id: str) -> list[UserPosition]:
        managed = self._markets.get(market_id)
        if managed is None:
            return []
        return [
            self._to_user_position(market_id, user_id, pos)
            for user_id, pos in managed.positions.items()
        ]

    def get_position_value(self, market_id: str, user_id: str) -> PositionValue | None:
        managed = self._markets.get(market_id)
        position = self.get_position(market_id, user_id)
        if managed is None or position is None:
            return None
        return get_position_value(position.yes_shares, position.no_shares, managed.pool)

    @staticmethod
    def _to_user_position(market_id: str, user_id: str, pos: ManagedPosition) -> UserPosition:
        return UserPosition(
            user_id=user_id,
            market_id=market_id,
            yes_shares=pos.yes_shares,
            no_shares=pos.no_shares,
            total_cost_basis=pos.total_cost_basis,
        )
