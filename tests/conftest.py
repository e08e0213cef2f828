"""Shared test fixtures."""

import pytest

from src.pm_amm.application.pool_manager import PoolManager
from src.pm_amm.domain.models import PoolConfig, PoolState
from src.pm_amm.domain.pool import create_pool
from src.pm_common.usdc import usdc


@pytest.fixture
def pool() -> PoolState:
    """1000/1000 pool, no virtual liquidity: the reference betting scenario."""
    return create_pool(PoolConfig(
        market_id="mkt-1",
        initial_liquidity=usdc(1000),
        virtual_liquidity=0,
    ))


@pytest.fixture
def manager() -> PoolManager:
    return PoolManager()
