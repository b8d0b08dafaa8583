"""
Pytest fixtures for pricing engine tests.
"""

import pytest

from ammcore.amms.stableswap import StableSwapPool, StableSwapSnapshot
from ammcore.amms.univ3 import ConcentratedLiquidityPool
from ammcore.utils.config import Config
from ammcore.utils.fixed_point import A_PRECISION


@pytest.fixture(autouse=True)
def reset_config():
    """Restore default configuration after every test."""
    yield
    Config.reset()


@pytest.fixture
def amp():
    """A = 100, scaled by A_PRECISION."""
    return 100 * A_PRECISION


@pytest.fixture
def balanced_xp():
    """Two-token basket of 1M tokens each, 18 decimals."""
    return [1_000_000 * 10**18, 1_000_000 * 10**18]


@pytest.fixture
def imbalanced_xp():
    """Two-token basket tilted 1:3."""
    return [1_000_000 * 10**18, 3_000_000 * 10**18]


@pytest.fixture
def tripool_xp():
    """Three-token basket, slightly uneven."""
    return [1_000_000 * 10**18, 1_200_000 * 10**18, 900_000 * 10**18]


@pytest.fixture
def stable_pool():
    """Two-token pool (18 and 6 decimals), A = 100, default fees."""
    return StableSwapPool(decimals=[18, 6], amplification=100)


@pytest.fixture
def seeded_snapshot(stable_pool):
    """Pool state after an initial deposit of 1M of each token."""
    snapshot, _ = stable_pool.add_liquidity(
        StableSwapSnapshot.empty(2),
        [1_000_000 * 10**18, 1_000_000 * 10**6],
        now=0,
    )
    return snapshot


@pytest.fixture
def v3_pool():
    """0.3% fee tier pool, tick spacing 60."""
    return ConcentratedLiquidityPool(fee=3000)
