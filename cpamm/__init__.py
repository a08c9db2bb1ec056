"""cpamm - constant-product AMM liquidity pool."""

from cpamm.config import DEFAULT_POOL_CONFIG, FirstDepositPolicy, PoolConfig, RatioPolicy
from cpamm.errors import PoolErrorKind
from cpamm.pool import LiquidityPool
from cpamm.result import OperationResult
from cpamm.state import Asset, PoolState, PoolStatus

__version__ = "0.1.0"
__all__ = [
    "Asset",
    "DEFAULT_POOL_CONFIG",
    "FirstDepositPolicy",
    "LiquidityPool",
    "OperationResult",
    "PoolConfig",
    "PoolErrorKind",
    "PoolState",
    "PoolStatus",
    "RatioPolicy",
    "__version__",
]
