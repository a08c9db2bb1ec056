"""Pool configuration."""

from dataclasses import dataclass
from enum import Enum

from cpamm.safe_int import BALANCE_MAX


class FirstDepositPolicy(str, Enum):
    """How shares are minted when the pool holds no shares."""

    # min(amount_a, amount_b)
    MIN = "min"
    # isqrt(amount_a * amount_b); the Uniswap V2 convention
    GEOMETRIC_MEAN = "geometric_mean"


class RatioPolicy(str, Enum):
    """How a non-first deposit's amount_b is checked against the reserves."""

    # Accept amount_b as given; a depositor may reprice the pool
    ACCEPT = "accept"
    # amount_b must equal ceil(amount_a * reserve_b / reserve_a)
    STRICT = "strict"


@dataclass(frozen=True)
class PoolConfig:
    """Centralized configuration for a liquidity pool.

    Attributes:
        first_deposit_policy: Share minting rule for the first deposit
            (default: MIN).
        ratio_policy: Whether later deposits must match the reserve ratio
            (default: ACCEPT).
        balance_max: Largest value any reserve, share total or transfer may
            hold (default: 2**128 - 1).
    """

    first_deposit_policy: FirstDepositPolicy = FirstDepositPolicy.MIN
    ratio_policy: RatioPolicy = RatioPolicy.ACCEPT
    balance_max: int = BALANCE_MAX


# Default configuration instance
DEFAULT_POOL_CONFIG = PoolConfig()
