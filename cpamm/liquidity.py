"""Liquidity engine: shares minted on deposit, amounts returned on withdrawal.

Both computations are pure. They return a LiquidityChange whose `delta`
the pool facade applies once the matching transfers have succeeded.

Rounding always favours the pool:
- deposits mint floor(amount_a * total_shares / reserve_a)
- withdrawals return floor(shares * reserve / total_shares) of each asset;
  the remainder stays with the remaining holders
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import structlog

from cpamm.config import DEFAULT_POOL_CONFIG, FirstDepositPolicy, PoolConfig, RatioPolicy
from cpamm.errors import InsufficientShares, InvalidAmount
from cpamm.safe_int import S
from cpamm.state import PoolDelta, PoolState

logger = structlog.get_logger()


@dataclass(frozen=True)
class LiquidityChange:
    """A computed, not yet applied, deposit or withdrawal."""

    provider: str
    shares: int
    amount_a: int
    amount_b: int
    is_deposit: bool

    @property
    def delta(self) -> PoolDelta:
        sign = 1 if self.is_deposit else -1
        return PoolDelta(
            reserve_a=sign * self.amount_a,
            reserve_b=sign * self.amount_b,
            shares=sign * self.shares,
            provider=self.provider,
        )


def first_deposit_shares(amount_a: int, amount_b: int, policy: FirstDepositPolicy) -> int:
    """Shares minted into an empty pool.

    The first depositor sets the initial exchange rate; this rule decides
    how many shares that rate is worth.
    """
    if policy is FirstDepositPolicy.GEOMETRIC_MEAN:
        return math.isqrt(amount_a * amount_b)
    return min(amount_a, amount_b)


def implied_amount_b(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Asset B required to match amount_a at the current reserve ratio (rounded up)."""
    return (S(amount_a) * S(reserve_b)).ceiling_div(reserve_a).value


def compute_deposit(
    state: PoolState,
    provider: str,
    amount_a: int,
    amount_b: int,
    config: PoolConfig = DEFAULT_POOL_CONFIG,
) -> LiquidityChange:
    """Compute the shares minted for a deposit.

    Args:
        state: Current pool state (not modified)
        provider: Depositor identity
        amount_a: Amount of asset A deposited
        amount_b: Amount of asset B deposited
        config: Share minting and ratio policies

    Returns:
        LiquidityChange describing the deposit

    Raises:
        InvalidAmount: If an amount is not positive, the deposit mints no
            shares, or it breaks the reserve ratio under RatioPolicy.STRICT
        BalanceOverflow: If an amount does not fit in the balance type
    """
    if amount_a <= 0 or amount_b <= 0:
        raise InvalidAmount(f"Deposit amounts must be positive: ({amount_a}, {amount_b})")
    S(amount_a).to_balance(config.balance_max)
    S(amount_b).to_balance(config.balance_max)

    if state.total_shares == 0:
        shares = first_deposit_shares(amount_a, amount_b, config.first_deposit_policy)
    else:
        if config.ratio_policy is RatioPolicy.STRICT:
            expected_b = implied_amount_b(amount_a, state.reserve_a, state.reserve_b)
            if amount_b != expected_b:
                raise InvalidAmount(
                    f"amount_b ({amount_b}) does not match reserve ratio (expected {expected_b})"
                )
        shares = ((S(amount_a) * S(state.total_shares)) // S(state.reserve_a)).value

    if shares <= 0:
        raise InvalidAmount(f"Deposit ({amount_a}, {amount_b}) is too small to mint shares")

    return LiquidityChange(
        provider=provider,
        shares=shares,
        amount_a=amount_a,
        amount_b=amount_b,
        is_deposit=True,
    )


def compute_withdrawal(
    state: PoolState,
    provider: str,
    shares: int,
) -> LiquidityChange:
    """Compute the asset amounts returned for burning shares.

    Args:
        state: Current pool state (not modified)
        provider: Withdrawer identity
        shares: Shares to burn

    Returns:
        LiquidityChange describing the withdrawal

    Raises:
        InvalidAmount: If shares is not positive
        InsufficientShares: If the provider holds fewer shares, or the pool has none
    """
    if shares <= 0:
        raise InvalidAmount(f"Shares must be positive: {shares}")

    held = state.shares_of(provider)
    if state.total_shares <= 0 or held < shares:
        raise InsufficientShares(f"Provider {provider} holds {held} shares, requested {shares}")

    amount_a = ((S(shares) * S(state.reserve_a)) // S(state.total_shares)).value
    amount_b = ((S(shares) * S(state.reserve_b)) // S(state.total_shares)).value

    if amount_a == 0 and amount_b == 0:
        logger.debug("withdrawal_rounds_to_zero", provider=provider, shares=shares)

    return LiquidityChange(
        provider=provider,
        shares=shares,
        amount_a=amount_a,
        amount_b=amount_b,
        is_deposit=False,
    )


__all__ = [
    "LiquidityChange",
    "first_deposit_shares",
    "implied_amount_b",
    "compute_deposit",
    "compute_withdrawal",
]
