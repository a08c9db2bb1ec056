"""Pool state record.

PoolState holds the two reserves, the outstanding share supply and the
provider -> shares ledger. It has no public mutation API besides apply(),
which commits a PoolDelta staged by the liquidity or swap engine.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum

from cpamm.errors import InvariantViolation
from cpamm.safe_int import BALANCE_MAX, S


class Asset(str, Enum):
    """The two pooled assets."""

    A = "A"
    B = "B"

    @property
    def other(self) -> Asset:
        return Asset.B if self is Asset.A else Asset.A


class PoolStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"


@dataclass(frozen=True)
class PoolDelta:
    """Signed change to a PoolState, staged before any transfer happens."""

    reserve_a: int = 0
    reserve_b: int = 0
    shares: int = 0
    # Provider whose position changes by `shares` (None for swaps)
    provider: str | None = None


@dataclass
class PoolState:
    """Reserves and share accounting of a two-asset pool."""

    reserve_a: int = 0
    reserve_b: int = 0
    total_shares: int = 0
    positions: dict[str, int] = field(default_factory=dict)
    # Set by the first deposit; there is no way back to UNINITIALIZED
    initialized: bool = False

    @property
    def status(self) -> PoolStatus:
        return PoolStatus.ACTIVE if self.initialized else PoolStatus.UNINITIALIZED

    def reserves(self) -> tuple[int, int]:
        """Get reserves as (reserve_a, reserve_b)."""
        return self.reserve_a, self.reserve_b

    def shares_of(self, provider: str) -> int:
        return self.positions.get(provider, 0)

    def reserve_of(self, asset: Asset) -> int:
        return self.reserve_a if asset is Asset.A else self.reserve_b

    def get_reserves(self, asset_in: Asset) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        return self.reserve_of(asset_in), self.reserve_of(asset_in.other)

    @property
    def product(self) -> int:
        """The constant-product k = reserve_a * reserve_b."""
        return self.reserve_a * self.reserve_b

    def copy(self) -> PoolState:
        return copy.deepcopy(self)

    def apply(self, delta: PoolDelta, max_value: int = BALANCE_MAX) -> None:
        """Commit a staged delta.

        All new values are computed and width-checked before any field is
        assigned, so a failing delta leaves the state untouched.

        Raises:
            Underflow: If a reserve, the share total or a position would go negative
            BalanceOverflow: If a value would not fit in max_value
        """
        new_a = _shift(self.reserve_a, delta.reserve_a, max_value)
        new_b = _shift(self.reserve_b, delta.reserve_b, max_value)
        new_total = _shift(self.total_shares, delta.shares, max_value)

        new_position = None
        if delta.provider is not None:
            new_position = _shift(self.shares_of(delta.provider), delta.shares, max_value)

        self.reserve_a = new_a
        self.reserve_b = new_b
        self.total_shares = new_total
        if delta.provider is not None:
            if new_position:
                self.positions[delta.provider] = new_position
            else:
                self.positions.pop(delta.provider, None)
        if delta.shares > 0:
            self.initialized = True

    def check_invariants(self) -> None:
        """Verify the share and reserve invariants.

        Raises:
            InvariantViolation: If any invariant does not hold
        """
        if any(shares <= 0 for shares in self.positions.values()):
            raise InvariantViolation(f"Non-positive position in {self.positions}")
        if sum(self.positions.values()) != self.total_shares:
            raise InvariantViolation(
                f"Positions sum to {sum(self.positions.values())}, "
                f"total_shares is {self.total_shares}"
            )
        if self.total_shares > 0 and (self.reserve_a <= 0 or self.reserve_b <= 0):
            raise InvariantViolation(
                f"Outstanding shares {self.total_shares} with reserves {self.reserves()}"
            )


def _shift(value: int, change: int, max_value: int) -> int:
    """Apply a signed change with underflow and width checks."""
    if change >= 0:
        return (S(value) + S(change)).to_balance(max_value)
    return (S(value) - S(-change)).to_balance(max_value)


__all__ = ["Asset", "PoolStatus", "PoolDelta", "PoolState"]
