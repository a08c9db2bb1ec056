"""Base classes for AMM pricing implementations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from cpamm.state import Asset, PoolDelta


@dataclass(frozen=True)
class SwapResult:
    """Result of simulating a swap against a pool state."""

    asset_in: Asset
    amount_in: int
    amount_out: int
    # Constant product before and after the swap would be applied
    k_before: int
    k_after: int

    @property
    def asset_out(self) -> Asset:
        return self.asset_in.other

    @property
    def delta(self) -> PoolDelta:
        """Reserve change: reserve_in += amount_in, reserve_out -= amount_out."""
        if self.asset_in is Asset.A:
            return PoolDelta(reserve_a=self.amount_in, reserve_b=-self.amount_out)
        return PoolDelta(reserve_a=-self.amount_out, reserve_b=self.amount_in)


class AMM(ABC):
    """Abstract base class for pool pricing curves.

    Implementations are direction agnostic: callers decide which reserve
    plays "in" and which plays "out".
    """

    @abstractmethod
    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
    ) -> int:
        """Calculate output amount for a given input.

        Args:
            amount_in: Input asset amount
            reserve_in: Reserve of input asset in pool
            reserve_out: Reserve of output asset in pool

        Returns:
            Output asset amount
        """
        ...

    @abstractmethod
    def get_amount_in(
        self,
        amount_out: int,
        reserve_in: int,
        reserve_out: int,
    ) -> int:
        """Calculate required input for a desired output.

        Args:
            amount_out: Desired output asset amount
            reserve_in: Reserve of input asset in pool
            reserve_out: Reserve of output asset in pool

        Returns:
            Required input asset amount
        """
        ...
