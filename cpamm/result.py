"""Operation result types."""

from __future__ import annotations

from dataclasses import dataclass

from cpamm.errors import PoolErrorKind


@dataclass(frozen=True)
class OperationResult:
    """Result of a public pool operation.

    Every LiquidityPool operation returns one of these instead of raising,
    so a failed operation is an explicit value and the pool is known to be
    unchanged.

    Attributes:
        shares: Shares minted (add) or burned (remove), if applicable.
        amount_a: Asset A moved by the operation (in for add, out for remove).
        amount_b: Asset B moved by the operation.
        amount_in: Input amount of a swap.
        amount_out: Output amount of a swap.
        error: If the operation failed, the type of error that occurred.
        error_detail: Optional human-readable detail about the error.

    Examples:
        # Successful swap
        result = OperationResult(amount_in=100, amount_out=90)
        assert result.is_ok

        # Failure
        result = OperationResult.failure(PoolErrorKind.INSUFFICIENT_SHARES)
        assert result.is_error
    """

    shares: int | None = None
    amount_a: int | None = None
    amount_b: int | None = None
    amount_in: int | None = None
    amount_out: int | None = None
    error: PoolErrorKind | None = None
    error_detail: str | None = None

    @property
    def is_ok(self) -> bool:
        """True if the operation was committed."""
        return self.error is None

    @property
    def is_error(self) -> bool:
        """True if the operation failed and nothing was committed."""
        return self.error is not None

    @classmethod
    def added(cls, shares: int, amount_a: int, amount_b: int) -> OperationResult:
        return cls(shares=shares, amount_a=amount_a, amount_b=amount_b)

    @classmethod
    def removed(cls, shares: int, amount_a: int, amount_b: int) -> OperationResult:
        return cls(shares=shares, amount_a=amount_a, amount_b=amount_b)

    @classmethod
    def swapped(cls, amount_in: int, amount_out: int) -> OperationResult:
        return cls(amount_in=amount_in, amount_out=amount_out)

    @classmethod
    def failure(cls, error: PoolErrorKind, detail: str | None = None) -> OperationResult:
        """Create an error result."""
        return cls(error=error, error_detail=detail)
