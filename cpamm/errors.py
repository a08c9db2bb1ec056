"""Error taxonomy for pool operations.

Engines raise these exceptions; the LiquidityPool facade converts them into
OperationResult values so callers never see a half-applied operation.
Arithmetic failures are ArithmeticError subclasses from cpamm.safe_int.
"""

from enum import Enum

from cpamm.safe_int import SafeIntError


class PoolErrorKind(Enum):
    """Types of pool operation failures."""

    INVALID_AMOUNT = "invalid_amount"
    INSUFFICIENT_SHARES = "insufficient_shares"
    ARITHMETIC = "arithmetic"
    TRANSFER_FAILED = "transfer_failed"


class PoolError(Exception):
    """Base class for domain failures of a pool operation."""

    kind: PoolErrorKind


class InvalidAmount(PoolError, ValueError):
    """Zero, negative or otherwise unacceptable input amount."""

    kind = PoolErrorKind.INVALID_AMOUNT


class InsufficientShares(PoolError):
    """Withdrawal exceeds the provider's share balance."""

    kind = PoolErrorKind.INSUFFICIENT_SHARES


class TransferFailed(PoolError):
    """The transfer gateway declined a pull or push."""

    kind = PoolErrorKind.TRANSFER_FAILED


class ZeroReserve(SafeIntError):
    """Pricing requested against an empty reserve."""

    pass


class InvariantViolation(SafeIntError):
    """Post-operation pool state breaks the constant-product invariant."""

    pass


def error_kind(exc: Exception) -> PoolErrorKind:
    """Map an exception raised by an engine to its PoolErrorKind.

    Raises:
        TypeError: If exc is neither a PoolError nor an ArithmeticError
    """
    if isinstance(exc, PoolError):
        return exc.kind
    if isinstance(exc, ArithmeticError):
        return PoolErrorKind.ARITHMETIC
    raise TypeError(f"Not a pool failure: {type(exc).__name__}")


__all__ = [
    "PoolErrorKind",
    "PoolError",
    "InvalidAmount",
    "InsufficientShares",
    "TransferFailed",
    "ZeroReserve",
    "InvariantViolation",
    "error_kind",
]
