"""Zero-fee constant product AMM.

The pool keeps x * y = k. For an exact input, the trader receives

    amount_out = floor(amount_in * reserve_out / (reserve_in + amount_in))

Rounding is always toward the pool, so k never decreases.
"""

from __future__ import annotations

import structlog

from cpamm.amm.base import AMM, SwapResult
from cpamm.errors import InvalidAmount, InvariantViolation, ZeroReserve
from cpamm.safe_int import BALANCE_MAX, S
from cpamm.state import Asset, PoolState

logger = structlog.get_logger()


class ConstantProduct(AMM):
    """Constant product (x * y = k) pricing without fees.

    Formula: amount_out = (amount_in * reserve_out) / (reserve_in + amount_in)
    """

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
    ) -> int:
        """Calculate output amount using the constant product formula.

        The result is strictly less than reserve_out for any finite input,
        so a single swap can never drain the pool.

        Args:
            amount_in: Input asset amount
            reserve_in: Reserve of input asset in pool
            reserve_out: Reserve of output asset in pool

        Returns:
            Output asset amount (floor)

        Raises:
            InvalidAmount: If amount_in is not positive
            ZeroReserve: If either reserve is not positive
        """
        if amount_in <= 0:
            raise InvalidAmount(f"amount_in must be positive: {amount_in}")
        if reserve_in <= 0 or reserve_out <= 0:
            raise ZeroReserve(f"Reserves must be positive: ({reserve_in}, {reserve_out})")

        numerator = S(amount_in) * S(reserve_out)
        denominator = S(reserve_in) + S(amount_in)

        return (numerator // denominator).value

    def get_amount_in(
        self,
        amount_out: int,
        reserve_in: int,
        reserve_out: int,
    ) -> int:
        """Calculate the smallest input that yields at least amount_out.

        Formula: amount_in = ceil(reserve_in * amount_out / (reserve_out - amount_out))

        Args:
            amount_out: Desired output asset amount
            reserve_in: Reserve of input asset in pool
            reserve_out: Reserve of output asset in pool

        Returns:
            Required input asset amount (rounded up)

        Raises:
            InvalidAmount: If amount_out is not positive or would drain the reserve
            ZeroReserve: If either reserve is not positive
        """
        if amount_out <= 0:
            raise InvalidAmount(f"amount_out must be positive: {amount_out}")
        if reserve_in <= 0 or reserve_out <= 0:
            raise ZeroReserve(f"Reserves must be positive: ({reserve_in}, {reserve_out})")
        if amount_out >= reserve_out:
            raise InvalidAmount(
                f"Cannot drain full reserve: amount_out ({amount_out}) >= reserve_out ({reserve_out})"
            )

        numerator = S(reserve_in) * S(amount_out)
        denominator = S(reserve_out) - S(amount_out)

        return numerator.ceiling_div(denominator).value

    def simulate_swap(
        self,
        state: PoolState,
        asset_in: Asset,
        amount_in: int,
        max_value: int = BALANCE_MAX,
    ) -> SwapResult:
        """Simulate an exact-input swap against a pool state.

        The state is not modified; apply `result.delta` to commit.

        Args:
            state: Current pool state
            asset_in: Asset the trader pays in
            amount_in: Amount paid in
            max_value: Largest value a reserve may hold

        Returns:
            SwapResult with amounts and the invariant values

        Raises:
            InvalidAmount: If amount_in is not positive, exceeds max_value,
                or buys nothing after rounding
            ZeroReserve: If the pool has no liquidity
            BalanceOverflow: If the input reserve would exceed max_value
            InvariantViolation: If the swap would decrease k
        """
        if amount_in > max_value:
            raise InvalidAmount(f"amount_in exceeds balance max: {amount_in}")

        reserve_in, reserve_out = state.get_reserves(asset_in)
        amount_out = self.get_amount_out(amount_in, reserve_in, reserve_out)
        if amount_out == 0:
            raise InvalidAmount(f"amount_in {amount_in} is too small to buy any {asset_in.other.value}")

        new_reserve_in = (S(reserve_in) + S(amount_in)).to_balance(max_value)
        new_reserve_out = (S(reserve_out) - S(amount_out)).value

        k_before = (S(reserve_in) * S(reserve_out)).value
        k_after = (S(new_reserve_in) * S(new_reserve_out)).value
        if k_after < k_before:
            raise InvariantViolation(f"Invariant violation: new_k ({k_after}) < old_k ({k_before})")

        logger.debug(
            "swap_simulated",
            asset_in=asset_in.value,
            amount_in=amount_in,
            amount_out=amount_out,
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )

        return SwapResult(
            asset_in=asset_in,
            amount_in=amount_in,
            amount_out=amount_out,
            k_before=k_before,
            k_after=k_after,
        )


# Singleton instance
constant_product = ConstantProduct()


def swap(amount_in: int, reserve_in: int, reserve_out: int) -> int:
    """Output amount for a one-directional trade; see ConstantProduct.get_amount_out."""
    return constant_product.get_amount_out(amount_in, reserve_in, reserve_out)


__all__ = [
    "ConstantProduct",
    "constant_product",
    "swap",
]
