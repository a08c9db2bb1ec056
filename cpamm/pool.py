"""Liquidity pool facade.

Every public operation follows the same order:

1. validate and compute the change (liquidity or swap engine); nothing is
   mutated yet
2. stage the change on a copy of the state, which runs the width and
   invariant checks
3. move custody through the TransferGateway; a declined transfer undoes the
   legs already executed and aborts
4. commit the staged state
5. notify the EventSink

A failure at any step returns an OperationResult carrying the error and
leaves the pool exactly as it was.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

import structlog

from cpamm.amm.constant_product import ConstantProduct, constant_product
from cpamm.config import DEFAULT_POOL_CONFIG, PoolConfig
from cpamm.errors import PoolError, TransferFailed, error_kind
from cpamm.events import EventKind, EventSink, NullEventSink
from cpamm.gateway import TransferGateway
from cpamm.liquidity import compute_deposit, compute_withdrawal
from cpamm.result import OperationResult
from cpamm.state import Asset, PoolDelta, PoolState, PoolStatus

logger = structlog.get_logger()


class Direction(str, Enum):
    PULL = "pull"
    PUSH = "push"


# (direction, asset, amount)
TransferLeg = tuple[Direction, Asset, int]


class LiquidityPool:
    """A two-asset constant product pool with share accounting.

    The pool exclusively owns its PoolState. Callers are expected to
    serialize operations on one pool; each operation runs to completion.
    """

    def __init__(
        self,
        gateway: TransferGateway,
        events: EventSink | None = None,
        config: PoolConfig = DEFAULT_POOL_CONFIG,
        amm: ConstantProduct = constant_product,
    ) -> None:
        self._gateway = gateway
        self._events = events if events is not None else NullEventSink()
        self._config = config
        self._amm = amm
        self._state = PoolState()

    # --- Queries ---

    @property
    def config(self) -> PoolConfig:
        return self._config

    @property
    def status(self) -> PoolStatus:
        return self._state.status

    def snapshot(self) -> PoolState:
        """Copy of the current state; changing it does not affect the pool."""
        return self._state.copy()

    def get_reserves(self) -> tuple[int, int]:
        return self._state.reserves()

    def get_total_shares(self) -> int:
        return self._state.total_shares

    def get_shares_of(self, provider: str) -> int:
        return self._state.shares_of(provider)

    def quote(self, asset_in: Asset, amount_in: int) -> OperationResult:
        """Price an exact-input swap without executing it."""

        def run() -> OperationResult:
            result = self._amm.simulate_swap(
                self._state, asset_in, amount_in, self._config.balance_max
            )
            return OperationResult.swapped(result.amount_in, result.amount_out)

        return self._guard("quote", run)

    # --- Liquidity ---

    def add_liquidity(self, provider: str, amount_a: int, amount_b: int) -> OperationResult:
        """Deposit both assets and mint shares to provider.

        The first deposit into an empty pool mints shares according to
        config.first_deposit_policy; later deposits mint in proportion to
        amount_a.
        """

        def run() -> OperationResult:
            change = compute_deposit(self._state, provider, amount_a, amount_b, self._config)
            staged = self._stage(change.delta)
            self._transfer(
                provider,
                [(Direction.PULL, Asset.A, amount_a), (Direction.PULL, Asset.B, amount_b)],
            )
            self._state = staged

            logger.info(
                "liquidity_added",
                provider=provider,
                amount_a=amount_a,
                amount_b=amount_b,
                shares=change.shares,
                total_shares=staged.total_shares,
            )
            self._events.record(
                EventKind.LIQUIDITY_ADDED,
                provider,
                {"amount_a": amount_a, "amount_b": amount_b, "shares": change.shares},
            )
            return OperationResult.added(change.shares, amount_a, amount_b)

        return self._guard("add_liquidity", run)

    def remove_liquidity(self, provider: str, shares: int) -> OperationResult:
        """Burn provider's shares and pay out the proportional reserves."""

        def run() -> OperationResult:
            change = compute_withdrawal(self._state, provider, shares)
            staged = self._stage(change.delta)
            self._transfer(
                provider,
                [
                    (Direction.PUSH, Asset.A, change.amount_a),
                    (Direction.PUSH, Asset.B, change.amount_b),
                ],
            )
            self._state = staged

            logger.info(
                "liquidity_removed",
                provider=provider,
                shares=shares,
                amount_a=change.amount_a,
                amount_b=change.amount_b,
                total_shares=staged.total_shares,
            )
            self._events.record(
                EventKind.LIQUIDITY_REMOVED,
                provider,
                {"amount_a": change.amount_a, "amount_b": change.amount_b, "shares": shares},
            )
            return OperationResult.removed(shares, change.amount_a, change.amount_b)

        return self._guard("remove_liquidity", run)

    # --- Swaps ---

    def swap(self, trader: str, asset_in: Asset, amount_in: int) -> OperationResult:
        """Sell amount_in of asset_in for the other asset."""

        def run() -> OperationResult:
            result = self._amm.simulate_swap(
                self._state, asset_in, amount_in, self._config.balance_max
            )
            staged = self._stage(result.delta)
            self._transfer(
                trader,
                [
                    (Direction.PULL, asset_in, amount_in),
                    (Direction.PUSH, result.asset_out, result.amount_out),
                ],
            )
            self._state = staged

            logger.info(
                "swap_executed",
                trader=trader,
                asset_in=asset_in.value,
                amount_in=amount_in,
                amount_out=result.amount_out,
                reserves=staged.reserves(),
            )
            self._events.record(
                EventKind.SWAPPED,
                trader,
                {
                    f"{asset_in.value.lower()}_in": amount_in,
                    f"{result.asset_out.value.lower()}_out": result.amount_out,
                },
            )
            return OperationResult.swapped(amount_in, result.amount_out)

        return self._guard("swap", run)

    def swap_a_for_b(self, trader: str, amount_in: int) -> OperationResult:
        return self.swap(trader, Asset.A, amount_in)

    def swap_b_for_a(self, trader: str, amount_in: int) -> OperationResult:
        return self.swap(trader, Asset.B, amount_in)

    # --- Internals ---

    def _stage(self, delta: PoolDelta) -> PoolState:
        """Apply delta to a copy of the state and check its invariants."""
        staged = self._state.copy()
        staged.apply(delta, self._config.balance_max)
        staged.check_invariants()
        return staged

    def _transfer(self, account: str, legs: list[TransferLeg]) -> None:
        """Execute transfer legs in order, undoing completed legs on failure.

        Raises:
            TransferFailed: If the gateway declines any leg
        """
        done: list[TransferLeg] = []
        for direction, asset, amount in legs:
            if amount == 0:
                continue
            move = self._gateway.pull if direction is Direction.PULL else self._gateway.push
            if not move(account, asset, amount):
                self._rollback(account, done)
                raise TransferFailed(
                    f"{direction.value} of {amount} {asset.value} for {account} was declined"
                )
            done.append((direction, asset, amount))

    def _rollback(self, account: str, done: list[TransferLeg]) -> None:
        for direction, asset, amount in reversed(done):
            undo = self._gateway.push if direction is Direction.PULL else self._gateway.pull
            if not undo(account, asset, amount):
                logger.error(
                    "rollback_failed",
                    account=account,
                    direction=direction.value,
                    asset=asset.value,
                    amount=amount,
                )

    def _guard(self, operation: str, run: Callable[[], OperationResult]) -> OperationResult:
        """Run an operation, converting domain failures to error results."""
        try:
            return run()
        except (PoolError, ArithmeticError) as e:
            kind = error_kind(e)
            logger.warning(
                "pool_operation_failed",
                operation=operation,
                error=kind.value,
                detail=str(e),
            )
            return OperationResult.failure(kind, str(e))


__all__ = ["Direction", "LiquidityPool"]
