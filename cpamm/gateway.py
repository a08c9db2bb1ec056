"""Transfer gateway: moves asset custody in and out of the pool."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import structlog

from cpamm.ledger import LedgerError, TokenLedger
from cpamm.state import Asset

logger = structlog.get_logger()

# Default ledger account holding the pool's reserves
POOL_CUSTODY = "pool"


@runtime_checkable
class TransferGateway(Protocol):
    """Custody movement on behalf of a caller.

    Both methods are synchronous and report success as a bool; a False
    return aborts the enclosing pool operation.
    """

    def pull(self, account: str, asset: Asset, amount: int) -> bool:
        """Move amount of asset from account into pool custody."""
        ...

    def push(self, account: str, asset: Asset, amount: int) -> bool:
        """Pay amount of asset out of pool custody to account."""
        ...


class LedgerTransferGateway:
    """TransferGateway backed by one TokenLedger per asset.

    Usage:
        gateway = LedgerTransferGateway({Asset.A: ledger_a, Asset.B: ledger_b})
        gateway.pull("alice", Asset.A, 100)  # alice -> pool custody
    """

    def __init__(self, ledgers: dict[Asset, TokenLedger], custody: str = POOL_CUSTODY) -> None:
        missing = [asset.value for asset in Asset if asset not in ledgers]
        if missing:
            raise ValueError(f"No ledger for assets: {missing}")
        self.ledgers = ledgers
        self.custody = custody

    def pull(self, account: str, asset: Asset, amount: int) -> bool:
        return self._move(account, self.custody, asset, amount)

    def push(self, account: str, asset: Asset, amount: int) -> bool:
        return self._move(self.custody, account, asset, amount)

    def custody_balance(self, asset: Asset) -> int:
        return self.ledgers[asset].balance_of(self.custody)

    def _move(self, sender: str, recipient: str, asset: Asset, amount: int) -> bool:
        try:
            self.ledgers[asset].transfer(sender, recipient, amount)
        except LedgerError as e:
            logger.warning(
                "ledger_transfer_declined",
                asset=asset.value,
                sender=sender,
                recipient=recipient,
                amount=amount,
                error=str(e),
            )
            return False
        return True


__all__ = ["POOL_CUSTODY", "TransferGateway", "LedgerTransferGateway"]
