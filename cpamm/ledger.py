"""In-memory fungible token ledger.

Backs LedgerTransferGateway: each pooled asset lives on its own ledger, and
the pool's custody account holds the reserves.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

import structlog

from cpamm.errors import InvalidAmount

logger = structlog.get_logger()

# Counterparty recorded for mints and burns
ZERO_ACCOUNT = "0x0"


class LedgerError(Exception):
    """Base class for ledger failures."""

    pass


class InsufficientBalance(LedgerError):
    pass


class InsufficientAllowance(LedgerError):
    pass


class Unauthorized(LedgerError):
    pass


@dataclass(frozen=True)
class LedgerEvent:
    """A recorded ledger operation."""

    kind: str
    sender: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class EventSummary:
    """Aggregate volumes over a ledger's event history."""

    transfer_volume: int
    mint_volume: int
    burn_volume: int


@dataclass
class TokenLedger:
    """Balances and allowances of a single fungible token.

    The owner account receives the initial supply and is the only account
    allowed to mint.
    """

    name: str
    symbol: str
    owner: str = "owner"
    initial_supply: int = 0
    total_supply: int = field(init=False, default=0)
    balances: dict[str, int] = field(init=False, default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(init=False, default_factory=dict)
    events: list[LedgerEvent] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        _check_amount(self.initial_supply)
        self.total_supply = self.initial_supply
        if self.initial_supply:
            self.balances[self.owner] = self.initial_supply

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def token_info(self) -> tuple[str, str, int]:
        """Get (name, symbol, total_supply)."""
        return self.name, self.symbol, self.total_supply

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move amount from sender to recipient.

        Raises:
            InsufficientBalance: If sender holds less than amount
        """
        _check_amount(amount)
        self._check_balance(sender, amount)
        self._move(sender, recipient, amount)
        self._emit("Transfer", sender, recipient, amount)

    def transfer_from(self, owner: str, recipient: str, spender: str, amount: int) -> None:
        """Move amount from owner to recipient using spender's allowance.

        Raises:
            InsufficientBalance: If owner holds less than amount
            InsufficientAllowance: If spender's allowance is less than amount
        """
        _check_amount(amount)
        self._check_balance(owner, amount)
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"Insufficient allowance for {spender} from {owner}: {allowed} < {amount}"
            )
        self._move(owner, recipient, amount)
        self.allowances[owner][spender] = allowed - amount
        self._emit("TransferFrom", owner, recipient, amount)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        _check_amount(amount)
        self.allowances.setdefault(owner, {})[spender] = amount
        self._emit("Approval", owner, spender, amount)

    def mint(self, to: str, amount: int) -> None:
        """Create new tokens. Only the owner may receive minted tokens.

        Raises:
            Unauthorized: If `to` is not the owner
        """
        _check_amount(amount)
        if to != self.owner:
            raise Unauthorized(f"Only owner can mint tokens, got {to}")
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount
        self._emit("Mint", ZERO_ACCOUNT, to, amount)

    def burn(self, sender: str, amount: int) -> None:
        """Destroy tokens held by sender.

        Raises:
            InsufficientBalance: If sender holds less than amount
        """
        _check_amount(amount)
        self._check_balance(sender, amount)
        self.balances[sender] -= amount
        self.total_supply -= amount
        self._emit("Burn", sender, ZERO_ACCOUNT, amount)

    def event_summary(self) -> EventSummary:
        volumes: defaultdict[str, int] = defaultdict(int)
        for event in self.events:
            volumes[event.kind] += event.amount
        return EventSummary(
            transfer_volume=volumes["Transfer"] + volumes["TransferFrom"],
            mint_volume=volumes["Mint"],
            burn_volume=volumes["Burn"],
        )

    def _check_balance(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(
                f"Insufficient {self.symbol} balance for {account}: {balance} < {amount}"
            )

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount

    def _emit(self, kind: str, sender: str, recipient: str, amount: int) -> None:
        self.events.append(LedgerEvent(kind=kind, sender=sender, recipient=recipient, amount=amount))
        logger.debug(
            "ledger_event",
            token=self.symbol,
            kind=kind,
            sender=sender,
            recipient=recipient,
            amount=amount,
        )


def _check_amount(amount: int) -> None:
    if amount < 0:
        raise InvalidAmount(f"Ledger amounts must be non-negative: {amount}")


__all__ = [
    "ZERO_ACCOUNT",
    "LedgerError",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Unauthorized",
    "LedgerEvent",
    "EventSummary",
    "TokenLedger",
]
