"""Pydantic models for the pool HTTP API.

Amounts travel as decimal strings so that values up to 2**128 - 1 survive
JSON clients that parse numbers as doubles.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from cpamm.safe_int import BALANCE_MAX
from cpamm.state import Asset


def validate_balance(value: Any) -> str:
    """Validate that a value is a non-negative balance as a decimal string.

    Args:
        value: Value to validate (string or int)

    Returns:
        Valid balance as decimal string

    Raises:
        ValueError: If value is not an integer within [0, 2**128 - 1]
    """
    if isinstance(value, bool) or not isinstance(value, int | str):
        raise ValueError(f"Balance must be string or int, got {type(value).__name__}")

    try:
        int_value = int(value)
    except ValueError as err:
        raise ValueError(f"Balance must be a decimal integer string: '{value}'") from err

    if int_value < 0:
        raise ValueError(f"Balance cannot be negative: {value}")
    if int_value > BALANCE_MAX:
        raise ValueError(f"Balance overflow: {value} > 2^128-1")

    return str(int_value)


# 128-bit unsigned integer as decimal string (validated)
Balance = Annotated[
    str,
    BeforeValidator(validate_balance),
    Field(description="128-bit unsigned integer as decimal string"),
]

AccountId = Annotated[str, Field(min_length=1, max_length=128)]


class AddLiquidityRequest(BaseModel):
    provider: AccountId
    amount_a: Balance = Field(alias="amountA")
    amount_b: Balance = Field(alias="amountB")

    model_config = {"populate_by_name": True}


class RemoveLiquidityRequest(BaseModel):
    provider: AccountId
    shares: Balance


class SwapRequest(BaseModel):
    trader: AccountId
    asset_in: Asset = Field(alias="assetIn")
    amount_in: Balance = Field(alias="amountIn")

    model_config = {"populate_by_name": True}


class TransferRequest(BaseModel):
    sender: AccountId
    recipient: AccountId
    amount: Balance


class PoolResponse(BaseModel):
    """Current reserves and share supply."""

    reserve_a: Balance = Field(alias="reserveA")
    reserve_b: Balance = Field(alias="reserveB")
    total_shares: Balance = Field(alias="totalShares")
    status: str

    model_config = {"populate_by_name": True}


class SharesResponse(BaseModel):
    provider: str
    shares: Balance


class BalanceResponse(BaseModel):
    account: str
    asset: Asset
    balance: Balance


class OperationResponse(BaseModel):
    """Amounts moved by a committed operation. Unused fields are omitted."""

    shares: Balance | None = None
    amount_a: Balance | None = Field(default=None, alias="amountA")
    amount_b: Balance | None = Field(default=None, alias="amountB")
    amount_in: Balance | None = Field(default=None, alias="amountIn")
    amount_out: Balance | None = Field(default=None, alias="amountOut")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
