"""API endpoints for the liquidity pool."""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cpamm.api.models import (
    AddLiquidityRequest,
    BalanceResponse,
    ErrorResponse,
    OperationResponse,
    PoolResponse,
    RemoveLiquidityRequest,
    SharesResponse,
    SwapRequest,
    TransferRequest,
)
from cpamm.errors import PoolErrorKind
from cpamm.ledger import LedgerError, TokenLedger
from cpamm.result import OperationResult
from cpamm.service import PoolService, get_default_service
from cpamm.state import Asset

logger = structlog.get_logger()

router = APIRouter()

# HTTP status for each failure kind; validation failures are 400,
# a declined custody transfer is a conflict with the caller's balances
ERROR_STATUS = {
    PoolErrorKind.INVALID_AMOUNT: 400,
    PoolErrorKind.INSUFFICIENT_SHARES: 400,
    PoolErrorKind.ARITHMETIC: 400,
    PoolErrorKind.TRANSFER_FAILED: 409,
}


def get_service() -> PoolService:
    """Dependency provider for the pool service.

    Override this in tests to inject a fresh service:
        app.dependency_overrides[get_service] = lambda: service
    """
    return get_default_service()


def _error_response(status_code: int, error: str, detail: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(),
    )


def _operation_response(result: OperationResult) -> OperationResponse | JSONResponse:
    if result.error is not None:
        return _error_response(ERROR_STATUS[result.error], result.error.value, result.error_detail)
    return OperationResponse(
        shares=result.shares,
        amount_a=result.amount_a,
        amount_b=result.amount_b,
        amount_in=result.amount_in,
        amount_out=result.amount_out,
    )


@router.get("/pool")
def get_pool(service: PoolService = Depends(get_service)) -> PoolResponse:
    """Current reserves, total shares and lifecycle status."""
    reserves, total_shares, status = service.run(
        lambda pool: (pool.get_reserves(), pool.get_total_shares(), pool.status)
    )
    return PoolResponse(
        reserve_a=reserves[0],
        reserve_b=reserves[1],
        total_shares=total_shares,
        status=status.value,
    )


@router.get("/pool/shares/{provider}")
def get_shares(provider: str, service: PoolService = Depends(get_service)) -> SharesResponse:
    shares = service.run(lambda pool: pool.get_shares_of(provider))
    return SharesResponse(provider=provider, shares=shares)


@router.get(
    "/pool/quote",
    response_model=OperationResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
)
def quote(
    asset_in: Asset,
    amount_in: int,
    service: PoolService = Depends(get_service),
) -> OperationResponse | JSONResponse:
    """Price an exact-input swap without executing it."""
    result = service.run(lambda pool: pool.quote(asset_in, amount_in))
    return _operation_response(result)


@router.post(
    "/pool/liquidity",
    response_model=OperationResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def add_liquidity(
    request: AddLiquidityRequest,
    service: PoolService = Depends(get_service),
) -> OperationResponse | JSONResponse:
    result = service.run(
        lambda pool: pool.add_liquidity(
            request.provider, int(request.amount_a), int(request.amount_b)
        )
    )
    return _operation_response(result)


@router.post(
    "/pool/liquidity/remove",
    response_model=OperationResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def remove_liquidity(
    request: RemoveLiquidityRequest,
    service: PoolService = Depends(get_service),
) -> OperationResponse | JSONResponse:
    result = service.run(lambda pool: pool.remove_liquidity(request.provider, int(request.shares)))
    return _operation_response(result)


@router.post(
    "/pool/swap",
    response_model=OperationResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def swap(
    request: SwapRequest,
    service: PoolService = Depends(get_service),
) -> OperationResponse | JSONResponse:
    result = service.run(
        lambda pool: pool.swap(request.trader, request.asset_in, int(request.amount_in))
    )
    return _operation_response(result)


@router.get("/ledger/{asset}/balance/{account}")
def get_balance(
    asset: Asset,
    account: str,
    service: PoolService = Depends(get_service),
) -> BalanceResponse:
    balance = service.run_ledger(asset, lambda ledger: ledger.balance_of(account))
    return BalanceResponse(account=account, asset=asset, balance=balance)


@router.post(
    "/ledger/{asset}/transfer",
    response_model=BalanceResponse,
    responses={409: {"model": ErrorResponse}},
)
def transfer(
    asset: Asset,
    request: TransferRequest,
    service: PoolService = Depends(get_service),
) -> BalanceResponse | JSONResponse:
    """Move tokens between ledger accounts; returns the recipient's new balance."""

    def run(ledger: TokenLedger) -> int:
        ledger.transfer(request.sender, request.recipient, int(request.amount))
        return ledger.balance_of(request.recipient)

    # Custody only moves through pool operations, or reserves would drift from it
    if request.sender == service.gateway.custody:
        logger.warning("custody_transfer_rejected", asset=asset.value, sender=request.sender)
        return _error_response(
            409,
            PoolErrorKind.TRANSFER_FAILED.value,
            f"Account {request.sender} is pool custody and cannot send transfers",
        )

    try:
        balance = service.run_ledger(asset, run)
    except LedgerError as e:
        logger.warning("ledger_transfer_rejected", asset=asset.value, error=str(e))
        return _error_response(409, PoolErrorKind.TRANSFER_FAILED.value, str(e))

    return BalanceResponse(account=request.recipient, asset=asset, balance=balance)
