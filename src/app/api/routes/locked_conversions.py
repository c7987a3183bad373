"""Locked conversion endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Request, status

from app.core.config import settings
from app.core.constants import APIConstants
from app.core.deps import CurrentAccount, Engine, Limit, Skip
from app.core.rate_limit import limiter
from app.models.locked_conversion import LockedConversion, LockedConversionStatus
from app.schemas.locked_conversion import (
    LockedConversionCreate,
    LockedConversionDetail,
    LockedConversionWithWallets,
    UnlockResponse,
)

router = APIRouter()


@router.get("/", response_model=list[LockedConversionWithWallets])
async def list_locked_conversions(
    current_account: CurrentAccount,
    engine: Engine,
    status_filter: Annotated[LockedConversionStatus | None, Query(alias="status")] = None,
    skip: Skip = 0,
    limit: Limit = APIConstants.DEFAULT_PAGE_SIZE,
) -> list[LockedConversion]:
    """
    List the caller's locked conversions, newest first.

    Args:
        current_account: The authenticated account (from dependency)
        engine: Locked conversion engine
        status_filter: Only return conversions in this status
        skip: Number of records to skip (pagination)
        limit: Maximum number of records to return
    """
    return await engine.list_locked_conversions(
        current_account.id, status=status_filter, skip=skip, limit=limit
    )


@router.post(
    "/",
    response_model=LockedConversionWithWallets,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.LOCK_RATE_LIMIT)
async def create_locked_conversion(
    request: Request,
    payload: LockedConversionCreate,
    current_account: CurrentAccount,
    engine: Engine,
) -> LockedConversion:
    """
    Lock funds from one wallet into another at today's rate.

    The source wallet is debited immediately; the converted amount (after the
    fee) is credited to the target wallet when the conversion is unlocked.

    Raises:
        ValidationError: Invalid amount or period (400)
        InsufficientFundsError: Source balance too low (400)
        AuthorizationError: A wallet belongs to another account (403)
        NotFoundError: A wallet does not exist (404)
        RateUnavailableError: No exchange rate could be fetched (503)
    """
    return await engine.create_locked_conversion(
        current_account.id,
        payload.source_wallet_id,
        payload.target_wallet_id,
        payload.source_amount,
        payload.lock_period_months,
    )


@router.get("/{locked_conversion_id}", response_model=LockedConversionDetail)
async def get_locked_conversion(
    locked_conversion_id: UUID,
    current_account: CurrentAccount,
    engine: Engine,
) -> LockedConversionDetail:
    """
    Get a locked conversion with the current market rate and unlock eligibility.

    ``current_rate`` and ``rate_difference`` are null when the conversion is no
    longer active or the rate provider is unreachable.
    """
    details = await engine.get_locked_conversion(current_account.id, locked_conversion_id)
    return LockedConversionDetail.model_validate(details)


@router.post("/{locked_conversion_id}/unlock", response_model=UnlockResponse)
@limiter.limit(settings.LOCK_RATE_LIMIT)
async def unlock_locked_conversion(
    request: Request,
    locked_conversion_id: UUID,
    current_account: CurrentAccount,
    engine: Engine,
) -> UnlockResponse:
    """
    Release a matured locked conversion into its target wallet.

    Raises:
        AuthorizationError: Conversion belongs to another account (403)
        NotFoundError: Conversion does not exist (404)
        AlreadyUnlockedError: Conversion was already unlocked (409)
        StillLockedError: Unlock date not reached yet (409)
    """
    result = await engine.unlock(current_account.id, locked_conversion_id)
    return UnlockResponse.model_validate(result)
