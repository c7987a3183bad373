"""Transaction history endpoints."""

from uuid import UUID

from fastapi import APIRouter

from app.core.constants import APIConstants
from app.core.deps import CurrentAccount, Ledger, Limit, Skip
from app.models.transaction import Transaction
from app.schemas.transaction import TransactionWithLockedConversion

router = APIRouter()


@router.get("/transactions", response_model=list[TransactionWithLockedConversion])
async def list_transactions(
    current_account: CurrentAccount,
    ledger: Ledger,
    wallet_id: UUID | None = None,
    skip: Skip = 0,
    limit: Limit = APIConstants.DEFAULT_PAGE_SIZE,
) -> list[Transaction]:
    """
    List transactions across the caller's wallets, newest first.

    Args:
        current_account: The authenticated account (from dependency)
        ledger: Ledger query service
        wallet_id: Restrict to a single wallet owned by the caller
        skip: Number of records to skip (pagination)
        limit: Maximum number of records to return
    """
    return await ledger.list_account_transactions(
        current_account.id, wallet_id=wallet_id, skip=skip, limit=limit
    )


@router.get(
    "/wallets/{wallet_id}/transactions",
    response_model=list[TransactionWithLockedConversion],
)
async def list_wallet_transactions(
    wallet_id: UUID,
    current_account: CurrentAccount,
    ledger: Ledger,
    skip: Skip = 0,
    limit: Limit = APIConstants.DEFAULT_PAGE_SIZE,
) -> list[Transaction]:
    """
    List transactions of one wallet, newest first.

    Raises:
        AuthorizationError: Wallet belongs to another account (403)
        NotFoundError: Wallet does not exist (404)
    """
    return await ledger.list_wallet_transactions(
        current_account.id, wallet_id, skip=skip, limit=limit
    )
