"""Dependencies for FastAPI routes."""

from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock
from app.core.config import settings
from app.core.constants import APIConstants
from app.core.security import decode_token
from app.db.session import get_db
from app.models.account import Account
from app.repositories.account import AccountRepository
from app.services.exchange_rate_service import ExchangeRateHostProvider, ExchangeRateProvider
from app.services.ledger_service import LedgerQueryService
from app.services.locked_conversion_service import LockedConversionEngine

# Token issuing lives outside this service; the URL is only advertised in OpenAPI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_account(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Account:
    """
    Get the calling account from a JWT bearer token.

    Args:
        token: JWT token from Authorization header
        db: Database session

    Returns:
        The authenticated account

    Raises:
        HTTPException: If credentials are invalid or the account does not exist
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(token)
        email: str | None = payload.get("sub")
    except jwt.InvalidTokenError:
        raise credentials_exception

    if email is None:
        raise credentials_exception

    account = await AccountRepository(Account, db).get_by_email(email)
    if account is None:
        raise credentials_exception

    return account


def get_clock() -> Clock:
    """Time source for engine operations (overridden in tests)."""
    return SystemClock()


def get_rate_provider() -> ExchangeRateProvider:
    """Exchange rate provider configured from settings."""
    return ExchangeRateHostProvider(
        base_url=settings.EXCHANGE_RATE_API_URL,
        api_key=settings.EXCHANGE_RATE_API_KEY,
        timeout=settings.EXCHANGE_RATE_TIMEOUT_SECONDS,
    )


def get_locked_conversion_engine(
    db: Annotated[AsyncSession, Depends(get_db)],
    rate_provider: Annotated[ExchangeRateProvider, Depends(get_rate_provider)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LockedConversionEngine:
    """Build a locked conversion engine bound to the request's session."""
    return LockedConversionEngine(
        db,
        rate_provider,
        clock=clock,
        fee_percentage=settings.LOCK_FEE_PERCENTAGE,
        rate_timeout=settings.EXCHANGE_RATE_TIMEOUT_SECONDS,
    )


def get_ledger_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LedgerQueryService:
    """Build the read-only ledger query service."""
    return LedgerQueryService(db)


# Type aliases for cleaner dependency injection
CurrentAccount = Annotated[Account, Depends(get_current_account)]
Engine = Annotated[LockedConversionEngine, Depends(get_locked_conversion_engine)]
Ledger = Annotated[LedgerQueryService, Depends(get_ledger_service)]

# Pagination query parameters
Skip = Annotated[int, Query(ge=0)]
Limit = Annotated[int, Query(ge=1, le=APIConstants.MAX_PAGE_SIZE)]
