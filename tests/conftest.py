"""Pytest fixtures for testing."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.clock import FixedClock
from app.core.deps import get_clock, get_rate_provider
from app.core.exceptions import RateUnavailableError
from app.core.rate_limit import limiter
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.models.account import Account
from app.models.wallet import Wallet
from app.services.locked_conversion_service import LockedConversionEngine
from main import app

# Test database URL (SQLite in-memory for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Wall-clock instant every test starts from
START_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


class FakeRateProvider:
    """In-memory exchange rate provider that records every lookup."""

    def __init__(self, rates: dict[tuple[str, str], Decimal] | None = None) -> None:
        self.rates = rates if rates is not None else {("USD", "EUR"): Decimal("0.92")}
        self.fail = False
        self.calls: list[tuple[str, str]] = []

    async def get_rate(self, source_currency: str, target_currency: str) -> Decimal:
        self.calls.append((source_currency, target_currency))
        if self.fail:
            raise RateUnavailableError("Rate provider is down")
        if source_currency == target_currency:
            return Decimal("1")
        try:
            return self.rates[(source_currency, target_currency)]
        except KeyError:
            raise RateUnavailableError(f"No rate for {source_currency}->{target_currency}")


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_db(test_engine) -> AsyncGenerator[AsyncSession]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
def clock() -> FixedClock:
    """Controllable clock starting at START_TIME."""
    return FixedClock(START_TIME)


@pytest.fixture(scope="function")
def rate_provider() -> FakeRateProvider:
    """Rate provider quoting USD->EUR at 0.92."""
    return FakeRateProvider()


@pytest.fixture(scope="function")
def lock_engine(
    test_db: AsyncSession, rate_provider: FakeRateProvider, clock: FixedClock
) -> LockedConversionEngine:
    """Locked conversion engine wired to the test session, fake rates and clock."""
    return LockedConversionEngine(test_db, rate_provider, clock=clock)


@pytest.fixture(autouse=True)
def reset_limiter():
    """Clear rate limiter counters so tests do not throttle each other."""
    limiter.reset()
    yield
    limiter.reset()


@pytest_asyncio.fixture(scope="function")
async def client(
    test_db: AsyncSession, rate_provider: FakeRateProvider, clock: FixedClock
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database, rate provider and clock overrides."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rate_provider] = lambda: rate_provider
    app.dependency_overrides[get_clock] = lambda: clock

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


async def _create_account(db: AsyncSession, email: str, name: str) -> Account:
    account = Account(email=email, name=name, hashed_password="$argon2id$test-only")
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


async def _create_wallet(
    db: AsyncSession, account: Account, currency: str, balance: str
) -> Wallet:
    wallet = Wallet(
        account_id=account.id,
        name=f"{currency} wallet",
        currency=currency,
        balance=Decimal(balance),
    )
    db.add(wallet)
    await db.commit()
    await db.refresh(wallet)
    return wallet


@pytest_asyncio.fixture(scope="function")
async def test_account(test_db: AsyncSession) -> Account:
    """Create the calling account."""
    return await _create_account(test_db, "alice@example.com", "Alice")


@pytest_asyncio.fixture(scope="function")
async def other_account(test_db: AsyncSession) -> Account:
    """Create an account that does not own the test wallets."""
    return await _create_account(test_db, "bob@example.com", "Bob")


@pytest_asyncio.fixture(scope="function")
async def usd_wallet(test_db: AsyncSession, test_account: Account) -> Wallet:
    """USD wallet holding 1000.00."""
    return await _create_wallet(test_db, test_account, "USD", "1000.00")


@pytest_asyncio.fixture(scope="function")
async def eur_wallet(test_db: AsyncSession, test_account: Account) -> Wallet:
    """Empty EUR wallet."""
    return await _create_wallet(test_db, test_account, "EUR", "0.00")


@pytest_asyncio.fixture(scope="function")
async def poor_usd_wallet(test_db: AsyncSession, test_account: Account) -> Wallet:
    """Second USD wallet holding only 50.00."""
    return await _create_wallet(test_db, test_account, "USD", "50.00")


@pytest_asyncio.fixture(scope="function")
async def other_eur_wallet(test_db: AsyncSession, other_account: Account) -> Wallet:
    """EUR wallet owned by the other account."""
    return await _create_wallet(test_db, other_account, "EUR", "10.00")


@pytest.fixture(scope="function")
def auth_headers(test_account: Account) -> dict[str, str]:
    """Authorization headers for the calling account."""
    token = create_access_token(data={"sub": test_account.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def other_auth_headers(other_account: Account) -> dict[str, str]:
    """Authorization headers for the other account."""
    token = create_access_token(data={"sub": other_account.email})
    return {"Authorization": f"Bearer {token}"}
