"""Tests for the locked conversion engine."""

import asyncio
import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import FixedClock, ensure_utc
from app.core.exceptions import (
    AlreadyUnlockedError,
    AuthorizationError,
    InsufficientFundsError,
    NotFoundError,
    RateUnavailableError,
    StillLockedError,
    ValidationError,
)
from app.models.account import Account
from app.models.locked_conversion import LockedConversion, LockedConversionStatus
from app.models.transaction import Transaction, TransactionType
from app.models.wallet import Wallet
from app.services.locked_conversion_service import (
    LockedConversionEngine,
    calculate_fee,
    calculate_rate_difference,
    calculate_target_amount,
)


LOCK_TIME = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)
MATURITY = datetime(2025, 4, 15, 12, 0, tzinfo=UTC)


async def _count(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


async def _balance(db: AsyncSession, wallet: Wallet) -> Decimal:
    await db.refresh(wallet)
    return wallet.balance


async def _transactions(db: AsyncSession, tx_type: TransactionType) -> list[Transaction]:
    result = await db.execute(select(Transaction).where(Transaction.type == tx_type))
    return list(result.scalars().all())


async def _lock_100_usd(
    engine: LockedConversionEngine, account: Account, source: Wallet, target: Wallet
) -> LockedConversion:
    return await engine.create_locked_conversion(
        account.id, source.id, target.id, Decimal("100"), 3
    )


# ---------------------------------------------------------------------------
# Fee and conversion math
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("amount", "expected_fee"),
    [
        ("100", "3.00"),
        ("33.33", "1.00"),  # 0.9999 rounds up
        ("0.50", "0.02"),  # 0.015 rounds half-up
        ("1234.56", "37.04"),
        ("0.01", "0.00"),
    ],
)
def test_calculate_fee_rounds_to_cents(amount: str, expected_fee: str) -> None:
    """Test the 3% fee is rounded half-up to two decimal places."""
    assert calculate_fee(Decimal(amount), Decimal("3.0")) == Decimal(expected_fee)


@pytest.mark.unit
def test_calculate_target_amount() -> None:
    """Test the net amount converts at the given rate."""
    assert calculate_target_amount(Decimal("97.00"), Decimal("0.92")) == Decimal("89.24")
    assert calculate_target_amount(Decimal("97.00"), Decimal("1.08345")) == Decimal("105.09")


@pytest.mark.unit
def test_calculate_rate_difference_is_signed_percentage() -> None:
    """Test rate difference is relative to the locked rate."""
    assert calculate_rate_difference(Decimal("0.95"), Decimal("0.92")) == Decimal("3.2609")
    assert calculate_rate_difference(Decimal("0.92"), Decimal("0.92")) == Decimal("0.0000")
    assert calculate_rate_difference(Decimal("0.46"), Decimal("0.92")) == Decimal("-50.0000")


@pytest.mark.unit
async def test_engine_rejects_out_of_range_fee(
    test_db: AsyncSession, rate_provider
) -> None:
    """Test the fee percentage must be within [0, 100)."""
    with pytest.raises(ValueError):
        LockedConversionEngine(test_db, rate_provider, fee_percentage=100)
    with pytest.raises(ValueError):
        LockedConversionEngine(test_db, rate_provider, fee_percentage=-1)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


@pytest.mark.integration
async def test_create_locked_conversion(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test locking 100 USD into EUR at 0.92 for three months."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    assert conversion.status == LockedConversionStatus.ACTIVE
    assert conversion.account_id == test_account.id
    assert conversion.source_currency == "USD"
    assert conversion.target_currency == "EUR"
    assert conversion.source_amount == Decimal("100.00")
    assert conversion.fee == Decimal("3.00")
    assert conversion.fee_percentage == Decimal("3.00")
    assert conversion.net_amount == Decimal("97.00")
    assert conversion.exchange_rate == Decimal("0.92")
    assert conversion.target_amount == Decimal("89.24")
    assert ensure_utc(conversion.lock_date) == LOCK_TIME
    assert ensure_utc(conversion.unlock_date) == MATURITY
    assert conversion.actual_unlock_date is None

    # Wallets are attached for display
    assert conversion.source_wallet.id == usd_wallet.id
    assert conversion.target_wallet.id == eur_wallet.id

    assert await _balance(test_db, usd_wallet) == Decimal("900.00")
    assert await _balance(test_db, eur_wallet) == Decimal("0.00")


@pytest.mark.integration
async def test_create_records_lock_from_transaction(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test creation appends a single LOCK_FROM debit referencing the conversion."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    entries = await _transactions(test_db, TransactionType.LOCK_FROM)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.amount == Decimal("-100.00")
    assert entry.currency == "USD"
    assert entry.wallet_id == usd_wallet.id
    assert entry.locked_conversion_id == conversion.id
    assert await _count(test_db, Transaction) == 1


@pytest.mark.integration
async def test_create_uses_configured_fee_percentage(
    test_db: AsyncSession,
    rate_provider,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test the fee percentage is taken from the engine configuration."""
    engine = LockedConversionEngine(test_db, rate_provider, clock=clock, fee_percentage="1.5")

    conversion = await _lock_100_usd(engine, test_account, usd_wallet, eur_wallet)

    assert conversion.fee == Decimal("1.50")
    assert conversion.fee_percentage == Decimal("1.50")
    assert conversion.target_amount == Decimal("90.62")  # 98.50 * 0.92


@pytest.mark.integration
async def test_create_clamps_unlock_date_to_month_end(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test Jan 31 + 1 month unlocks on the last day of February."""
    clock.set(datetime(2025, 1, 31, 9, 30, tzinfo=UTC))

    conversion = await lock_engine.create_locked_conversion(
        test_account.id, usd_wallet.id, eur_wallet.id, Decimal("10"), 1
    )

    assert ensure_utc(conversion.unlock_date) == datetime(2025, 2, 28, 9, 30, tzinfo=UTC)


@pytest.mark.integration
@pytest.mark.parametrize(
    ("amount", "months"),
    [
        (None, 3),
        (Decimal("100"), None),
        (Decimal("0"), 3),
        (Decimal("-5"), 3),
        (Decimal("10.005"), 3),
        ("not-a-number", 3),
        (Decimal("100"), 0),
        (Decimal("100"), -2),
        (Decimal("100"), 2.5),
        (Decimal("100"), True),
        (Decimal("100"), 1201),
        (Decimal("100"), 100000),
    ],
)
async def test_create_rejects_invalid_input(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    rate_provider,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
    amount,
    months,
) -> None:
    """Test malformed amount or period fails before any lookup or write."""
    with pytest.raises(ValidationError):
        await lock_engine.create_locked_conversion(
            test_account.id, usd_wallet.id, eur_wallet.id, amount, months
        )

    assert rate_provider.calls == []
    assert await _balance(test_db, usd_wallet) == Decimal("1000.00")
    assert await _count(test_db, LockedConversion) == 0


@pytest.mark.integration
async def test_create_rejects_missing_wallet_ids(
    lock_engine: LockedConversionEngine, test_account: Account, usd_wallet: Wallet
) -> None:
    """Test missing wallet ids are invalid input, not lookups."""
    with pytest.raises(ValidationError):
        await lock_engine.create_locked_conversion(
            test_account.id, usd_wallet.id, None, Decimal("10"), 3
        )


@pytest.mark.integration
async def test_create_source_wallet_not_found(
    lock_engine: LockedConversionEngine, test_account: Account, eur_wallet: Wallet
) -> None:
    """Test an unknown source wallet is reported as not found."""
    with pytest.raises(NotFoundError, match="Source wallet"):
        await lock_engine.create_locked_conversion(
            test_account.id, uuid.uuid4(), eur_wallet.id, Decimal("10"), 3
        )


@pytest.mark.integration
async def test_create_source_wallet_of_other_account(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    other_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test locking from someone else's wallet is unauthorized."""
    with pytest.raises(AuthorizationError):
        await lock_engine.create_locked_conversion(
            other_account.id, usd_wallet.id, eur_wallet.id, Decimal("10"), 3
        )

    assert await _balance(test_db, usd_wallet) == Decimal("1000.00")


@pytest.mark.integration
async def test_create_insufficient_funds(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    rate_provider,
    test_account: Account,
    poor_usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test locking 100 USD from a 50 USD wallet fails without side effects."""
    with pytest.raises(InsufficientFundsError):
        await _lock_100_usd(lock_engine, test_account, poor_usd_wallet, eur_wallet)

    assert rate_provider.calls == []
    assert await _balance(test_db, poor_usd_wallet) == Decimal("50.00")
    assert await _count(test_db, LockedConversion) == 0
    assert await _count(test_db, Transaction) == 0


@pytest.mark.integration
async def test_create_checks_funds_before_target_wallet(
    lock_engine: LockedConversionEngine, test_account: Account, poor_usd_wallet: Wallet
) -> None:
    """Test insufficient funds is reported before a missing target wallet."""
    with pytest.raises(InsufficientFundsError):
        await lock_engine.create_locked_conversion(
            test_account.id, poor_usd_wallet.id, uuid.uuid4(), Decimal("100"), 3
        )


@pytest.mark.integration
async def test_create_target_wallet_not_found(
    lock_engine: LockedConversionEngine, test_account: Account, usd_wallet: Wallet
) -> None:
    """Test an unknown target wallet is reported as not found."""
    with pytest.raises(NotFoundError, match="Target wallet"):
        await lock_engine.create_locked_conversion(
            test_account.id, usd_wallet.id, uuid.uuid4(), Decimal("10"), 3
        )


@pytest.mark.integration
async def test_create_target_wallet_of_other_account(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    test_account: Account,
    usd_wallet: Wallet,
    other_eur_wallet: Wallet,
) -> None:
    """Test cross-account locked conversions are rejected."""
    with pytest.raises(AuthorizationError):
        await lock_engine.create_locked_conversion(
            test_account.id, usd_wallet.id, other_eur_wallet.id, Decimal("10"), 3
        )

    assert await _balance(test_db, usd_wallet) == Decimal("1000.00")
    assert await _balance(test_db, other_eur_wallet) == Decimal("10.00")


@pytest.mark.integration
async def test_create_rate_unavailable(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    rate_provider,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test a failing rate provider aborts creation without any write."""
    rate_provider.fail = True

    with pytest.raises(RateUnavailableError):
        await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    assert await _balance(test_db, usd_wallet) == Decimal("1000.00")
    assert await _count(test_db, LockedConversion) == 0
    assert await _count(test_db, Transaction) == 0


@pytest.mark.integration
async def test_create_rate_lookup_timeout(
    test_db: AsyncSession,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test a slow rate provider is cut off and reported as unavailable."""

    class SlowRateProvider:
        async def get_rate(self, source_currency: str, target_currency: str) -> Decimal:
            await asyncio.sleep(5)
            return Decimal("0.92")

    engine = LockedConversionEngine(test_db, SlowRateProvider(), clock=clock, rate_timeout=0.01)

    with pytest.raises(RateUnavailableError, match="timed out"):
        await _lock_100_usd(engine, test_account, usd_wallet, eur_wallet)

    assert await _balance(test_db, usd_wallet) == Decimal("1000.00")
    assert await _count(test_db, LockedConversion) == 0


@pytest.mark.integration
@pytest.mark.parametrize(
    "bad_rate", [float("nan"), Decimal("NaN"), Decimal("sNaN"), Decimal("Infinity"), float("-inf")]
)
async def test_create_rejects_non_finite_rate(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    rate_provider,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
    bad_rate,
) -> None:
    """Test a NaN or infinite quote is treated as an unavailable rate."""
    rate_provider.rates[("USD", "EUR")] = bad_rate

    with pytest.raises(RateUnavailableError, match="Invalid exchange rate"):
        await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    assert await _balance(test_db, usd_wallet) == Decimal("1000.00")
    assert await _count(test_db, LockedConversion) == 0
    assert await _count(test_db, Transaction) == 0


@pytest.mark.integration
async def test_create_debit_guard_rejects_stale_balance(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test the debit re-checks the balance at write time.

    Another writer drains the wallet after the engine could have read it; the
    in-memory object still shows 1000.00 but the guarded UPDATE refuses.
    """
    await test_db.execute(
        update(Wallet)
        .where(Wallet.id == usd_wallet.id)
        .values(balance=Decimal("20.00"))
        .execution_options(synchronize_session=False)
    )
    await test_db.commit()
    assert usd_wallet.balance == Decimal("1000.00")

    with pytest.raises(InsufficientFundsError):
        await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    assert await _balance(test_db, usd_wallet) == Decimal("20.00")
    assert await _count(test_db, LockedConversion) == 0
    assert await _count(test_db, Transaction) == 0


# ---------------------------------------------------------------------------
# Inspection
# ---------------------------------------------------------------------------


@pytest.mark.integration
async def test_get_locked_conversion_compares_current_rate(
    lock_engine: LockedConversionEngine,
    rate_provider,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test inspection reports the market move since locking."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    rate_provider.rates[("USD", "EUR")] = Decimal("0.95")

    details = await lock_engine.get_locked_conversion(test_account.id, conversion.id)

    assert details.locked_conversion.id == conversion.id
    assert details.current_rate == Decimal("0.95")
    assert details.rate_difference == Decimal("3.2609")
    assert details.can_unlock is False


@pytest.mark.integration
async def test_get_locked_conversion_can_unlock_after_maturity(
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test can_unlock flips exactly at the unlock date."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    clock.set(MATURITY)
    details = await lock_engine.get_locked_conversion(test_account.id, conversion.id)

    assert details.can_unlock is True


@pytest.mark.integration
async def test_get_locked_conversion_degrades_when_rate_unavailable(
    lock_engine: LockedConversionEngine,
    rate_provider,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test a failing rate provider only blanks the rate fields."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    rate_provider.fail = True
    clock.set(MATURITY)

    details = await lock_engine.get_locked_conversion(test_account.id, conversion.id)

    assert details.current_rate is None
    assert details.rate_difference is None
    assert details.can_unlock is True


@pytest.mark.integration
async def test_get_locked_conversion_degrades_on_nan_rate(
    lock_engine: LockedConversionEngine,
    rate_provider,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test a NaN current quote blanks the rate fields instead of failing."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    rate_provider.rates[("USD", "EUR")] = float("nan")

    details = await lock_engine.get_locked_conversion(test_account.id, conversion.id)

    assert details.current_rate is None
    assert details.rate_difference is None
    assert details.can_unlock is False


@pytest.mark.integration
async def test_get_unlocked_conversion_skips_rate_lookup(
    lock_engine: LockedConversionEngine,
    rate_provider,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test an unlocked conversion reports no rate and cannot be unlocked again."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    clock.set(MATURITY)
    await lock_engine.unlock(test_account.id, conversion.id)
    calls_before = len(rate_provider.calls)

    details = await lock_engine.get_locked_conversion(test_account.id, conversion.id)

    assert details.locked_conversion.status == LockedConversionStatus.UNLOCKED
    assert details.current_rate is None
    assert details.rate_difference is None
    assert details.can_unlock is False
    assert len(rate_provider.calls) == calls_before


@pytest.mark.integration
async def test_get_locked_conversion_not_found(
    lock_engine: LockedConversionEngine, test_account: Account
) -> None:
    """Test inspecting an unknown id fails with not found."""
    with pytest.raises(NotFoundError):
        await lock_engine.get_locked_conversion(test_account.id, uuid.uuid4())


@pytest.mark.integration
async def test_get_locked_conversion_of_other_account(
    lock_engine: LockedConversionEngine,
    test_account: Account,
    other_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test another account cannot inspect the conversion."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)

    with pytest.raises(AuthorizationError):
        await lock_engine.get_locked_conversion(other_account.id, conversion.id)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@pytest.mark.integration
async def test_list_locked_conversions_newest_first_with_status_filter(
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    other_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test listing is scoped to the caller, ordered and filterable."""
    first = await lock_engine.create_locked_conversion(
        test_account.id, usd_wallet.id, eur_wallet.id, Decimal("10"), 1
    )
    clock.advance(days=1)
    second = await lock_engine.create_locked_conversion(
        test_account.id, usd_wallet.id, eur_wallet.id, Decimal("20"), 6
    )
    clock.set(datetime(2025, 2, 16, tzinfo=UTC))
    await lock_engine.unlock(test_account.id, first.id)

    everything = await lock_engine.list_locked_conversions(test_account.id)
    active = await lock_engine.list_locked_conversions(
        test_account.id, status=LockedConversionStatus.ACTIVE
    )
    unlocked = await lock_engine.list_locked_conversions(
        test_account.id, status=LockedConversionStatus.UNLOCKED
    )

    assert [c.id for c in everything] == [second.id, first.id]
    assert [c.id for c in active] == [second.id]
    assert [c.id for c in unlocked] == [first.id]
    assert await lock_engine.list_locked_conversions(other_account.id) == []


# ---------------------------------------------------------------------------
# Unlock
# ---------------------------------------------------------------------------


@pytest.mark.integration
async def test_unlock_before_maturity_is_still_locked(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test unlocking one day after creation fails without side effects."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    clock.advance(days=1)

    with pytest.raises(StillLockedError):
        await lock_engine.unlock(test_account.id, conversion.id)

    assert await _balance(test_db, eur_wallet) == Decimal("0.00")
    assert await _balance(test_db, usd_wallet) == Decimal("900.00")
    await test_db.refresh(conversion)
    assert conversion.status == LockedConversionStatus.ACTIVE
    assert await _transactions(test_db, TransactionType.UNLOCK_TO) == []


@pytest.mark.integration
async def test_unlock_after_maturity(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test a matured conversion credits the target wallet and is recorded."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    clock.set(MATURITY)
    clock.advance(minutes=1)

    result = await lock_engine.unlock(test_account.id, conversion.id)

    assert result.locked_conversion.status == LockedConversionStatus.UNLOCKED
    assert ensure_utc(result.locked_conversion.actual_unlock_date) == clock.now()
    assert result.target_wallet.id == eur_wallet.id
    assert result.target_wallet.balance == Decimal("89.24")
    assert await _balance(test_db, eur_wallet) == Decimal("89.24")
    assert await _balance(test_db, usd_wallet) == Decimal("900.00")

    entries = await _transactions(test_db, TransactionType.UNLOCK_TO)
    assert len(entries) == 1
    assert entries[0].amount == Decimal("89.24")
    assert entries[0].currency == "EUR"
    assert entries[0].wallet_id == eur_wallet.id
    assert entries[0].locked_conversion_id == conversion.id


@pytest.mark.integration
async def test_unlock_twice_is_rejected(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test the second unlock fails and nothing is credited twice."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    clock.set(MATURITY)
    await lock_engine.unlock(test_account.id, conversion.id)

    with pytest.raises(AlreadyUnlockedError):
        await lock_engine.unlock(test_account.id, conversion.id)

    assert await _balance(test_db, eur_wallet) == Decimal("89.24")
    assert len(await _transactions(test_db, TransactionType.UNLOCK_TO)) == 1


@pytest.mark.integration
async def test_unlock_losing_race_is_rejected(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test an unlock that read ACTIVE loses to one that already committed.

    The row is flipped to UNLOCKED behind the session's back so the engine
    sees a stale ACTIVE status; the status compare-and-swap must still refuse.
    """
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    clock.set(MATURITY)
    await test_db.execute(
        update(LockedConversion)
        .where(LockedConversion.id == conversion.id)
        .values(status=LockedConversionStatus.UNLOCKED, actual_unlock_date=MATURITY)
        .execution_options(synchronize_session=False)
    )
    await test_db.commit()
    assert conversion.status == LockedConversionStatus.ACTIVE

    with pytest.raises(AlreadyUnlockedError):
        await lock_engine.unlock(test_account.id, conversion.id)

    assert await _balance(test_db, eur_wallet) == Decimal("0.00")
    assert await _transactions(test_db, TransactionType.UNLOCK_TO) == []


@pytest.mark.integration
async def test_unlock_not_found(
    lock_engine: LockedConversionEngine, test_account: Account
) -> None:
    """Test unlocking an unknown id fails with not found."""
    with pytest.raises(NotFoundError):
        await lock_engine.unlock(test_account.id, uuid.uuid4())


@pytest.mark.integration
async def test_unlock_by_other_account(
    test_db: AsyncSession,
    lock_engine: LockedConversionEngine,
    clock: FixedClock,
    test_account: Account,
    other_account: Account,
    usd_wallet: Wallet,
    eur_wallet: Wallet,
) -> None:
    """Test another account cannot unlock the conversion, even after maturity."""
    conversion = await _lock_100_usd(lock_engine, test_account, usd_wallet, eur_wallet)
    clock.set(MATURITY)

    with pytest.raises(AuthorizationError):
        await lock_engine.unlock(other_account.id, conversion.id)

    assert await _balance(test_db, eur_wallet) == Decimal("0.00")
    await test_db.refresh(conversion)
    assert conversion.status == LockedConversionStatus.ACTIVE
    assert await _transactions(test_db, TransactionType.UNLOCK_TO) == []
