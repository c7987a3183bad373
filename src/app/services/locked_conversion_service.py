"""Locked conversion engine: fixed-rate time deposits between two wallets.

A locked conversion debits a source wallet, takes a fee in the source
currency, converts the remainder at the spot rate of the moment and holds the
proceeds until the unlock date. Unlocking credits the target wallet exactly
once.

State machine::

    ACTIVE --unlock (now >= unlock_date)--> UNLOCKED

Every mutating operation performs its wallet update, its locked conversion
insert/update and its ledger entry in one ``transactional()`` block. All
precondition checks and the rate lookup happen before that block opens, so a
reported failure never leaves a partial write behind.

Two guards make the writes safe under concurrency:

- the source debit only applies while ``balance >= amount``;
- the unlock transition is a compare-and-swap on ``status = ACTIVE``.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, SystemClock, add_months, ensure_utc
from app.core.constants import (
    CURRENCY_QUANTUM,
    RATE_QUANTUM,
    LockedConversionConstants,
)
from app.core.exceptions import (
    AlreadyUnlockedError,
    AuthorizationError,
    InsufficientFundsError,
    NotFoundError,
    RateUnavailableError,
    StillLockedError,
    ValidationError,
)
from app.db.session import transactional
from app.models.locked_conversion import LockedConversion, LockedConversionStatus
from app.models.transaction import Transaction, TransactionType
from app.models.wallet import Wallet
from app.repositories.locked_conversion import LockedConversionRepository
from app.repositories.transaction import TransactionRepository
from app.repositories.wallet import WalletRepository
from app.services.exchange_rate_service import ExchangeRateProvider

logger = logging.getLogger(__name__)

DEFAULT_RATE_TIMEOUT_SECONDS = 10.0


@dataclass
class LockedConversionDetails:
    """A locked conversion together with how the market moved since locking."""

    locked_conversion: LockedConversion
    current_rate: Decimal | None
    rate_difference: Decimal | None
    can_unlock: bool


@dataclass
class UnlockResult:
    """Outcome of a successful unlock."""

    locked_conversion: LockedConversion
    target_wallet: Wallet


def calculate_fee(source_amount: Decimal, fee_percentage: Decimal) -> Decimal:
    """Fee in source currency, rounded half-up to the currency quantum.

    Example:
        >>> calculate_fee(Decimal("100"), Decimal("3.0"))
        Decimal('3.00')
    """
    return (source_amount * fee_percentage / Decimal(100)).quantize(
        CURRENCY_QUANTUM, rounding=ROUND_HALF_UP
    )


def calculate_target_amount(net_amount: Decimal, rate: Decimal) -> Decimal:
    """Converted amount in target currency, rounded half-up to the currency quantum."""
    return (net_amount * rate).quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def calculate_rate_difference(current_rate: Decimal, locked_rate: Decimal) -> Decimal:
    """Signed percentage change of ``current_rate`` relative to ``locked_rate``."""
    return ((current_rate - locked_rate) / locked_rate * Decimal(100)).quantize(
        LockedConversionConstants.RATE_DIFFERENCE_QUANTUM, rounding=ROUND_HALF_UP
    )


class LockedConversionEngine:
    """Create, inspect, list and unlock locked conversions.

    Args:
        db: Session used for every read and the grouped writes
        rate_provider: Source of spot rates
        clock: Time source (defaults to the system clock)
        fee_percentage: Fee applied at creation, in percent
        rate_timeout: Upper bound in seconds for one rate lookup

    Example:
        >>> engine = LockedConversionEngine(db, provider, clock=SystemClock())
        >>> conversion = await engine.create_locked_conversion(
        ...     account.id, usd_wallet.id, eur_wallet.id, Decimal("100"), 3
        ... )
        >>> print(conversion.target_amount)
        89.24
    """

    def __init__(
        self,
        db: AsyncSession,
        rate_provider: ExchangeRateProvider,
        *,
        clock: Clock | None = None,
        fee_percentage: Decimal | float | str = LockedConversionConstants.DEFAULT_FEE_PERCENTAGE,
        rate_timeout: float = DEFAULT_RATE_TIMEOUT_SECONDS,
    ) -> None:
        self.db = db
        self.rate_provider = rate_provider
        self.clock = clock or SystemClock()
        self.fee_percentage = Decimal(str(fee_percentage))
        self.rate_timeout = rate_timeout

        if self.fee_percentage < 0 or self.fee_percentage >= 100:
            raise ValueError(f"fee_percentage must be in [0, 100), got {self.fee_percentage}")

        self.wallets = WalletRepository(Wallet, db)
        self.conversions = LockedConversionRepository(LockedConversion, db)
        self.transactions = TransactionRepository(Transaction, db)

    async def create_locked_conversion(
        self,
        caller_account_id: uuid.UUID,
        source_wallet_id: uuid.UUID | None,
        target_wallet_id: uuid.UUID | None,
        source_amount: Decimal | int | str | None,
        lock_period_months: int | None,
    ) -> LockedConversion:
        """Lock ``source_amount`` of the source wallet for ``lock_period_months``.

        Raises:
            ValidationError: Missing field, non-positive amount or period
            NotFoundError: Source or target wallet does not exist
            AuthorizationError: A wallet belongs to another account
            InsufficientFundsError: Source balance below ``source_amount``
            RateUnavailableError: No spot rate could be obtained

        Returns:
            The new ACTIVE locked conversion with both wallets loaded
        """
        amount, months = self._validate_create_input(
            source_wallet_id, target_wallet_id, source_amount, lock_period_months
        )

        source_wallet = await self.wallets.get(source_wallet_id)
        if source_wallet is None:
            raise NotFoundError("Source wallet not found")
        if source_wallet.account_id != caller_account_id:
            raise AuthorizationError("Source wallet belongs to another account")
        if source_wallet.balance < amount:
            raise InsufficientFundsError(
                f"Insufficient funds: balance {source_wallet.balance} {source_wallet.currency}, "
                f"requested {amount}"
            )

        target_wallet = await self.wallets.get(target_wallet_id)
        if target_wallet is None:
            raise NotFoundError("Target wallet not found")
        if target_wallet.account_id != caller_account_id:
            raise AuthorizationError("Target wallet belongs to another account")

        fee = calculate_fee(amount, self.fee_percentage)
        net_amount = amount - fee
        rate = await self._fetch_rate(source_wallet.currency, target_wallet.currency)
        target_amount = calculate_target_amount(net_amount, rate)

        now = self.clock.now()
        conversion = LockedConversion(
            id=uuid.uuid4(),
            account_id=caller_account_id,
            source_wallet_id=source_wallet.id,
            target_wallet_id=target_wallet.id,
            source_currency=source_wallet.currency,
            target_currency=target_wallet.currency,
            source_amount=amount,
            target_amount=target_amount,
            exchange_rate=rate,
            fee=fee,
            fee_percentage=self.fee_percentage,
            status=LockedConversionStatus.ACTIVE,
            lock_date=now,
            unlock_date=add_months(now, months),
            created_at=now,
            updated_at=now,
        )

        async with transactional(self.db):
            # Re-checks the balance at write time; the read above may be stale
            if not await self.wallets.debit(source_wallet.id, amount):
                raise InsufficientFundsError(
                    f"Insufficient funds in wallet {source_wallet.id} for {amount}"
                )
            self.db.add(conversion)
            self.transactions.append(
                Transaction(
                    type=TransactionType.LOCK_FROM,
                    amount=-amount,
                    currency=source_wallet.currency,
                    wallet_id=source_wallet.id,
                    source_wallet_id=target_wallet.id,
                    exchange_rate=rate,
                    locked_conversion_id=conversion.id,
                    created_at=now,
                )
            )

        logger.info(
            f"Locked {amount} {conversion.source_currency} -> {target_amount} "
            f"{conversion.target_currency} at {rate} (fee {fee}) until "
            f"{conversion.unlock_date.isoformat()} [conversion {conversion.id}]"
        )

        await self.wallets.refresh(source_wallet)
        created = await self.conversions.get_with_wallets(conversion.id, refresh=True)
        if created is None:
            raise NotFoundError("Locked conversion not found")
        return created

    async def get_locked_conversion(
        self,
        caller_account_id: uuid.UUID,
        locked_conversion_id: uuid.UUID,
    ) -> LockedConversionDetails:
        """Load a locked conversion and compare its rate with the market.

        A failed rate lookup does not fail the call: ``current_rate`` and
        ``rate_difference`` are then reported as ``None``.

        Raises:
            NotFoundError: No such locked conversion
            AuthorizationError: It belongs to another account
        """
        conversion = await self._get_owned(caller_account_id, locked_conversion_id)

        current_rate: Decimal | None = None
        rate_difference: Decimal | None = None
        can_unlock = False

        if conversion.is_active:
            try:
                current_rate = await self._fetch_rate(
                    conversion.source_currency, conversion.target_currency
                )
            except RateUnavailableError as e:
                logger.warning(
                    f"Current rate unavailable for conversion {conversion.id}: {e.detail}"
                )
            else:
                rate_difference = calculate_rate_difference(
                    current_rate, conversion.exchange_rate
                )

            can_unlock = self.clock.now() >= ensure_utc(conversion.unlock_date)

        return LockedConversionDetails(
            locked_conversion=conversion,
            current_rate=current_rate,
            rate_difference=rate_difference,
            can_unlock=can_unlock,
        )

    async def list_locked_conversions(
        self,
        caller_account_id: uuid.UUID,
        *,
        status: LockedConversionStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[LockedConversion]:
        """The caller's locked conversions, newest first."""
        return await self.conversions.get_by_account_id(
            caller_account_id, status=status, skip=skip, limit=limit
        )

    async def unlock(
        self,
        caller_account_id: uuid.UUID,
        locked_conversion_id: uuid.UUID,
    ) -> UnlockResult:
        """Release a matured conversion into its target wallet.

        Raises:
            NotFoundError: No such locked conversion
            AuthorizationError: It belongs to another account
            AlreadyUnlockedError: It is not ACTIVE (including losing a race
                against a concurrent unlock)
            StillLockedError: Its unlock date has not been reached
        """
        conversion = await self._get_owned(caller_account_id, locked_conversion_id)

        if not conversion.is_active:
            raise AlreadyUnlockedError(f"Locked conversion {conversion.id} is not active")

        now = self.clock.now()
        unlock_date = ensure_utc(conversion.unlock_date)
        if now < unlock_date:
            raise StillLockedError(
                f"Locked conversion {conversion.id} is locked until {unlock_date.isoformat()}"
            )

        conversion_id = conversion.id
        target_wallet_id = conversion.target_wallet_id
        target_amount = conversion.target_amount
        target_currency = conversion.target_currency

        async with transactional(self.db):
            if not await self.conversions.mark_unlocked(conversion_id, now):
                raise AlreadyUnlockedError(f"Locked conversion {conversion_id} is not active")
            await self.wallets.credit(target_wallet_id, target_amount)
            self.transactions.append(
                Transaction(
                    type=TransactionType.UNLOCK_TO,
                    amount=target_amount,
                    currency=target_currency,
                    wallet_id=target_wallet_id,
                    source_wallet_id=conversion.source_wallet_id,
                    exchange_rate=conversion.exchange_rate,
                    locked_conversion_id=conversion_id,
                    created_at=now,
                )
            )

        logger.info(
            f"Unlocked conversion {conversion_id}: credited {target_amount} {target_currency} "
            f"to wallet {target_wallet_id}"
        )

        unlocked = await self.conversions.get_with_wallets(conversion_id, refresh=True)
        if unlocked is None:
            raise NotFoundError("Locked conversion not found")
        target_wallet = await self.wallets.refresh(unlocked.target_wallet)
        return UnlockResult(locked_conversion=unlocked, target_wallet=target_wallet)

    async def _get_owned(
        self,
        caller_account_id: uuid.UUID,
        locked_conversion_id: uuid.UUID,
    ) -> LockedConversion:
        conversion = await self.conversions.get_with_wallets(locked_conversion_id)
        if conversion is None:
            raise NotFoundError("Locked conversion not found")
        if conversion.account_id != caller_account_id:
            raise AuthorizationError("Locked conversion belongs to another account")
        return conversion

    async def _fetch_rate(self, source_currency: str, target_currency: str) -> Decimal:
        """Spot rate bounded by ``rate_timeout``; every failure becomes RateUnavailableError."""
        try:
            rate = await asyncio.wait_for(
                self.rate_provider.get_rate(source_currency, target_currency),
                timeout=self.rate_timeout,
            )
        except TimeoutError as e:
            raise RateUnavailableError(
                f"Exchange rate {source_currency}->{target_currency} timed out"
            ) from e

        try:
            rate = Decimal(str(rate))
            if rate.is_finite():
                rate = rate.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise RateUnavailableError(
                f"Invalid exchange rate {rate!r} for {source_currency}->{target_currency}"
            ) from e

        # Non-finite rates must be rejected before any comparison
        if not rate.is_finite() or rate <= 0:
            raise RateUnavailableError(
                f"Invalid exchange rate {rate} for {source_currency}->{target_currency}"
            )
        return rate

    @staticmethod
    def _validate_create_input(
        source_wallet_id: uuid.UUID | None,
        target_wallet_id: uuid.UUID | None,
        source_amount: Decimal | int | str | None,
        lock_period_months: int | None,
    ) -> tuple[Decimal, int]:
        if (
            source_wallet_id is None
            or target_wallet_id is None
            or source_amount is None
            or lock_period_months is None
        ):
            raise ValidationError("Missing required fields")

        try:
            amount = Decimal(str(source_amount))
        except InvalidOperation as e:
            raise ValidationError("source_amount must be a number") from e

        if not amount.is_finite() or amount <= 0:
            raise ValidationError("source_amount must be greater than zero")
        if amount != amount.quantize(CURRENCY_QUANTUM):
            raise ValidationError("source_amount must have at most two decimal places")

        if (
            isinstance(lock_period_months, bool)
            or not isinstance(lock_period_months, int)
            or lock_period_months <= 0
        ):
            raise ValidationError("lock_period_months must be a positive integer")
        if lock_period_months > LockedConversionConstants.MAX_LOCK_PERIOD_MONTHS:
            raise ValidationError(
                "lock_period_months must be at most "
                f"{LockedConversionConstants.MAX_LOCK_PERIOD_MONTHS}"
            )

        return amount, lock_period_months
