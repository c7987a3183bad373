"""Application-wide constants for money handling and locked conversions.

Constants are grouped by concern so call sites read as
``MoneyConstants.CURRENCY_QUANTUM`` rather than bare literals.
"""

from decimal import Decimal


class MoneyConstants:
    """Precision rules shared by balances, fees and exchange rates."""

    # Balances, fees and converted amounts are stored with two decimal places
    CURRENCY_QUANTUM = Decimal("0.01")

    # Exchange rates are stored as Numeric(18, 8)
    RATE_QUANTUM = Decimal("0.00000001")


class LockedConversionConstants:
    """Defaults for the locked conversion (time deposit) product."""

    DEFAULT_FEE_PERCENTAGE = Decimal("3.0")

    # Longest lock period accepted (100 years)
    MAX_LOCK_PERIOD_MONTHS = 1200

    # Percentage change is reported with this precision
    RATE_DIFFERENCE_QUANTUM = Decimal("0.0001")


class APIConstants:
    """Constants for API behavior, limits, and defaults."""

    DEFAULT_PAGE_SIZE = 100
    MAX_PAGE_SIZE = 1000


# Module-level aliases for the most common values
CURRENCY_QUANTUM = MoneyConstants.CURRENCY_QUANTUM
RATE_QUANTUM = MoneyConstants.RATE_QUANTUM
