"""Exchange rate provider backed by the exchangerate.host ``live`` endpoint.

The locked conversion engine only depends on the ``ExchangeRateProvider``
protocol: ``get_rate(source, target)`` returns a positive ``Decimal`` or raises
``RateUnavailableError``. Every failure mode of the HTTP call (timeout,
transport error, non-2xx status, malformed body, missing quote) is folded into
that single error so callers can decide whether it is fatal.

Response format (``GET {base_url}?access_key=...&source=USD&currencies=EUR``):

    {"success": true, "source": "USD", "quotes": {"USDEUR": 0.92}}
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Protocol

import httpx

from app.core.exceptions import RateUnavailableError

logger = logging.getLogger(__name__)


class ExchangeRateProvider(Protocol):
    """Source of spot exchange rates."""

    async def get_rate(self, source_currency: str, target_currency: str) -> Decimal:
        """Return how many units of ``target_currency`` one ``source_currency`` buys."""
        ...


class ExchangeRateHostProvider:
    """Fetch spot rates over HTTP with a bounded timeout.

    Args:
        base_url: Full URL of the ``live`` endpoint
        api_key: Access key sent as ``access_key``
        timeout: Seconds allowed for the whole request

    Example:
        >>> provider = ExchangeRateHostProvider(
        ...     base_url="https://api.exchangerate.host/live", api_key="..."
        ... )
        >>> rate = await provider.get_rate("USD", "EUR")
        >>> print(rate)
        0.92
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout

    async def get_rate(self, source_currency: str, target_currency: str) -> Decimal:
        source = source_currency.upper()
        target = target_currency.upper()

        if source == target:
            return Decimal("1")

        params = {
            "access_key": self.api_key,
            "format": 1,
            "source": source,
            "currencies": target,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.base_url, params=params)
                response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"Timed out fetching rate {source}->{target} after {self.timeout}s")
            raise RateUnavailableError(f"Exchange rate {source}->{target} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching rate {source}->{target}: {e}")
            raise RateUnavailableError(f"Exchange rate {source}->{target} unavailable") from e
        except ValueError as e:
            logger.error(f"Malformed rate response for {source}->{target}: {e}")
            raise RateUnavailableError(f"Exchange rate {source}->{target} unavailable") from e

        return self._extract_rate(payload, source, target)

    @staticmethod
    def _extract_rate(payload: object, source: str, target: str) -> Decimal:
        """Pull ``quotes[SOURCETARGET]`` out of the response body."""
        quotes = payload.get("quotes") if isinstance(payload, dict) else None
        raw_rate = quotes.get(f"{source}{target}") if isinstance(quotes, dict) else None

        if raw_rate is None:
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.error(f"No quote for {source}->{target} in response (error: {error})")
            raise RateUnavailableError(f"Exchange rate {source}->{target} unavailable")

        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation as e:
            raise RateUnavailableError(f"Invalid exchange rate for {source}->{target}") from e

        if not rate.is_finite() or rate <= 0:
            logger.error(f"Non-positive rate {rate} for {source}->{target}")
            raise RateUnavailableError(f"Invalid exchange rate for {source}->{target}")

        logger.debug(f"Fetched rate {source}->{target} = {rate}")
        return rate
