"""USD->INR rate suppliers and the trailing six-month average."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

import requests

from staffledger.core.config import CurrencyConfig
from staffledger.core.exceptions import CacheError, CurrencyRateError
from staffledger.core.money import quantize_rate, to_decimal
from staffledger.core.protocols import ICacheBackend
from staffledger.models.invoice import CurrencyRateData, RatePoint

logger = logging.getLogger(__name__)

CACHE_KEY = "staffledger:rates:USD:INR"
HISTORY_DISPLAY_POINTS = 30


def months_before(day: date, months: int) -> date:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def six_month_average(
    history: Iterable[RatePoint], as_of: date, months: int = 6
) -> Decimal | None:
    """Mean of the rate points inside ``(as_of - months, as_of]``, to 4 dp.

    Returns None when no point falls in the window.
    """
    start = months_before(as_of, months)
    window = [p.rate for p in history if start <= p.day <= as_of]
    if not window:
        return None
    return quantize_rate(sum(window, Decimal("0")) / len(window))


class StaticRateSupplier:
    """Fixed rates from configuration; also the fallback for remote suppliers."""

    def __init__(self, settings: CurrencyConfig | None = None) -> None:
        self._settings = settings or CurrencyConfig()

    def get_rates(self) -> CurrencyRateData:
        return CurrencyRateData(
            current_rate=to_decimal(self._settings.fallback_current_rate),
            six_month_average=to_decimal(self._settings.fallback_six_month_average),
            source="static",
        )


class FrankfurterRateSupplier:
    """Latest and historical USD->INR rates from the Frankfurter API.

    Successful responses are cached for ``cache_ttl`` seconds. Any HTTP or
    decoding failure is logged and answered with the static fallback rates.
    """

    def __init__(
        self,
        settings: CurrencyConfig | None = None,
        cache: ICacheBackend | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings or CurrencyConfig()
        self._cache = cache
        self._session = session or requests.Session()
        self._fallback = StaticRateSupplier(self._settings)

    def get_rates(self, today: date | None = None) -> CurrencyRateData:
        cached = self._read_cache()
        if cached is not None:
            return cached

        try:
            data = self.fetch(today or date.today())
        except (requests.RequestException, CurrencyRateError) as exc:
            logger.error("Currency rate fetch failed, using fallback rates: %s", exc)
            return self._fallback.get_rates()

        self._write_cache(data)
        return data

    def fetch(self, today: date) -> CurrencyRateData:
        """Call the API for the history window and the latest rate.

        Raises:
            requests.RequestException: transport or HTTP status failure.
            CurrencyRateError: the payload carries no usable INR rates.
        """
        base = self._settings.frankfurter_base_url.rstrip("/")
        params = {"base": "USD", "symbols": "INR"}
        start = months_before(today, self._settings.history_months)

        history_payload = self._get_json(f"{base}/{start.isoformat()}..{today.isoformat()}", params)
        latest_payload = self._get_json(f"{base}/latest", params)

        try:
            history = [
                RatePoint(day=date.fromisoformat(day), rate=to_decimal(rates["INR"]))
                for day, rates in history_payload.get("rates", {}).items()
                if rates.get("INR")
            ]
            current = to_decimal(latest_payload["rates"]["INR"])
        except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as exc:
            raise CurrencyRateError(f"Malformed Frankfurter payload: {exc}") from exc

        average = six_month_average(history, today, self._settings.history_months)
        if average is None or current <= 0:
            raise CurrencyRateError("Frankfurter returned no INR rates")

        history.sort(key=lambda p: p.day, reverse=True)
        return CurrencyRateData(
            current_rate=quantize_rate(current),
            six_month_average=average,
            rates_history=history[:HISTORY_DISPLAY_POINTS],
            source="frankfurter",
        )

    def _get_json(self, url: str, params: dict[str, str]) -> dict:
        response = self._session.get(url, params=params, timeout=self._settings.timeout)
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as exc:
            raise CurrencyRateError(f"Non-JSON response from {url}") from exc

    def _read_cache(self) -> CurrencyRateData | None:
        if self._cache is None:
            return None
        try:
            raw = self._cache.get(CACHE_KEY)
        except CacheError as exc:
            logger.warning("Rate cache read failed: %s", exc)
            return None
        return CurrencyRateData.model_validate_json(raw) if raw else None

    def _write_cache(self, data: CurrencyRateData) -> None:
        if self._cache is None:
            return
        try:
            self._cache.setex(CACHE_KEY, self._settings.cache_ttl, data.model_dump_json())
        except CacheError as exc:
            logger.warning("Rate cache write failed: %s", exc)


def create_rate_supplier(
    settings: CurrencyConfig, cache: ICacheBackend | None = None
) -> StaticRateSupplier | FrankfurterRateSupplier:
    if settings.supplier == "frankfurter":
        return FrankfurterRateSupplier(settings, cache=cache)
    return StaticRateSupplier(settings)
