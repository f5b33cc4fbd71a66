"""
Currency Normalizer - converts USD fixed markups into the buyer's display
currency using live Frankfurter rates.

Conversion is fail-open: a failed, slow or malformed rate lookup returns the
original amount flagged has_conversion=False and never raises, so ticket
display and checkout are never blocked on the rate source.
"""
import logging
import threading
import time
from dataclasses import dataclass, asdict
from typing import Optional

import requests

from ..config.settings import get_settings, Settings
from ..engine.models import EffectiveMarkup, MARKUP_FIXED, MARKUP_PERCENTAGE

logger = logging.getLogger(__name__)

USD = 'USD'


@dataclass
class ConversionResult:
    """Outcome of a single conversion."""
    amount: float
    original_amount: float
    from_currency: str
    to_currency: str
    rate: Optional[float]
    has_conversion: bool

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class PricedMarkup:
    """A markup expressed in the currency the ticket is displayed in."""
    base_price: float
    markup_amount: float
    final_price: float
    currency: str
    markup_currency: str
    has_conversion: bool

    def to_dict(self) -> dict:
        return asdict(self)


class CurrencyNormalizer:
    """
    Live exchange rate lookups with a short per-pair cache.

    Only successful rates are cached; each failed call is independent and
    the caller decides whether to try again.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        clock=time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self._clock = clock
        self._cache: dict[tuple[str, str], tuple[float, float]] = {}
        self._lock = threading.Lock()

    def convert(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        """
        Convert `amount` from one currency to another.

        Returns the original amount with has_conversion=False when no live
        rate is available.
        """
        source = (from_currency or '').strip().upper()
        target = (to_currency or '').strip().upper()
        amount = float(amount)

        if source == target:
            return ConversionResult(amount, amount, source, target, 1.0, True)

        rate = self.get_rate(source, target)
        if rate is None:
            return ConversionResult(amount, amount, source, target, None, False)

        return ConversionResult(round(amount * rate, 2), amount, source, target, rate, True)

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """Cached rate for a currency pair, or None if it could not be fetched."""
        key = (from_currency, to_currency)
        now = self._clock()
        with self._lock:
            cached = self._cache.get(key)
            if cached and now - cached[1] < self.settings.rate_cache_ttl_seconds:
                return cached[0]

        rate = self._fetch_rate(from_currency, to_currency)
        if rate is not None:
            with self._lock:
                self._cache[key] = (rate, self._clock())
        return rate

    def clear_cache(self):
        with self._lock:
            self._cache.clear()

    def _fetch_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """Fetch one rate from the Frankfurter API. Any failure yields None."""
        if not from_currency or not to_currency:
            logger.warning("Currency conversion skipped: missing currency code (%r → %r)", from_currency, to_currency)
            return None

        try:
            response = self.session.get(
                f"{self.settings.rates_api_url}/latest",
                params={"from": from_currency, "to": to_currency},
                timeout=self.settings.rate_timeout_seconds,
            )
            if not response.ok:
                logger.warning(
                    "Exchange rate request failed: %s → %s returned %s",
                    from_currency, to_currency, response.status_code,
                )
                return None

            rate = response.json().get("rates", {}).get(to_currency)
            if not rate:
                logger.warning("Exchange rate for %s not found in response", to_currency)
                return None
            return float(rate)
        except Exception as e:
            logger.warning("Currency conversion failed (%s → %s): %s", from_currency, to_currency, e)
            return None

    def markup_in_currency(
        self,
        markup: Optional[EffectiveMarkup],
        base_price: float,
        currency: str,
    ) -> PricedMarkup:
        """
        Express a resolved markup against a base price shown in `currency`.

        Percentage markups apply directly to the displayed base price. Fixed
        markups are stored in USD and converted; if no rate is available the
        USD amount is kept and markup_currency stays USD.
        """
        currency = (currency or USD).strip().upper()
        base_price = float(base_price)

        if markup is None:
            return PricedMarkup(base_price, 0.0, base_price, currency, currency, True)

        if markup.markup_type == MARKUP_PERCENTAGE:
            amount = round(base_price * float(markup.markup_amount) / 100.0, 2)
            return PricedMarkup(base_price, amount, round(base_price + amount, 2), currency, currency, True)

        if markup.markup_type != MARKUP_FIXED:
            logger.warning("Unknown markup type %r treated as fixed", markup.markup_type)

        conversion = self.convert(markup.markup_amount, USD, currency)
        return PricedMarkup(
            base_price=base_price,
            markup_amount=conversion.amount,
            final_price=round(base_price + conversion.amount, 2),
            currency=currency,
            markup_currency=currency if conversion.has_conversion else USD,
            has_conversion=conversion.has_conversion,
        )
