"""Live gold rate lookup.

Builds per-gram INR gold rates for the common carats from two free public
endpoints: the USD to INR exchange rate and the gold (XAU) price in USD per
troy ounce. Any lookup that fails falls back to a documented estimate, so
this module never raises on network errors; the quote's ``source`` and
``note`` say which figures were estimated.

Fallbacks:
    USD -> INR:          83.0
    Gold (USD / ozt):    2400.0   ("Market Estimate")
    24K INR / gram:      6750.0   (used only if the conversion itself fails)

Store staff can always override the quote with a manually entered rate;
the pricing engine just takes whatever rate it is given.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import requests

logger = logging.getLogger(__name__)

EXCHANGE_RATE_URL = "https://api.exchangerate-api.com/v4/latest/USD"
GOLD_PRICE_URLS = [
    "https://api.exchangerate-api.com/v4/latest/XAU",
    "https://api.fixer.io/latest?base=XAU&symbols=USD",
]

TROY_OUNCE_GRAMS = 31.1035
DEFAULT_USD_TO_INR = 83.0
DEFAULT_GOLD_USD_PER_OUNCE = 2400.0
FALLBACK_RATE_24K = 6750.0

CARATS = [24, 22, 18, 14, 10]

_PURITY_RE = re.compile(r"\b(?P<carat>\d{1,2})\s*(k|kt|carat|ct)?\b", re.IGNORECASE)


@dataclass
class GoldRateQuote:
    """Per-gram gold rates in INR.

    Attributes:
        rates: Mapping like {"24K": 7000.0, "22K": 6416.67, ...}.
        base_rate_24k: 24K rate per gram (rounded to paise).
        source: Where the gold price came from.
        note: Set when any figure is an estimate rather than a live quote.
        timestamp: UTC time the quote was built (ISO 8601).
    """

    rates: dict[str, float]
    base_rate_24k: float
    source: str
    note: Optional[str] = None
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def is_estimate(self) -> bool:
        return self.note is not None

    def rate_for(self, carat: int) -> float:
        """Return the per-gram rate for a carat, computed from 24K if not listed."""
        key = f"{carat}K"
        if key in self.rates:
            return self.rates[key]
        return round(rate_for_carat(self.base_rate_24k, carat), 2)


def rate_for_carat(base_rate_24k: float, carat: int) -> float:
    """Scale the 24K rate by purity (carat / 24).

    Examples:
        >>> rate_for_carat(2400, 18)
        1800.0
    """
    if not 0 < carat <= 24:
        raise ValueError(f"Carat must be between 1 and 24, got {carat}")
    return base_rate_24k * carat / 24


def carat_from_purity(purity: str | None) -> int | None:
    """Extract the carat from a free-text purity label.

    Examples:
        >>> carat_from_purity("22K")
        22
        >>> carat_from_purity("925 Sterling") is None
        True
    """
    if not purity:
        return None
    match = _PURITY_RE.search(str(purity))
    if not match:
        return None
    carat = int(match.group("carat"))
    return carat if 0 < carat <= 24 else None


def _build_rates(base_rate_24k: float) -> dict[str, float]:
    return {f"{c}K": round(rate_for_carat(base_rate_24k, c), 2) for c in CARATS}


def fetch_usd_to_inr(session: requests.Session, timeout: float = 10) -> float:
    """Fetch the USD to INR exchange rate, falling back to the default."""
    try:
        response = session.get(
            EXCHANGE_RATE_URL, timeout=timeout, headers={"Accept": "application/json"}
        )
        response.raise_for_status()
        rate = response.json().get("rates", {}).get("INR")
        if rate:
            return float(rate)
        logger.warning("Exchange rate response has no INR rate, using %.2f", DEFAULT_USD_TO_INR)
    except requests.RequestException as e:
        logger.warning("Exchange rate API failed, using default %.2f: %s", DEFAULT_USD_TO_INR, e)
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning("Invalid exchange rate response, using default: %s", e)
    return DEFAULT_USD_TO_INR


def fetch_gold_usd_per_ounce(
    session: requests.Session, timeout: float = 10
) -> tuple[float | None, str]:
    """Try each public gold price endpoint in turn.

    Returns:
        (usd_per_ounce, source). usd_per_ounce is None when every endpoint
        failed.
    """
    for url in GOLD_PRICE_URLS:
        try:
            response = session.get(
                url, timeout=timeout, headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.debug("Gold price endpoint %s failed: %s", url, e)
            continue
        except ValueError as e:
            logger.debug("Gold price endpoint %s returned invalid JSON: %s", url, e)
            continue

        try:
            # XAU-based quotes give ounces per USD, so invert
            usd = (data.get("rates") or {}).get("USD")
            if usd:
                return 1 / float(usd), "ExchangeRate-API"
            for key in ("price", "spot"):
                if data.get(key):
                    return float(data[key]), "Public API"
        except (TypeError, ValueError, AttributeError, ZeroDivisionError) as e:
            logger.debug("Gold price endpoint %s returned an unusable quote: %s", url, e)

    return None, "Market Estimate"


def fetch_gold_rates(
    session: requests.Session | None = None,
    timeout: float = 10,
) -> GoldRateQuote:
    """Build a GoldRateQuote from the public endpoints.

    Args:
        session: Optional requests session (a new one is used if None).
        timeout: Per-request timeout in seconds.

    Returns:
        GoldRateQuote. Never raises on network failures.
    """
    own_session = session is None
    session = session or requests.Session()
    try:
        usd_to_inr = fetch_usd_to_inr(session, timeout=timeout)
        usd_per_ounce, source = fetch_gold_usd_per_ounce(session, timeout=timeout)
    finally:
        if own_session:
            session.close()

    note = None
    if usd_per_ounce is None:
        usd_per_ounce = DEFAULT_GOLD_USD_PER_OUNCE
        note = "Using market estimate. Verify the rate manually before billing."

    try:
        base = usd_per_ounce * usd_to_inr / TROY_OUNCE_GRAMS
        if not base > 0:
            raise ValueError(f"non-positive gold rate {base}")
    except (ArithmeticError, ValueError) as e:
        logger.warning("Could not convert gold price, using fallback rate: %s", e)
        base = FALLBACK_RATE_24K
        source = "Fallback"
        note = "Approximate rates - APIs unavailable. Please verify manually."

    base = round(base, 2)
    logger.info("24K gold rate %.2f INR/g (source: %s)", base, source)
    return GoldRateQuote(
        rates=_build_rates(base),
        base_rate_24k=base,
        source=source,
        note=note,
    )


def fallback_quote() -> GoldRateQuote:
    """Static quote used when no live lookup is attempted."""
    return GoldRateQuote(
        rates=_build_rates(FALLBACK_RATE_24K),
        base_rate_24k=FALLBACK_RATE_24K,
        source="Fallback",
        note="Approximate rates - APIs unavailable. Please verify manually.",
    )
