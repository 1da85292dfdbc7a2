"""Tests for the live gold rate lookup.

HTTP is replaced by a small fake session so the conversion and fallback
rules can be checked offline. The module also includes a live test against
the public endpoints.
"""

import os

import pytest
import requests

from jewel_core.pricing.rates import (
    DEFAULT_GOLD_USD_PER_OUNCE,
    DEFAULT_USD_TO_INR,
    EXCHANGE_RATE_URL,
    FALLBACK_RATE_24K,
    GOLD_PRICE_URLS,
    TROY_OUNCE_GRAMS,
    GoldRateQuote,
    carat_from_purity,
    fallback_quote,
    fetch_gold_rates,
    rate_for_carat,
)


class FakeResponse:
    def __init__(self, payload, status: int = 200) -> None:
        self.payload = payload
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Returns canned responses per URL; unknown URLs fail to connect."""

    def __init__(self, responses: dict) -> None:
        self.responses = responses
        self.calls: list[str] = []

    def get(self, url: str, timeout: float = None, headers: dict = None) -> FakeResponse:
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"cannot reach {url}")
        return response


def test_rate_for_carat_scales_by_purity() -> None:
    """Carat rate is the 24K rate x carat / 24."""
    assert rate_for_carat(2400, 24) == 2400
    assert rate_for_carat(2400, 22) == 2200
    assert rate_for_carat(2400, 18) == 1800
    with pytest.raises(ValueError):
        rate_for_carat(2400, 0)
    with pytest.raises(ValueError):
        rate_for_carat(2400, 25)


@pytest.mark.parametrize(
    "purity,expected",
    [
        ("22K", 22),
        ("18 kt", 18),
        ("24 carat", 24),
        ("14k hallmarked", 14),
        ("925 Sterling", None),
        ("", None),
        (None, None),
        ("VVS1", None),
    ],
)
def test_carat_from_purity(purity, expected) -> None:
    assert carat_from_purity(purity) == expected


def test_fetch_converts_usd_per_ounce_to_inr_per_gram() -> None:
    """Both lookups succeed: 24K = usd/oz x inr/usd / 31.1035."""
    session = FakeSession(
        {
            EXCHANGE_RATE_URL: FakeResponse({"rates": {"INR": 84.0}}),
            GOLD_PRICE_URLS[0]: FakeResponse({"rates": {"USD": 1 / 2500}}),
        }
    )

    quote = fetch_gold_rates(session=session)

    expected = round(2500 * 84.0 / TROY_OUNCE_GRAMS, 2)
    assert quote.base_rate_24k == pytest.approx(expected)
    assert quote.rates["24K"] == pytest.approx(expected)
    assert quote.rates["22K"] == pytest.approx(round(expected * 22 / 24, 2))
    assert set(quote.rates) == {"24K", "22K", "18K", "14K", "10K"}
    assert quote.source == "ExchangeRate-API"
    assert quote.note is None
    assert not quote.is_estimate


def test_fetch_tries_next_gold_endpoint() -> None:
    """A failing gold endpoint falls through to the next one."""
    session = FakeSession(
        {
            EXCHANGE_RATE_URL: FakeResponse({"rates": {"INR": 83.5}}),
            GOLD_PRICE_URLS[0]: FakeResponse({}, status=503),
            GOLD_PRICE_URLS[1]: FakeResponse({"price": 2300.0}),
        }
    )

    quote = fetch_gold_rates(session=session)

    assert quote.base_rate_24k == pytest.approx(round(2300 * 83.5 / TROY_OUNCE_GRAMS, 2))
    assert quote.source == "Public API"
    assert session.calls == [EXCHANGE_RATE_URL, GOLD_PRICE_URLS[0], GOLD_PRICE_URLS[1]]


def test_fetch_falls_back_to_market_estimate_when_offline() -> None:
    """With no network, both documented defaults are used and noted."""
    quote = fetch_gold_rates(session=FakeSession({}))

    expected = round(DEFAULT_GOLD_USD_PER_OUNCE * DEFAULT_USD_TO_INR / TROY_OUNCE_GRAMS, 2)
    assert quote.base_rate_24k == pytest.approx(expected)
    assert quote.source == "Market Estimate"
    assert quote.is_estimate


def test_fetch_ignores_invalid_json() -> None:
    """Unparseable responses fall back like network errors."""
    session = FakeSession(
        {
            EXCHANGE_RATE_URL: FakeResponse(ValueError("not json")),
            GOLD_PRICE_URLS[0]: FakeResponse(ValueError("not json")),
        }
    )

    quote = fetch_gold_rates(session=session)
    assert quote.source == "Market Estimate"


@pytest.mark.parametrize(
    "payload",
    [
        {"rates": {"USD": "n/a"}},
        {"price": "closed"},
        [{"price": 2300.0}],
    ],
)
def test_fetch_skips_malformed_gold_quotes(payload) -> None:
    """Odd payload shapes move on to the next endpoint instead of raising."""
    session = FakeSession(
        {
            EXCHANGE_RATE_URL: FakeResponse({"rates": {"INR": 83.5}}),
            GOLD_PRICE_URLS[0]: FakeResponse(payload),
            GOLD_PRICE_URLS[1]: FakeResponse({"price": 2300.0}),
        }
    )

    quote = fetch_gold_rates(session=session)

    assert quote.source == "Public API"
    assert quote.base_rate_24k == pytest.approx(round(2300 * 83.5 / TROY_OUNCE_GRAMS, 2))


def test_fetch_malformed_quotes_everywhere_use_market_estimate() -> None:
    session = FakeSession(
        {
            EXCHANGE_RATE_URL: FakeResponse(["INR", 83.5]),
            GOLD_PRICE_URLS[0]: FakeResponse(["USD"]),
            GOLD_PRICE_URLS[1]: FakeResponse({"spot": "n/a"}),
        }
    )

    quote = fetch_gold_rates(session=session)

    expected = round(DEFAULT_GOLD_USD_PER_OUNCE * DEFAULT_USD_TO_INR / TROY_OUNCE_GRAMS, 2)
    assert quote.base_rate_24k == pytest.approx(expected)
    assert quote.source == "Market Estimate"


def test_fetch_uses_static_rate_when_conversion_fails() -> None:
    """A nonsensical gold price falls back to the static 24K rate."""
    session = FakeSession(
        {
            EXCHANGE_RATE_URL: FakeResponse({"rates": {"INR": 83.0}}),
            GOLD_PRICE_URLS[0]: FakeResponse({"rates": {"USD": -0.0004}}),
        }
    )

    quote = fetch_gold_rates(session=session)

    assert quote.base_rate_24k == FALLBACK_RATE_24K
    assert quote.source == "Fallback"
    assert quote.is_estimate


def test_fallback_quote() -> None:
    quote = fallback_quote()
    assert isinstance(quote, GoldRateQuote)
    assert quote.rates["24K"] == FALLBACK_RATE_24K
    assert quote.rate_for(22) == pytest.approx(round(FALLBACK_RATE_24K * 22 / 24, 2))
    assert quote.rate_for(20) == pytest.approx(round(FALLBACK_RATE_24K * 20 / 24, 2))


@pytest.mark.live
def test_fetch_gold_rates_live() -> None:
    """Live test: fetch real rates from the public endpoints.

    The test will be skipped unless JEWEL_LIVE_TESTS is set.
    """
    if not os.environ.get("JEWEL_LIVE_TESTS"):
        pytest.skip("Live test skipped: set JEWEL_LIVE_TESTS=1 to call the public rate APIs")

    quote = fetch_gold_rates(timeout=15)

    assert quote.base_rate_24k > 0
    assert quote.rates["22K"] < quote.rates["24K"]
    print(f"[Live] 24K {quote.base_rate_24k} INR/g from {quote.source}")
