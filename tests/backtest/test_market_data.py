#!filepath: tests/backtest/test_market_data.py
from __future__ import annotations

from datetime import date
from decimal import Decimal as D

import pytest

from portsim.backtest.core.currency import HistoricalCurrencyConversionService
from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData, MarketData, to_decimal
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.core.equity import EquityCurve
from portsim.utils.errors import (
    FxRateNotFoundError,
    InvalidValueError,
    MarketDataNotFoundError,
    TemporalOrderError,
)

D1, D2, D3 = date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4)
USD, EUR, GBP = CurrencyCode.USD, CurrencyCode.EUR, CurrencyCode.GBP


# =============================================================================
# MarketData
# =============================================================================
def test_to_decimal_avoids_binary_noise():
    assert to_decimal(0.1) == D("0.1")
    assert to_decimal("1.25") == D("1.25")


@pytest.mark.parametrize(
    "field, value",
    [
        ("open", D("-1")),
        ("low", D("-0.01")),
        ("volume", -1),
        ("dividend_per_share", D("-0.1")),
        ("split_coefficient", D("0")),
    ],
)
def test_bar_rejects_invalid_values(make_bar, field, value):
    with pytest.raises(InvalidValueError):
        make_bar(10, **{field: value})


def test_bar_rejects_negative_close():
    with pytest.raises(InvalidValueError, match="close"):
        MarketData(
            open=D("1"),
            high=D("1"),
            low=D("1"),
            close=D("-1"),
            adjusted_close=D("1"),
            volume=100,
        )


def test_bar_flags(make_bar):
    plain = make_bar(10)
    assert not plain.has_dividend
    assert not plain.has_split

    assert make_bar(10, dividend_per_share=D("0.5")).has_dividend
    assert make_bar(10, split_coefficient=D("3")).has_split


def test_adjusted_for_split(make_bar):
    b = make_bar(100, volume=999, split_coefficient=D("2")).adjusted_for_split(D("2"))

    assert b.close == D("50")
    assert b.open == D("50")
    # 1998, half-up
    assert b.volume == 1998
    assert b.split_coefficient == D("2")


def test_bar_is_immutable(make_bar):
    b = make_bar(10)
    with pytest.raises(Exception):
        b.close = D("11")


# =============================================================================
# HistoricalMarketData
# =============================================================================
def test_history_append_and_lookup(make_bar):
    h = HistoricalMarketData()
    h.append(D1, {"AAPL": make_bar(10)})
    h.append(D2, {"AAPL": make_bar(11), "SAP": make_bar(20)})

    assert h.dates() == [D1, D2]
    assert h.last_date == D2
    assert h.get_bar(D1, "SAP") is None
    assert h.closes("AAPL") == [(D1, D("10")), (D2, D("11"))]
    assert h.closes("AAPL", up_to=D1) == [(D1, D("10"))]
    assert D2 in h and len(h) == 2

    with pytest.raises(MarketDataNotFoundError):
        h.require_bar(D1, "SAP")


def test_history_rejects_earlier_date(make_bar):
    h = HistoricalMarketData()
    h.append(D2, {"AAPL": make_bar(10)})

    with pytest.raises(TemporalOrderError):
        h.append(D1, {"AAPL": make_bar(10)})


def test_adjust_for_split_only_touches_one_asset(make_bar):
    h = HistoricalMarketData()
    h.append(D1, {"AAPL": make_bar(10), "SAP": make_bar(20)})
    h.append(D2, {"AAPL": make_bar(12)})

    assert h.adjust_for_split("AAPL", D("4")) == 2
    assert h.get_bar(D1, "AAPL").close == D("2.5")
    assert h.get_bar(D2, "AAPL").close == D("3")
    assert h.get_bar(D1, "SAP").close == D("20")


# =============================================================================
# fx / conversion
# =============================================================================
@pytest.fixture
def fx():
    rates = HistoricalFxRates(USD)
    rates.append(D1, {EUR: D("1.1"), GBP: D("1.25")})
    return rates


def test_fx_base_is_one(fx):
    assert fx.rate(D2, USD) == D("1")


def test_fx_no_fill_forward(fx):
    with pytest.raises(FxRateNotFoundError):
        fx.rate(D2, EUR)


def test_fx_rejects_non_positive_rate(fx):
    with pytest.raises(InvalidValueError):
        fx.append(D2, {EUR: D("0")})


def test_convert(fx):
    conv = HistoricalCurrencyConversionService(fx)

    assert conv.convert(D1, D("100"), EUR, USD) == D("110")
    assert conv.convert(D1, D("110"), USD, EUR) == D("100")
    # cross through base: 100 * 1.1 / 1.25
    assert conv.convert(D1, D("100"), EUR, GBP) == D("88")
    assert conv.convert(D1, D("5"), GBP, GBP) == D("5")
    assert conv.to_base(D1, D("2"), GBP) == D("2.5")


def test_convert_missing_rate(fx):
    conv = HistoricalCurrencyConversionService(fx)
    with pytest.raises(FxRateNotFoundError):
        conv.convert(D1, D("1"), CurrencyCode.JPY, USD)


# =============================================================================
# EquityCurve
# =============================================================================
def test_equity_curve_ordering():
    eq = EquityCurve()
    eq.record(D1, D("100"))
    eq.record(D2, D("101"))

    with pytest.raises(TemporalOrderError):
        eq.record(D1, D("99"))

    assert eq.dates() == [D1, D2]
    assert eq.last_value == D("101")


def test_equity_curve_same_day_overwrite():
    eq = EquityCurve()
    eq.record(D1, D("100"))
    eq.record(D1, D("105"))

    assert len(eq) == 1
    assert eq[D1] == D("105")


def test_equity_curve_mapping_is_read_only():
    eq = EquityCurve()
    eq.record(D1, D("100"))
    with pytest.raises(TypeError):
        eq.as_mapping()[D2] = D("1")
