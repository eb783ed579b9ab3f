# tests/conftest.py
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from loguru import logger

from portsim.backtest.brokerage import FixedRateCommission, SimulatedBrokerage
from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData, MarketData
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.core.events import MarketEvent
from portsim.backtest.core.portfolio import Portfolio
from portsim.backtest.pricing import ClosePriceOrderPricing
from portsim.backtest.sizing import FixedWeightPositionSizer
from portsim.backtest.strategy import BuyAndHoldStrategy


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# ============================================================
# builders（factory fixtures）
# ============================================================
def bar(close, **kw) -> MarketData:
    """OHLC 全部等于 close 的日线，其余字段可覆盖。"""
    close = Decimal(str(close))
    fields = dict(
        open=close,
        high=close,
        low=close,
        close=close,
        adjusted_close=close,
        volume=1000,
    )
    fields.update(kw)
    return MarketData(**fields)


@pytest.fixture
def make_bar():
    return bar


@pytest.fixture
def days():
    return [
        date(2024, 1, 2),
        date(2024, 1, 3),
        date(2024, 1, 4),
        date(2024, 1, 5),
        date(2024, 1, 8),
    ]


@pytest.fixture
def make_strategy():
    def _make(
        name="s1",
        assets=None,
        cash=None,
        weights=None,
        cls=BuyAndHoldStrategy,
        pricing=None,
        **kw,
    ):
        assets = assets or {"AAPL": "USD"}
        weights = weights or {a: Decimal(1) / len(assets) for a in assets}
        return cls(
            name=name,
            assets=assets,
            cash=cash if cash is not None else {"USD": Decimal("10000")},
            position_sizer=FixedWeightPositionSizer(weights),
            order_pricing=pricing or ClosePriceOrderPricing(),
            **kw,
        )

    return _make


@pytest.fixture
def make_portfolio():
    """
    Usage:
        pf = make_portfolio([strategy])
        pf = make_portfolio([s1, s2], commission="0.001", base="USD")
    """

    def _make(strategies, commission="0", base="USD", allocation=None, name="test"):
        history = HistoricalMarketData()
        fx = HistoricalFxRates(CurrencyCode(base))
        brokerage = SimulatedBrokerage(history, FixedRateCommission(commission))
        return Portfolio(
            name=name,
            strategies=strategies,
            brokerage=brokerage,
            base_currency=base,
            capital_allocation=allocation,
            historical_market_data=history,
            historical_fx_rates=fx,
        )

    return _make


@pytest.fixture
def market_event():
    def _make(d, bars, fx=None):
        return MarketEvent(
            date=d,
            bars=bars,
            fx_rates={CurrencyCode(c): Decimal(str(r)) for c, r in (fx or {}).items()},
        )

    return _make
