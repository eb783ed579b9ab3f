#!filepath: tests/backtest/test_backtest.py
from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal as D

import pandas as pd
import pytest

from portsim.backtest.backtest import Backtest
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.data.frame_fetcher import FrameMarketDataFetcher
from portsim.backtest.metrics.tearsheet import Tearsheet
from portsim.backtest.result import BacktestResult
from portsim.backtest.strategy import RebalancingBuyAndHoldStrategy

START = date(2024, 1, 1)


def _frames(n=10, with_gap=True):
    bars, fx = [], []
    for i in range(n):
        d = START + timedelta(days=i)
        bars.append({"date": d.isoformat(), "asset": "AAPL", "open": 100 + i, "high": 100 + i,
                     "low": 100 + i, "close": 100 + i})
        bars.append({"date": d.isoformat(), "asset": "SAP", "open": 50 - i, "high": 50 - i,
                     "low": 50 - i, "close": 50 - i})
        fx.append({"date": d.isoformat(), "currency": "EUR", "rate": f"{1.1 + i / 100:.2f}"})
    if with_gap:
        # fx 有而行情没有的一天：不产生事件
        fx.append({"date": (START + timedelta(days=n)).isoformat(), "currency": "EUR", "rate": "9.9"})
    return pd.DataFrame(bars), pd.DataFrame(fx)


@pytest.fixture
def fetcher():
    return FrameMarketDataFetcher(*_frames())


@pytest.fixture
def portfolios(make_strategy, make_portfolio):
    main = make_portfolio(
        [
            make_strategy(
                cls=RebalancingBuyAndHoldStrategy,
                frequency="weekly",
                assets={"AAPL": "USD", "SAP": "EUR"},
                weights={"AAPL": D("0.6"), "SAP": D("0.4")},
            )
        ],
        commission="0.001",
        name="main",
    )
    bench = make_portfolio([make_strategy(name="bench")], name="bench")
    return main, bench


def test_events_are_date_merged(portfolios, fetcher):
    main, bench = portfolios
    bt = Backtest(main, fetcher, benchmark=bench)

    events = list(bt.events())

    assert len(events) == 10
    assert events[0].date == START
    assert events[3].fx_rates == {CurrencyCode.EUR: D("1.13")}
    assert set(events[0].bars) == {"AAPL", "SAP"}


def test_events_respect_range_and_calendar(portfolios, fetcher):
    main, _ = portfolios
    calendar = {START + timedelta(days=i) for i in (1, 2, 5, 8)}
    bt = Backtest(main, fetcher, trading_calendar=calendar)

    dates = [e.date for e in bt.events("2024-01-02", "2024-01-06")]

    assert dates == [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 6)]


def test_run_end_to_end(portfolios, fetcher):
    main, bench = portfolios
    bt = Backtest(main, fetcher, benchmark=bench)

    tearsheet = bt.run()

    assert isinstance(tearsheet, Tearsheet)
    assert bt.n_days == 10
    assert len(main.equity_curve) == 10
    assert main.equity_curve.dates() == bench.equity_curve.dates()
    assert tearsheet.beta is not None

    # weekly: day 0 + day 7
    assert {f.date for f in main.fills} == {START, START + timedelta(days=7)}
    assert bench.n_orders == 1


def test_result_from_portfolio(portfolios, fetcher):
    main, bench = portfolios
    bt = Backtest(main, fetcher, benchmark=bench)
    tearsheet = bt.run("2024-01-01", "2024-01-05")

    result = BacktestResult.from_portfolio(main, bench, tearsheet)

    assert result.dates == main.equity_curve.dates()
    assert len(result.benchmark_curve) == 5
    assert result.fills[0]["strategy"] == "s1"
    assert result.positions["s1"]["AAPL"] > 0
    assert result.equity_mapping()[START] == main.equity_curve[START]
