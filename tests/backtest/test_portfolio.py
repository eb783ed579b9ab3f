#!filepath: tests/backtest/test_portfolio.py
from __future__ import annotations

from datetime import date
from decimal import Decimal as D

import pytest

from portsim.backtest.allocation import EqualWeightCapitalAllocation
from portsim.backtest.core.enums import CurrencyCode, SignalType
from portsim.backtest.core.events import RebalancingEvent, SignalEvent
from portsim.utils.errors import (
    ConfigurationError,
    FxRateNotFoundError,
    TemporalOrderError,
    UnknownStrategyError,
    UnsupportedEventError,
)

USD = CurrencyCode.USD
EUR = CurrencyCode.EUR


# =============================================================================
# one-day flow
# =============================================================================
def test_buy_and_hold_first_day(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))

    assert s.positions["AAPL"] == 100
    assert s.cash[USD] == D("0")
    assert pf.equity_curve[days[0]] == D("10000")
    assert pf.n_signals == 1
    assert pf.n_orders == 1
    assert len(pf.fills) == 1


def test_commission_reduces_cash(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s], commission="0.001")

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))

    # 0.001 * 100 * 100
    assert s.cash[USD] == D("-10")
    assert pf.equity_curve[days[0]] == D("9990")


def test_equity_follows_close(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))
    pf.handle_event(market_event(days[1], {"AAPL": make_bar(110)}))

    assert pf.equity_curve.values() == [D("10000"), D("11000")]
    # buy and hold：第二天不再下单
    assert pf.n_orders == 1


def test_fill_is_applied_through_subscription(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))

    assert pf.brokerage.fills == pf.fills
    assert pf.fills[0].strategy_name == "s1"


# =============================================================================
# corporate actions
# =============================================================================
def test_dividend_credits_native_cash(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))
    pf.handle_event(market_event(days[1], {"AAPL": make_bar(110, dividend_per_share=D("0.82"))}))

    # 0.82 * 100
    assert s.cash[USD] == D("82")
    assert pf.equity_curve[days[1]] == D("11082")


def test_dividend_ignored_without_position(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy(assets={"AAPL": "USD", "SAP": "USD"}, weights={"AAPL": 1, "SAP": 0})
    pf = make_portfolio([s])

    pf.handle_event(
        market_event(days[0], {"AAPL": make_bar(100), "SAP": make_bar(50, dividend_per_share=D("1"))})
    )

    assert s.cash[USD] == D("0")


def test_split_keeps_value_continuous(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))
    pf.handle_event(market_event(days[1], {"AAPL": make_bar(110, split_coefficient=D("2"))}))

    assert s.positions["AAPL"] == 200

    # every stored bar (split day included) is adjusted
    assert pf.market_data.get_bar(days[0], "AAPL").close == D("50")
    assert pf.market_data.get_bar(days[1], "AAPL").close == D("55")
    assert pf.market_data.get_bar(days[0], "AAPL").volume == 2000

    # position * price on the earlier day is unchanged
    assert s.positions["AAPL"] * pf.market_data.get_bar(days[0], "AAPL").close == D("10000")
    assert pf.equity_curve[days[1]] == D("11000")


def test_split_position_rounds_half_up(make_strategy):
    s = make_strategy()
    s.restore_book({"AAPL": 5}, {"USD": 0}, {})

    s.apply_split("AAPL", D("1.5"))  # 7.5 -> 8

    assert s.positions["AAPL"] == 8


def test_dividend_applied_before_split(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))
    pf.handle_event(
        market_event(
            days[1],
            {"AAPL": make_bar(100, dividend_per_share=D("1"), split_coefficient=D("2"))},
        )
    )

    # dividend on the pre-split 100 shares
    assert s.cash[USD] == D("100")
    assert s.positions["AAPL"] == 200


# =============================================================================
# multi currency
# =============================================================================
def test_multi_currency_sizing_and_valuation(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy(
        assets={"AAPL": "USD", "SAP": "EUR"},
        weights={"AAPL": D("0.5"), "SAP": D("0.5")},
    )
    pf = make_portfolio([s])

    pf.handle_event(
        market_event(days[0], {"AAPL": make_bar(100), "SAP": make_bar(50)}, fx={"EUR": "1.10"})
    )

    assert s.positions["AAPL"] == 50
    # 5000 USD -> 4545.45 EUR -> floor(90.9)
    assert s.positions["SAP"] == 90
    assert s.cash[USD] == D("5000")
    assert s.cash[EUR] == D("-4500")
    assert pf.equity_curve[days[0]] == D("10000")


def test_missing_fx_rate_raises(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy(assets={"SAP": "EUR"})
    pf = make_portfolio([s])

    with pytest.raises(FxRateNotFoundError):
        pf.handle_event(market_event(days[0], {"SAP": make_bar(50)}))


def test_currencies_exclude_base(make_strategy, make_portfolio):
    s = make_strategy(assets={"AAPL": "USD", "SAP": "EUR"})
    pf = make_portfolio([s])

    assert pf.currencies == [EUR]
    assert pf.assets == ["AAPL", "SAP"]


# =============================================================================
# ordering / dispatch
# =============================================================================
def test_earlier_market_event_raises(make_strategy, make_portfolio, market_event, make_bar, days):
    pf = make_portfolio([make_strategy()])
    pf.handle_event(market_event(days[1], {"AAPL": make_bar(100)}))

    with pytest.raises(TemporalOrderError):
        pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))


def test_same_day_replay_overwrites_equity(make_strategy, make_portfolio, market_event, make_bar, days):
    pf = make_portfolio([make_strategy()])
    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))
    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))

    assert len(pf.equity_curve) == 1
    assert pf.n_orders == 1


def test_unknown_strategy(make_strategy, make_portfolio, days):
    pf = make_portfolio([make_strategy()])

    with pytest.raises(UnknownStrategyError):
        pf.get_strategy("nope")

    with pytest.raises(UnknownStrategyError):
        pf.handle_event(
            SignalEvent(date=days[0], strategy_name="nope", signals={"AAPL": SignalType.LONG})
        )


def test_unsupported_event(make_strategy, make_portfolio):
    pf = make_portfolio([make_strategy()])

    with pytest.raises(UnsupportedEventError):
        pf.handle_event(object())


def test_duplicate_strategy_names_rejected(make_strategy, make_portfolio):
    with pytest.raises(ConfigurationError, match="duplicate"):
        make_portfolio([make_strategy(name="a"), make_strategy(name="a")])


def test_conflicting_asset_currency_rejected(make_strategy, make_portfolio):
    with pytest.raises(ConfigurationError):
        make_portfolio(
            [
                make_strategy(name="a", assets={"AAPL": "USD"}),
                make_strategy(name="b", assets={"AAPL": "EUR"}),
            ]
        )


# =============================================================================
# rebalancing / allocation
# =============================================================================
def test_rebalancing_event_resizes(make_strategy, make_portfolio, market_event, make_bar, days):
    s = make_strategy()
    pf = make_portfolio([s])
    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))

    pf.handle_event(
        RebalancingEvent(date=days[0], strategy_name="s1", target_weights={"AAPL": D("0.5")})
    )

    assert s.positions["AAPL"] == 50
    assert s.cash[USD] == D("5000")


def test_equal_weight_allocation_moves_capital(make_strategy, make_portfolio, market_event, make_bar, days):
    s1 = make_strategy(name="s1", cash={"USD": D("10000")})
    s2 = make_strategy(name="s2", cash={"USD": D("30000")})
    pf = make_portfolio([s1, s2], allocation=EqualWeightCapitalAllocation())

    pf.handle_event(market_event(days[0], {"AAPL": make_bar(100)}))

    assert s1.target_capital == {USD: D("20000")}
    assert s1.positions["AAPL"] == 200
    assert s2.positions["AAPL"] == 200
    assert pf.positions() == {"AAPL": 400}
    assert pf.equity_curve[days[0]] == D("40000")
