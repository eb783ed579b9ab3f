#!filepath: tests/backtest/test_factory_frozen.py
from __future__ import annotations

import copy
import inspect
from decimal import Decimal as D

import pytest

from portsim.backtest.allocation import EqualWeightCapitalAllocation
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.factory import (
    CapitalAllocationFactory,
    OrderPricingFactory,
    PortfolioFactory,
    PositionSizerFactory,
    StrategyFactory,
)
from portsim.backtest.pricing import LimitOrderPricing
from portsim.backtest.sizing import InverseVolatilityPositionSizer
from portsim.backtest.strategy import BaseStrategy, RebalancingBuyAndHoldStrategy
from portsim.config.backtest_config import BacktestConfig
from portsim.utils.errors import ConfigurationError, UnknownComponentError


def _strategy_cfg(**overrides):
    cfg = {
        "name": "s1",
        "type": "rebalancing_buy_and_hold",
        "assets": {"AAPL": "usd"},
        "cash": {"usd": 1000},
        "position_sizer": {"type": "fixed_weight", "params": {"weights": {"AAPL": 1}}},
        "params": {"frequency": "quarterly"},
    }
    cfg.update(overrides)
    return cfg


# =============================================================================
# Contract tests
# =============================================================================
def test_missing_type_raises():
    cfg = _strategy_cfg()
    cfg.pop("type")

    with pytest.raises(ConfigurationError, match="missing 'type'"):
        StrategyFactory.create(cfg)


def test_unknown_type_raises():
    with pytest.raises(UnknownComponentError, match="unknown strategy type"):
        StrategyFactory.create(_strategy_cfg(type="unknown_strategy"))


def test_bad_params_raise_configuration_error():
    with pytest.raises(ConfigurationError, match="bad params"):
        StrategyFactory.create(_strategy_cfg(params={"bogus": 1}))


def test_build_returns_strategy():
    strategy = StrategyFactory.create(_strategy_cfg())

    assert isinstance(strategy, BaseStrategy)
    assert isinstance(strategy, RebalancingBuyAndHoldStrategy)
    assert strategy.cash == {CurrencyCode.USD: D("1000")}
    assert strategy.frequency.value == "Quarterly"


def test_component_factories():
    sizer = PositionSizerFactory.create({"type": "inverse_volatility", "params": {"lookback": 10}})
    pricing = OrderPricingFactory.create({"type": "limit", "params": {"offset_bps": 5}})
    alloc = CapitalAllocationFactory.create({"type": "equal_weight"})

    assert isinstance(sizer, InverseVolatilityPositionSizer) and sizer.lookback == 10
    assert isinstance(pricing, LimitOrderPricing) and pricing.offset_bps == D("5")
    assert isinstance(alloc, EqualWeightCapitalAllocation)


def test_unknown_component_raises():
    with pytest.raises(UnknownComponentError, match="registered"):
        PositionSizerFactory.create({"type": "kelly"})


def test_component_missing_type_raises():
    with pytest.raises(ConfigurationError, match="missing 'type'"):
        OrderPricingFactory.create({"params": {}})


def test_registry_not_empty():
    for factory in (StrategyFactory, PositionSizerFactory, OrderPricingFactory, CapitalAllocationFactory):
        assert isinstance(factory._REGISTRY, dict)
        assert len(factory._REGISTRY) > 0


def test_registry_not_mutated_during_build():
    original = StrategyFactory._REGISTRY.copy()

    StrategyFactory.create(_strategy_cfg())

    assert StrategyFactory._REGISTRY == original


def test_cfg_not_modified():
    cfg = _strategy_cfg()
    cfg_copy = copy.deepcopy(cfg)

    StrategyFactory.create(cfg)

    assert cfg == cfg_copy


def test_no_branching_on_strategy_type():
    """
    🔒 FROZEN:
    Strategy selection must be registry-based, not if/else.
    """
    src = inspect.getsource(StrategyFactory.create)

    forbidden = ["if typ ==", "elif", "match typ"]

    for kw in forbidden:
        assert kw not in src, f"Branching logic '{kw}' found in StrategyFactory.create"


# =============================================================================
# PortfolioFactory
# =============================================================================
def test_portfolio_factory_builds_benchmark(tmp_path):
    cfg = BacktestConfig(
        name="exp",
        base_currency="usd",
        market_data_path=str(tmp_path / "bars.csv"),
        commission_rate="0.002",
        allocator={"type": "equal_weight"},
        strategies=[_strategy_cfg(), _strategy_cfg(name="s2")],
        benchmark=_strategy_cfg(name="bench", type="buy_and_hold", params={}),
    )

    portfolio, benchmark = PortfolioFactory.build(cfg)

    assert portfolio.name == "exp"
    assert [s.name for s in portfolio.strategies] == ["s1", "s2"]
    assert isinstance(portfolio.capital_allocation, EqualWeightCapitalAllocation)
    assert portfolio.brokerage.commission_model.rate == D("0.002")

    assert benchmark.name == "exp:benchmark"
    assert [s.name for s in benchmark.strategies] == ["bench"]
    # benchmark 与主组合互不共享历史
    assert benchmark.market_data is not portfolio.market_data


def test_config_rejects_duplicate_strategy_names(tmp_path):
    with pytest.raises(ValueError, match="duplicate"):
        BacktestConfig(
            market_data_path=str(tmp_path / "bars.csv"),
            strategies=[_strategy_cfg(), _strategy_cfg()],
        )
