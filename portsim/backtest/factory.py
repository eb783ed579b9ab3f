# portsim/backtest/factory.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

from portsim.backtest.allocation import EqualWeightCapitalAllocation, SelfFundedCapitalAllocation
from portsim.backtest.brokerage import FixedRateCommission, SimulatedBrokerage
from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.interfaces import (
    CapitalAllocationStrategy,
    OrderPriceCalculationStrategy,
    PositionSizer,
)
from portsim.backtest.core.portfolio import Portfolio
from portsim.backtest.pricing import (
    ClosePriceOrderPricing,
    LimitOrderPricing,
    StopLimitOrderPricing,
    StopOrderPricing,
)
from portsim.backtest.sizing import FixedWeightPositionSizer, InverseVolatilityPositionSizer
from portsim.backtest.strategy import (
    BaseStrategy,
    BuyAndHoldStrategy,
    MovingAverageCrossoverStrategy,
    RebalancingBuyAndHoldStrategy,
)
from portsim.config.backtest_config import BacktestConfig, ComponentConfig, StrategyConfig
from portsim.utils.errors import ConfigurationError, UnknownComponentError

ComponentSpec = Union[ComponentConfig, Mapping[str, Any]]


def _split(cfg: ComponentSpec, owner: str) -> Tuple[str, Dict[str, Any]]:
    """ComponentConfig | {"type": ..., "params": {...}} -> (type, params)"""
    if isinstance(cfg, ComponentConfig):
        return cfg.type, dict(cfg.params)
    if "type" not in cfg:
        raise ConfigurationError(f"[{owner}] missing 'type' in component config")
    return cfg["type"], dict(cfg.get("params") or {})


class _RegistryFactory:
    """
    注册式构造器（FINAL / FROZEN）

    - All components are explicitly registered in _REGISTRY.
    - Registration is centralized and static; no dynamic discovery.
    - Selection is a registry lookup, never if/else on type names.
    """

    kind: str = "component"
    _REGISTRY: Dict[str, Callable[..., Any]] = {}

    @classmethod
    def create(cls, cfg: ComponentSpec):
        typ, params = _split(cfg, cls.__name__)

        if typ not in cls._REGISTRY:
            raise UnknownComponentError(
                f"[{cls.__name__}] unknown {cls.kind} type: {typ} "
                f"(registered: {sorted(cls._REGISTRY)})"
            )

        try:
            return cls._REGISTRY[typ](**params)
        except TypeError as e:
            raise ConfigurationError(f"[{cls.__name__}] bad params for {typ}: {e}") from e

    @classmethod
    def registered(cls) -> List[str]:
        return sorted(cls._REGISTRY)


class PositionSizerFactory(_RegistryFactory):
    kind = "position sizer"
    _REGISTRY: Dict[str, Type[PositionSizer]] = {
        "fixed_weight": FixedWeightPositionSizer,
        "inverse_volatility": InverseVolatilityPositionSizer,
    }


class OrderPricingFactory(_RegistryFactory):
    kind = "order pricing"
    _REGISTRY: Dict[str, Type[OrderPriceCalculationStrategy]] = {
        "close_price": ClosePriceOrderPricing,
        "limit": LimitOrderPricing,
        "stop": StopOrderPricing,
        "stop_limit": StopLimitOrderPricing,
    }


class CapitalAllocationFactory(_RegistryFactory):
    kind = "capital allocation"
    _REGISTRY: Dict[str, Type[CapitalAllocationStrategy]] = {
        "self_funded": SelfFundedCapitalAllocation,
        "equal_weight": EqualWeightCapitalAllocation,
    }


class StrategyFactory:
    """
    StrategyFactory (FINAL / FROZEN)

    StrategyConfig -> BaseStrategy, with its sizer and pricing policy
    resolved through their own registries.
    """

    _REGISTRY: Dict[str, Type[BaseStrategy]] = {
        "buy_and_hold": BuyAndHoldStrategy,
        "rebalancing_buy_and_hold": RebalancingBuyAndHoldStrategy,
        "moving_average_crossover": MovingAverageCrossoverStrategy,
    }

    @classmethod
    def create(cls, cfg: Union[StrategyConfig, Mapping[str, Any]]) -> BaseStrategy:
        if not isinstance(cfg, StrategyConfig):
            if "type" not in cfg:
                raise ConfigurationError("[StrategyFactory] missing 'type' in strategy config")
            cfg = StrategyConfig(**cfg)

        typ = cfg.type
        if typ not in cls._REGISTRY:
            raise UnknownComponentError(f"[StrategyFactory] unknown strategy type: {typ}")

        strategy_cls = cls._REGISTRY[typ]
        try:
            return strategy_cls(
                name=cfg.name,
                assets=cfg.assets,
                cash=cfg.cash,
                position_sizer=PositionSizerFactory.create(cfg.position_sizer),
                order_pricing=OrderPricingFactory.create(cfg.order_pricing),
                **cfg.params,
            )
        except TypeError as e:
            raise ConfigurationError(f"[StrategyFactory] bad params for {typ}: {e}") from e


class PortfolioFactory:
    """BacktestConfig -> (portfolio, benchmark portfolio or None)."""

    @staticmethod
    def build_one(
        name: str,
        strategy_cfgs: List[StrategyConfig],
        cfg: BacktestConfig,
        allocator: Optional[ComponentSpec] = None,
    ) -> Portfolio:
        history = HistoricalMarketData()
        fx = HistoricalFxRates(cfg.base_currency)
        brokerage = SimulatedBrokerage(history, FixedRateCommission(cfg.commission_rate))

        return Portfolio(
            name=name,
            strategies=[StrategyFactory.create(s) for s in strategy_cfgs],
            brokerage=brokerage,
            base_currency=cfg.base_currency,
            capital_allocation=CapitalAllocationFactory.create(allocator or cfg.allocator),
            historical_market_data=history,
            historical_fx_rates=fx,
        )

    @classmethod
    def build(cls, cfg: BacktestConfig) -> Tuple[Portfolio, Optional[Portfolio]]:
        portfolio = cls.build_one(cfg.name, cfg.strategies, cfg)
        benchmark = None
        if cfg.benchmark is not None:
            benchmark = cls.build_one(
                f"{cfg.name}:benchmark", [cfg.benchmark], cfg, ComponentConfig(type="self_funded")
            )
        return portfolio, benchmark
