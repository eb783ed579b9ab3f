from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from portsim import logs
from portsim.backtest.allocation import SelfFundedCapitalAllocation
from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.enums import CurrencyCode, SignalType, TradeAction, parse_currency
from portsim.backtest.core.equity import EquityCurve
from portsim.backtest.core.events import (
    DividendEvent,
    Event,
    EventKind,
    FillEvent,
    MarketEvent,
    OrderEvent,
    RebalancingEvent,
    SignalEvent,
    SplitEvent,
)
from portsim.backtest.core.interfaces import Brokerage, CapitalAllocationStrategy, Strategy
from portsim.backtest.sizing import FixedWeightPositionSizer
from portsim.utils.errors import (
    ConfigurationError,
    TemporalOrderError,
    UnknownStrategyError,
    UnsupportedEventError,
)

"""
{#!filepath: portsim/backtest/core/portfolio.py}

Portfolio (FINAL / FROZEN)

The aggregate that sequences one simulated day:

    MarketEvent(d)
      1. ingest bars + fx into history          (reject d < last equity date)
      2. corporate actions: dividends, then splits
      3. capital allocation -> target capital per strategy
      4. per strategy (registration order): signals -> sizes -> orders
      5. orders -> brokerage -> fills (pushed back through subscribe)
      6. equity curve <- total value in base currency

Ownership:
- Portfolio is the ONLY writer of history, equity curve, positions, cash.
- Strategies / sizers / allocators / pricing read through views.
"""

Handler = Callable[[Event], None]


class Portfolio:
    def __init__(
        self,
        *,
        strategies: Iterable[Strategy],
        brokerage: Brokerage,
        base_currency,
        capital_allocation: Optional[CapitalAllocationStrategy] = None,
        historical_market_data: Optional[HistoricalMarketData] = None,
        historical_fx_rates: Optional[HistoricalFxRates] = None,
        asset_currencies: Optional[Mapping[str, CurrencyCode]] = None,
        name: str = "portfolio",
    ):
        self.name = name
        self.base_currency: CurrencyCode = parse_currency(base_currency)

        self._strategies: Dict[str, Strategy] = {}
        for s in strategies:
            if s.name in self._strategies:
                raise ConfigurationError(f"[{name}] duplicate strategy name: {s.name!r}")
            self._strategies[s.name] = s
        if not self._strategies:
            raise ConfigurationError(f"[{name}] portfolio needs at least one strategy")

        self.asset_currencies = self._merge_asset_currencies(asset_currencies)

        self.capital_allocation = capital_allocation or SelfFundedCapitalAllocation()
        self.market_data = historical_market_data if historical_market_data is not None else HistoricalMarketData()
        self.fx_rates = (
            historical_fx_rates if historical_fx_rates is not None else HistoricalFxRates(self.base_currency)
        )
        if self.fx_rates.base_currency != self.base_currency:
            raise ConfigurationError(
                f"[{name}] fx history base {self.fx_rates.base_currency} != portfolio base {self.base_currency}"
            )

        self.equity_curve = EquityCurve()
        self._fills: List[FillEvent] = []
        self.n_signals = 0
        self.n_orders = 0

        # 事件分发表：kind -> handler
        self._handlers: Dict[EventKind, Handler] = {
            EventKind.MARKET: self._handle_market,
            EventKind.SIGNAL: self._handle_signal,
            EventKind.ORDER: self._handle_order,
            EventKind.FILL: self._handle_fill,
            EventKind.DIVIDEND: self._handle_dividend,
            EventKind.SPLIT: self._handle_split,
            EventKind.REBALANCING: self._handle_rebalancing,
        }

        self.brokerage = brokerage
        self.brokerage.subscribe(self._on_fill)

    # --------------------------------------------------
    # setup helpers
    # --------------------------------------------------
    def _merge_asset_currencies(
        self, explicit: Optional[Mapping[str, CurrencyCode]]
    ) -> Dict[str, CurrencyCode]:
        merged: Dict[str, CurrencyCode] = {
            a: parse_currency(c) for a, c in (explicit or {}).items()
        }
        for s in self._strategies.values():
            for asset, ccy in s.assets.items():
                if asset in merged and merged[asset] != ccy:
                    raise ConfigurationError(
                        f"[{self.name}] asset {asset} listed in {merged[asset]} and {ccy}"
                    )
                merged[asset] = ccy
        return merged

    # --------------------------------------------------
    # read access
    # --------------------------------------------------
    @property
    def strategies(self) -> Tuple[Strategy, ...]:
        return tuple(self._strategies.values())

    def get_strategy(self, name: str) -> Strategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise UnknownStrategyError(name) from None

    @property
    def fills(self) -> List[FillEvent]:
        return list(self._fills)

    @property
    def assets(self) -> List[str]:
        return list(self.asset_currencies)

    @property
    def currencies(self) -> List[CurrencyCode]:
        seen = dict.fromkeys(self.asset_currencies.values())
        for s in self._strategies.values():
            seen.update(dict.fromkeys(s.cash))
        seen.pop(self.base_currency, None)
        return list(seen)

    def positions(self) -> Dict[str, int]:
        """Net position per asset across strategies."""
        out: Dict[str, int] = {}
        for s in self._strategies.values():
            for asset, qty in s.positions.items():
                out[asset] = out.get(asset, 0) + qty
        return out

    # --------------------------------------------------
    # dispatch
    # --------------------------------------------------
    def handle_event(self, event: Event) -> None:
        handler = self._handlers.get(getattr(event, "kind", None))
        if handler is None:
            raise UnsupportedEventError(f"[{self.name}] no handler for event {type(event).__name__}")
        handler(event)

    def _on_fill(self, fill: FillEvent) -> None:
        self.handle_event(fill)

    # --------------------------------------------------
    # 1-6: market
    # --------------------------------------------------
    def _handle_market(self, event: MarketEvent) -> None:
        d = event.date

        last = self.equity_curve.last_date
        if last is not None and d < last:
            raise TemporalOrderError(d, last, what="market event")

        # 1. ingest
        self.market_data.append(d, event.bars)
        self.fx_rates.append(d, event.fx_rates)

        # 2. corporate actions
        for asset, bar in event.bars.items():
            if bar.has_dividend:
                self.handle_event(DividendEvent(date=d, asset=asset, dividend_per_share=bar.dividend_per_share))
        for asset, bar in event.bars.items():
            if bar.has_split:
                self.handle_event(SplitEvent(date=d, asset=asset, split_ratio=bar.split_coefficient))

        # 3. allocate
        allocation = self.capital_allocation.allocate_capital(
            self.strategies, d, self.base_currency, self.market_data, self.fx_rates
        )
        for strategy_name, capital in allocation.items():
            self.get_strategy(strategy_name).set_target_capital(capital)

        # 4-5. signals -> orders -> fills
        for strategy in self.strategies:
            signal = strategy.generate_signals(d, self.base_currency, self.market_data, self.fx_rates)
            if signal.signals:
                self.handle_event(signal)

        # 6. valuation
        self.update_equity_curve(d)

    # --------------------------------------------------
    # signal / order / fill
    # --------------------------------------------------
    def _handle_signal(self, event: SignalEvent) -> None:
        strategy = self.get_strategy(event.strategy_name)
        self.n_signals += len(event.signals)

        sizes = strategy.position_sizer.compute_position_sizes(
            event.date, event.signals, strategy, self.market_data, self.fx_rates
        )
        self._submit_targets(strategy, event.date, sizes)

    def _submit_targets(self, strategy: Strategy, d: date, sizes: Mapping[str, int]) -> None:
        for asset, desired in sizes.items():
            delta = int(desired) - strategy.positions.get(asset, 0)
            if delta == 0:
                continue

            action = TradeAction.BUY if delta > 0 else TradeAction.SELL
            order_type, primary, secondary = strategy.order_pricing.calculate_order_prices(
                d, asset, action, self.market_data
            )
            self.handle_event(
                OrderEvent(
                    date=d,
                    strategy_name=strategy.name,
                    asset=asset,
                    trade_action=action,
                    order_type=order_type,
                    quantity=abs(delta),
                    primary_price=primary,
                    secondary_price=secondary,
                )
            )

    def _handle_order(self, event: OrderEvent) -> None:
        self.get_strategy(event.strategy_name)
        order = event.to_order()
        self.n_orders += 1
        self.brokerage.submit_order(order)

    def _handle_fill(self, event: FillEvent) -> None:
        strategy = self.get_strategy(event.strategy_name)
        strategy.apply_fill(event)
        self._fills.append(event)
        logs.info(
            f"[Portfolio] {event.date} fill {event.strategy_name} {event.trade_action.value} "
            f"{event.asset} qty={event.quantity} price={event.fill_price} commission={event.commission}"
        )

    # --------------------------------------------------
    # corporate actions
    # --------------------------------------------------
    def _handle_dividend(self, event: DividendEvent) -> None:
        for strategy in self.strategies:
            if event.asset not in strategy.assets:
                continue
            credit = strategy.apply_dividend(event.asset, event.dividend_per_share)
            if credit:
                logs.info(
                    f"[Portfolio] {event.date} dividend {event.asset} "
                    f"{event.dividend_per_share}/share -> {strategy.name} +{credit}"
                )

    def _handle_split(self, event: SplitEvent) -> None:
        for strategy in self.strategies:
            if event.asset in strategy.assets:
                strategy.apply_split(event.asset, event.split_ratio)
        n = self.market_data.adjust_for_split(event.asset, event.split_ratio)
        logs.info(f"[Portfolio] {event.date} split {event.asset} x{event.split_ratio} ({n} bars adjusted)")

    # --------------------------------------------------
    # rebalancing
    # --------------------------------------------------
    def _handle_rebalancing(self, event: RebalancingEvent) -> None:
        strategy = self.get_strategy(event.strategy_name)
        sizer = FixedWeightPositionSizer(event.target_weights)
        signals = {asset: SignalType.REBALANCE for asset in event.target_weights}
        sizes = sizer.compute_position_sizes(event.date, signals, strategy, self.market_data, self.fx_rates)
        self._submit_targets(strategy, event.date, sizes)

    # --------------------------------------------------
    # valuation
    # --------------------------------------------------
    def calculate_total_portfolio_value(self, d: date) -> Decimal:
        return sum(
            (
                s.compute_total_value(d, self.base_currency, self.market_data, self.fx_rates)
                for s in self.strategies
            ),
            Decimal("0"),
        )

    def update_equity_curve(self, d: date) -> Decimal:
        value = self.calculate_total_portfolio_value(d)
        self.equity_curve.record(d, value)
        logs.debug(f"[Portfolio] {d} equity={value} {self.base_currency.value}")
        return value
