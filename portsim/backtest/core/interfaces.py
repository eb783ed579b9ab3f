from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData, MarketData
from portsim.backtest.core.enums import CurrencyCode, OrderType, SignalType, TradeAction
from portsim.backtest.core.events import FillEvent, Order, SignalEvent

"""
{#!filepath: portsim/backtest/core/interfaces.py}

Plugin seams (FINAL / FROZEN)

Every pluggable behaviour of the engine is an ABC here:
  Strategy / PositionSizer / CapitalAllocationStrategy /
  OrderPriceCalculationStrategy / Brokerage /
  CurrencyConversionService / MarketDataFetcher

Invariants:
- Plugins never mutate HistoricalMarketData / HistoricalFxRates.
- Only Portfolio mutates positions and cash (through Strategy mutators).
"""

FillListener = Callable[[FillEvent], None]


class Strategy(ABC):
    """Named trading strategy owning positions and multi-currency cash."""

    name: str
    assets: Mapping[str, CurrencyCode]
    position_sizer: "PositionSizer"
    order_pricing: "OrderPriceCalculationStrategy"

    @property
    @abstractmethod
    def positions(self) -> Mapping[str, int]:
        ...

    @property
    @abstractmethod
    def cash(self) -> Mapping[CurrencyCode, Decimal]:
        ...

    @property
    @abstractmethod
    def target_capital(self) -> Mapping[CurrencyCode, Decimal]:
        ...

    @abstractmethod
    def generate_signals(
        self,
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> SignalEvent:
        ...

    @abstractmethod
    def compute_total_value(
        self,
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Decimal:
        ...

    # ---- mutators: Portfolio only ----
    @abstractmethod
    def apply_fill(self, fill: FillEvent) -> None:
        ...

    @abstractmethod
    def apply_dividend(self, asset: str, dividend_per_share: Decimal) -> Decimal:
        ...

    @abstractmethod
    def apply_split(self, asset: str, ratio: Decimal) -> None:
        ...

    @abstractmethod
    def set_target_capital(self, capital: Mapping[CurrencyCode, Decimal]) -> None:
        ...


class PositionSizer(ABC):
    @abstractmethod
    def compute_position_sizes(
        self,
        d: date,
        signals: Mapping[str, SignalType],
        strategy: Strategy,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Dict[str, int]:
        """Signed desired holding per signaled asset."""


class CapitalAllocationStrategy(ABC):
    @abstractmethod
    def allocate_capital(
        self,
        strategies: Sequence[Strategy],
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Dict[str, Dict[CurrencyCode, Decimal]]:
        """strategy name -> {currency -> amount}."""


class OrderPriceCalculationStrategy(ABC):
    @abstractmethod
    def calculate_order_prices(
        self,
        d: date,
        asset: str,
        trade_action: TradeAction,
        market_data: HistoricalMarketData,
    ) -> Tuple[OrderType, Optional[Decimal], Optional[Decimal]]:
        """(order_type, primary_price, secondary_price)"""


class Brokerage(ABC):
    @abstractmethod
    def submit_order(self, order: Order) -> bool:
        """True when the order filled (listeners have been notified)."""

    @abstractmethod
    def subscribe(self, listener: FillListener) -> None:
        ...


class CurrencyConversionService(ABC):
    @abstractmethod
    def convert(
        self,
        d: date,
        amount: Decimal,
        from_currency: CurrencyCode,
        to_currency: CurrencyCode,
    ) -> Decimal:
        ...


class MarketDataFetcher(ABC):
    """Date-ordered, restartable sources of bars and FX rates."""

    @abstractmethod
    def fetch_market_data(self, symbols: Iterable[str]) -> Iterator[Tuple[date, Dict[str, MarketData]]]:
        ...

    @abstractmethod
    def fetch_fx_rates(
        self, currencies: Iterable[CurrencyCode]
    ) -> Iterator[Tuple[date, Dict[CurrencyCode, Decimal]]]:
        ...
