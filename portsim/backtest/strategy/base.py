from __future__ import annotations

from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Any, Dict, Mapping

from portsim.backtest.core.currency import HistoricalCurrencyConversionService
from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData, to_decimal
from portsim.backtest.core.enums import CurrencyCode, parse_currency
from portsim.backtest.core.events import FillEvent, SignalEvent
from portsim.backtest.core.interfaces import (
    OrderPriceCalculationStrategy,
    PositionSizer,
    Strategy,
)
from portsim.utils.errors import AssetNotConfiguredError, ConfigurationError

_ZERO = Decimal("0")


class BaseStrategy(Strategy):
    """
    BaseStrategy (FINAL / FROZEN)

    Owns the book of one strategy:
      - positions : asset -> signed int
      - cash      : currency -> Decimal
      - target_capital : currency -> Decimal (written by the allocator)

    Contract:
    - Read access is through read-only mappings.
    - Mutators (apply_fill / apply_dividend / apply_split /
      set_target_capital) are called by Portfolio only.
    - Subclasses implement generate_signals() and nothing else.
    """

    def __init__(
        self,
        *,
        name: str,
        assets: Mapping[str, Any],
        cash: Mapping[Any, Any],
        position_sizer: PositionSizer,
        order_pricing: OrderPriceCalculationStrategy,
    ):
        if not name or not str(name).strip():
            raise ConfigurationError("strategy name must be a non-empty string")
        if not assets:
            raise ConfigurationError(f"[{name}] strategy must trade at least one asset")

        self.name = str(name)
        self.assets: Mapping[str, CurrencyCode] = MappingProxyType(
            {a: parse_currency(c) for a, c in assets.items()}
        )
        self.position_sizer = position_sizer
        self.order_pricing = order_pricing

        self._positions: Dict[str, int] = {}
        self._cash: Dict[CurrencyCode, Decimal] = {
            parse_currency(c): to_decimal(v) for c, v in cash.items()
        }
        self._target_capital: Dict[CurrencyCode, Decimal] = {}

    # --------------------------------------------------
    # read-only views
    # --------------------------------------------------
    @property
    def positions(self) -> Mapping[str, int]:
        return MappingProxyType(self._positions)

    @property
    def cash(self) -> Mapping[CurrencyCode, Decimal]:
        return MappingProxyType(self._cash)

    @property
    def target_capital(self) -> Mapping[CurrencyCode, Decimal]:
        return MappingProxyType(self._target_capital)

    def position(self, asset: str) -> int:
        return self._positions.get(asset, 0)

    def currency_of(self, asset: str) -> CurrencyCode:
        try:
            return self.assets[asset]
        except KeyError:
            raise AssetNotConfiguredError(asset, what="currency") from None

    # --------------------------------------------------
    # signals
    # --------------------------------------------------
    def empty_signal(self, d: date) -> SignalEvent:
        return SignalEvent(date=d, strategy_name=self.name, signals={})

    # --------------------------------------------------
    # valuation
    # --------------------------------------------------
    def compute_total_value(
        self,
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Decimal:
        """
        sum(position * close -> base) + sum(cash -> base)

        Flat positions and zero balances are skipped, so a currency that
        is not held never needs a rate.
        """
        conv = HistoricalCurrencyConversionService(fx_rates)
        total = _ZERO

        for asset, qty in self._positions.items():
            if qty == 0:
                continue
            bar = market_data.require_bar(d, asset)
            local = bar.close * qty
            total += conv.convert(d, local, self.currency_of(asset), base_currency)

        for ccy, amount in self._cash.items():
            if amount == _ZERO:
                continue
            total += conv.convert(d, amount, ccy, base_currency)

        return total

    # --------------------------------------------------
    # mutators（Portfolio only）
    # --------------------------------------------------
    def apply_fill(self, fill: FillEvent) -> None:
        ccy = self.currency_of(fill.asset)
        self._positions[fill.asset] = self.position(fill.asset) + fill.signed_quantity
        self._cash[ccy] = self._cash.get(ccy, _ZERO) + fill.cash_flow

    def apply_dividend(self, asset: str, dividend_per_share: Decimal) -> Decimal:
        qty = self.position(asset)
        if qty == 0:
            return _ZERO
        ccy = self.currency_of(asset)
        credit = to_decimal(dividend_per_share) * qty
        self._cash[ccy] = self._cash.get(ccy, _ZERO) + credit
        return credit

    def apply_split(self, asset: str, ratio: Decimal) -> None:
        if asset not in self._positions:
            return
        scaled = Decimal(self._positions[asset]) * to_decimal(ratio)
        self._positions[asset] = int(scaled.to_integral_value(rounding=ROUND_HALF_UP))

    def set_target_capital(self, capital: Mapping[CurrencyCode, Decimal]) -> None:
        self._target_capital = {parse_currency(c): to_decimal(v) for c, v in capital.items()}

    # --------------------------------------------------
    # snapshot
    # --------------------------------------------------
    def export_state(self) -> Dict[str, Any]:
        """Strategy-internal state (not the book). Override when stateful."""
        return {}

    def restore_state(self, state: Mapping[str, Any]) -> None:
        return None

    def restore_book(
        self,
        positions: Mapping[str, int],
        cash: Mapping[Any, Any],
        target_capital: Mapping[Any, Any],
    ) -> None:
        self._positions = {a: int(q) for a, q in positions.items()}
        self._cash = {parse_currency(c): to_decimal(v) for c, v in cash.items()}
        self.set_target_capital(target_capital)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, assets={list(self.assets)})"
