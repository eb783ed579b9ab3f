from __future__ import annotations

from abc import abstractmethod
from datetime import date
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, Mapping

from portsim.backtest.core.currency import HistoricalCurrencyConversionService
from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.enums import SignalType
from portsim.backtest.core.interfaces import PositionSizer, Strategy
from portsim.utils.errors import InvalidValueError

_ZERO = Decimal("0")


def sizing_capital(
    d: date,
    strategy: Strategy,
    market_data: HistoricalMarketData,
    fx_rates: HistoricalFxRates,
) -> Decimal:
    """
    Capital the sizer works with, in base currency.

    target_capital (allocator output) when present, otherwise the
    strategy's own current value.
    """
    base = fx_rates.base_currency
    if strategy.target_capital:
        conv = HistoricalCurrencyConversionService(fx_rates)
        return sum(
            (conv.convert(d, amount, ccy, base) for ccy, amount in strategy.target_capital.items()),
            _ZERO,
        )
    return strategy.compute_total_value(d, base, market_data, fx_rates)


class WeightedPositionSizer(PositionSizer):
    """
    weight -> signed integer quantity

        target_local = capital_base * weight  (converted to asset currency)
        quantity     = floor(target_local / close)

    Long / Underweight / Overweight / Rebalance -> +quantity
    Short                                      -> -quantity
    Exit                                       -> 0
    """

    @abstractmethod
    def resolve_weights(
        self,
        d: date,
        signals: Mapping[str, SignalType],
        strategy: Strategy,
        market_data: HistoricalMarketData,
    ) -> Dict[str, Decimal]:
        """asset -> weight for every signaled asset (raise when missing)."""

    def compute_position_sizes(
        self,
        d: date,
        signals: Mapping[str, SignalType],
        strategy: Strategy,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Dict[str, int]:
        if not signals:
            return {}

        weights = self.resolve_weights(d, signals, strategy, market_data)
        capital = sizing_capital(d, strategy, market_data, fx_rates)
        conv = HistoricalCurrencyConversionService(fx_rates)
        base = fx_rates.base_currency

        sizes: Dict[str, int] = {}
        for asset, signal in signals.items():
            direction = SignalType(signal).direction
            if direction == 0:
                sizes[asset] = 0
                continue

            close = market_data.require_bar(d, asset).close
            if close <= _ZERO:
                raise InvalidValueError(f"cannot size {asset} on {d}: close price is {close}")

            target_base = capital * weights[asset]
            target_local = conv.convert(d, target_base, base, strategy.currency_of(asset))
            quantity = int((target_local / close).to_integral_value(rounding=ROUND_FLOOR))

            sizes[asset] = direction * max(quantity, 0)

        return sizes
