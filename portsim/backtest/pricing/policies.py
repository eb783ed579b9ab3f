from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Tuple

from portsim.backtest.core.data import HistoricalMarketData, to_decimal
from portsim.backtest.core.enums import OrderType, TradeAction
from portsim.backtest.core.interfaces import OrderPriceCalculationStrategy

"""
{#!filepath: portsim/backtest/pricing/policies.py}

Order price policies (FINAL)

All prices are anchored on the same-day close, the only price the
simulated brokerage matches against:

    price = close * (1 + side * offset_bps / 10_000)      side: Buy +1 / Sell -1

A positive offset is a price concession (Buy higher / Sell lower).
"""

_BPS = Decimal("10000")

OrderPrices = Tuple[OrderType, Optional[Decimal], Optional[Decimal]]


def offset_price(close: Decimal, trade_action: TradeAction, offset_bps: Decimal) -> Decimal:
    return close * (Decimal(1) + trade_action.sign * offset_bps / _BPS)


class ClosePriceOrderPricing(OrderPriceCalculationStrategy):
    """Market order, primary price = close."""

    def calculate_order_prices(
        self,
        d: date,
        asset: str,
        trade_action: TradeAction,
        market_data: HistoricalMarketData,
    ) -> OrderPrices:
        close = market_data.require_bar(d, asset).close
        return OrderType.MARKET, close, None


class LimitOrderPricing(OrderPriceCalculationStrategy):
    def __init__(self, offset_bps: Any = 0):
        self.offset_bps = to_decimal(offset_bps)

    def calculate_order_prices(self, d, asset, trade_action, market_data) -> OrderPrices:
        close = market_data.require_bar(d, asset).close
        return OrderType.LIMIT, offset_price(close, trade_action, self.offset_bps), None


class StopOrderPricing(OrderPriceCalculationStrategy):
    def __init__(self, offset_bps: Any = 0):
        self.offset_bps = to_decimal(offset_bps)

    def calculate_order_prices(self, d, asset, trade_action, market_data) -> OrderPrices:
        close = market_data.require_bar(d, asset).close
        return OrderType.STOP, offset_price(close, trade_action, self.offset_bps), None


class StopLimitOrderPricing(OrderPriceCalculationStrategy):
    """primary = stop trigger, secondary = limit (also the fill price)."""

    def __init__(self, stop_offset_bps: Any = 0, limit_offset_bps: Any = 0):
        self.stop_offset_bps = to_decimal(stop_offset_bps)
        self.limit_offset_bps = to_decimal(limit_offset_bps)

    def calculate_order_prices(self, d, asset, trade_action, market_data) -> OrderPrices:
        close = market_data.require_bar(d, asset).close
        return (
            OrderType.STOP_LIMIT,
            offset_price(close, trade_action, self.stop_offset_bps),
            offset_price(close, trade_action, self.limit_offset_bps),
        )
