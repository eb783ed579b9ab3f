from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from portsim import logs
from portsim.backtest.core.data import MarketDataView, to_decimal
from portsim.backtest.core.enums import OrderType, TradeAction
from portsim.backtest.core.events import FillEvent, Order
from portsim.backtest.core.interfaces import Brokerage, FillListener

"""
{#!filepath: portsim/backtest/brokerage/simulated.py}

SimulatedBrokerage (FINAL / FROZEN)

Role:
- Match an Order against the single daily bar of (order.date, asset).

Matching (close only):
- Market    : fill at close
- Limit     : Buy  limit >= close  | Sell limit <= close   -> fill at limit
- Stop      : Buy  stop  <= close  | Sell stop  >= close   -> fill at stop
- StopLimit : stop condition on primary AND limit condition on secondary
              -> fill at secondary

Invariants:
- At most one fill per order, never partial.
- No bar -> not filled, no notification.
- Does NOT mutate positions or cash: fills are pushed to subscribers.
"""


# ----------------------------------------------------------------------
# Commission
# ----------------------------------------------------------------------
class CommissionModel(ABC):
    @abstractmethod
    def compute(self, fill_price: Decimal, quantity: int) -> Decimal:
        ...


class FixedRateCommission(CommissionModel):
    """commission = fill_price * quantity * rate"""

    def __init__(self, rate: Any = Decimal("0.001")):
        self.rate = to_decimal(rate)

    def compute(self, fill_price: Decimal, quantity: int) -> Decimal:
        return fill_price * quantity * self.rate


# ----------------------------------------------------------------------
# Matching rules
# ----------------------------------------------------------------------
def _limit_ok(action: TradeAction, limit: Decimal, close: Decimal) -> bool:
    return limit >= close if action is TradeAction.BUY else limit <= close


def _stop_ok(action: TradeAction, stop: Decimal, close: Decimal) -> bool:
    return stop <= close if action is TradeAction.BUY else stop >= close


def _match_market(order: Order, close: Decimal) -> Optional[Decimal]:
    return close


def _match_limit(order: Order, close: Decimal) -> Optional[Decimal]:
    if _limit_ok(order.trade_action, order.primary_price, close):
        return order.primary_price
    return None


def _match_stop(order: Order, close: Decimal) -> Optional[Decimal]:
    if _stop_ok(order.trade_action, order.primary_price, close):
        return order.primary_price
    return None


def _match_stop_limit(order: Order, close: Decimal) -> Optional[Decimal]:
    if _stop_ok(order.trade_action, order.primary_price, close) and _limit_ok(
        order.trade_action, order.secondary_price, close
    ):
        return order.secondary_price
    return None


_MATCHERS: Dict[OrderType, Callable[[Order, Decimal], Optional[Decimal]]] = {
    OrderType.MARKET: _match_market,
    OrderType.LIMIT: _match_limit,
    OrderType.STOP: _match_stop,
    OrderType.STOP_LIMIT: _match_stop_limit,
}


def match_fill_price(order: Order, close: Decimal) -> Optional[Decimal]:
    """Fill price for `order` against `close`, or None when not filled."""
    return _MATCHERS[order.order_type](order, close)


# ----------------------------------------------------------------------
# Brokerage
# ----------------------------------------------------------------------
class SimulatedBrokerage(Brokerage):
    def __init__(
        self,
        market_data: MarketDataView,
        commission_model: Optional[CommissionModel] = None,
    ):
        self.market_data = market_data
        self.commission_model = commission_model or FixedRateCommission()
        self._listeners: List[FillListener] = []
        self._fills: List[FillEvent] = []
        self.n_submitted = 0
        self.n_rejected = 0

    @property
    def fills(self) -> List[FillEvent]:
        return list(self._fills)

    def subscribe(self, listener: FillListener) -> None:
        self._listeners.append(listener)

    def submit_order(self, order: Order) -> bool:
        self.n_submitted += 1

        bar = self.market_data.get_bar(order.date, order.asset)
        if bar is None:
            self.n_rejected += 1
            logs.info(
                f"[Brokerage] {order.date} no market data for {order.asset} "
                f"-> {order.trade_action.value} {order.quantity} not filled"
            )
            return False

        fill_price = match_fill_price(order, bar.close)
        if fill_price is None:
            self.n_rejected += 1
            logs.info(
                f"[Brokerage] {order.date} {order.order_type.value} {order.trade_action.value} "
                f"{order.asset} qty={order.quantity} primary={order.primary_price} "
                f"secondary={order.secondary_price} close={bar.close} -> not filled"
            )
            return False

        fill = FillEvent(
            date=order.date,
            strategy_name=order.strategy_name,
            asset=order.asset,
            trade_action=order.trade_action,
            fill_price=fill_price,
            quantity=order.quantity,
            commission=self.commission_model.compute(fill_price, order.quantity),
        )
        self._fills.append(fill)

        logs.debug(
            f"[Brokerage] {fill.date} fill {fill.trade_action.value} {fill.asset} "
            f"qty={fill.quantity} price={fill.fill_price} commission={fill.commission}"
        )

        for listener in self._listeners:
            listener(fill)

        return True
