from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Mapping, Optional

from portsim.backtest.core.data import MarketData, to_decimal
from portsim.backtest.core.enums import CurrencyCode, OrderType, SignalType, TradeAction
from portsim.utils.errors import OrderValidationError


class EventKind(str, Enum):
    MARKET = "market"
    SIGNAL = "signal"
    ORDER = "order"
    FILL = "fill"
    DIVIDEND = "dividend"
    SPLIT = "split"
    REBALANCING = "rebalancing"


# -------------------------
# Base
# -------------------------
class Event:
    """
    Closed set of event variants.

    Every variant carries `date` and a class-level `kind`; the portfolio
    dispatches on `kind` through its handler registry.
    """

    kind: ClassVar[EventKind]
    date: date


# -------------------------
# Market
# -------------------------
@dataclass(frozen=True)
class MarketEvent(Event):
    kind: ClassVar[EventKind] = EventKind.MARKET

    date: date
    bars: Mapping[str, MarketData]
    fx_rates: Mapping[CurrencyCode, Decimal] = field(default_factory=dict)


# -------------------------
# Signal
# -------------------------
@dataclass(frozen=True)
class SignalEvent(Event):
    kind: ClassVar[EventKind] = EventKind.SIGNAL

    date: date
    strategy_name: str
    signals: Mapping[str, SignalType] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.signals


# -------------------------
# Order
# -------------------------
@dataclass(frozen=True)
class Order:
    """
    Validated order submitted to a Brokerage.

    Invariants:
    - quantity > 0 (side is carried by trade_action)
    - Limit / Stop      -> primary_price required
    - StopLimit         -> primary (stop) and secondary (limit) required
    """

    date: date
    strategy_name: str
    asset: str
    trade_action: TradeAction
    order_type: OrderType
    quantity: int
    primary_price: Optional[Decimal] = None
    secondary_price: Optional[Decimal] = None

    def __post_init__(self):
        if self.primary_price is not None:
            object.__setattr__(self, "primary_price", to_decimal(self.primary_price))
        if self.secondary_price is not None:
            object.__setattr__(self, "secondary_price", to_decimal(self.secondary_price))

        if int(self.quantity) != self.quantity or self.quantity <= 0:
            raise OrderValidationError(f"order quantity must be a positive integer, got {self.quantity}")

        if self.order_type in (OrderType.LIMIT, OrderType.STOP) and self.primary_price is None:
            raise OrderValidationError(f"{self.order_type.value} order for {self.asset} requires a primary price")

        if self.order_type is OrderType.STOP_LIMIT and (
            self.primary_price is None or self.secondary_price is None
        ):
            raise OrderValidationError(
                f"StopLimit order for {self.asset} requires both primary and secondary prices"
            )

        for name in ("primary_price", "secondary_price"):
            px = getattr(self, name)
            if px is not None and px <= 0:
                raise OrderValidationError(f"order {name} must be > 0, got {px}")


@dataclass(frozen=True)
class OrderEvent(Event):
    kind: ClassVar[EventKind] = EventKind.ORDER

    date: date
    strategy_name: str
    asset: str
    trade_action: TradeAction
    order_type: OrderType
    quantity: int
    primary_price: Optional[Decimal] = None
    secondary_price: Optional[Decimal] = None

    def to_order(self) -> Order:
        return Order(
            date=self.date,
            strategy_name=self.strategy_name,
            asset=self.asset,
            trade_action=self.trade_action,
            order_type=self.order_type,
            quantity=self.quantity,
            primary_price=self.primary_price,
            secondary_price=self.secondary_price,
        )


# -------------------------
# Fill
# -------------------------
@dataclass(frozen=True)
class FillEvent(Event):
    kind: ClassVar[EventKind] = EventKind.FILL

    date: date
    strategy_name: str
    asset: str
    trade_action: TradeAction
    fill_price: Decimal
    quantity: int
    commission: Decimal

    @property
    def signed_quantity(self) -> int:
        return self.trade_action.sign * int(self.quantity)

    @property
    def cash_flow(self) -> Decimal:
        """Change of cash in the asset's currency (negative for a buy)."""
        return -(self.fill_price * self.signed_quantity) - self.commission


# -------------------------
# Corporate actions
# -------------------------
@dataclass(frozen=True)
class DividendEvent(Event):
    kind: ClassVar[EventKind] = EventKind.DIVIDEND

    date: date
    asset: str
    dividend_per_share: Decimal


@dataclass(frozen=True)
class SplitEvent(Event):
    kind: ClassVar[EventKind] = EventKind.SPLIT

    date: date
    asset: str
    split_ratio: Decimal


# -------------------------
# Rebalancing
# -------------------------
@dataclass(frozen=True)
class RebalancingEvent(Event):
    """Resize one strategy to explicit target weights on `date`."""

    kind: ClassVar[EventKind] = EventKind.REBALANCING

    date: date
    strategy_name: str
    target_weights: Mapping[str, Decimal] = field(default_factory=dict)
