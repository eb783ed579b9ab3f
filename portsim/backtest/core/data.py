from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from portsim.backtest.core.enums import CurrencyCode
from portsim.utils.errors import (
    FxRateNotFoundError,
    InvalidValueError,
    MarketDataNotFoundError,
    TemporalOrderError,
)

"""
{#!filepath: portsim/backtest/core/data.py}

Market data model (FINAL / FROZEN)

Defines WHAT is observable from the world on day d.

Contract:
- MarketData is an immutable daily bar.
- HistoricalMarketData / HistoricalFxRates are append-only in date order.
- The ONLY in-place rewrite is a split adjustment of one asset's bars.

Invariants:
- No look-ahead: a view never exposes a date that was not appended.
- Prices and money are Decimal; volume is int.
"""

_ZERO = Decimal("0")
_ONE = Decimal("1")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # float 走 str：最短十进制表示，避免二进制尾差（numpy 标量同样适用）
    return Decimal(str(value))


# ----------------------------------------------------------------------
# Bar
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MarketData:
    """One daily observation of one asset."""

    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    adjusted_close: Decimal
    volume: int
    dividend_per_share: Decimal = _ZERO
    split_coefficient: Decimal = _ONE

    def __post_init__(self):
        for name in ("open", "high", "low", "close", "adjusted_close",
                     "dividend_per_share", "split_coefficient"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, "volume", int(self.volume))

        for name in ("open", "high", "low", "close", "adjusted_close", "dividend_per_share"):
            if getattr(self, name) < _ZERO:
                raise InvalidValueError(f"MarketData.{name} must be >= 0, got {getattr(self, name)}")
        if self.volume < 0:
            raise InvalidValueError(f"MarketData.volume must be >= 0, got {self.volume}")
        if self.split_coefficient <= _ZERO:
            raise InvalidValueError(
                f"MarketData.split_coefficient must be > 0, got {self.split_coefficient}"
            )

    @property
    def has_dividend(self) -> bool:
        return self.dividend_per_share > _ZERO

    @property
    def has_split(self) -> bool:
        return self.split_coefficient != _ONE

    def adjusted_for_split(self, coefficient: Decimal) -> "MarketData":
        """
        Prices / coef, volume * coef.

        dividend_per_share and split_coefficient are facts of the day and
        are left untouched.
        """
        coef = to_decimal(coefficient)
        return replace(
            self,
            open=self.open / coef,
            high=self.high / coef,
            low=self.low / coef,
            close=self.close / coef,
            adjusted_close=self.adjusted_close / coef,
            volume=int((Decimal(self.volume) * coef).to_integral_value(rounding=ROUND_HALF_UP)),
        )


# ----------------------------------------------------------------------
# View（brokerage / pricing 只依赖这个接口）
# ----------------------------------------------------------------------
class MarketDataView(ABC):
    """
    World-facing data interface.

    Answers ONE question:
    - On day d, what bar is observable for asset a?
    """

    @abstractmethod
    def get_bar(self, d: date, asset: str) -> Optional[MarketData]:
        """Bar for (d, asset) or None when not observed."""

    def require_bar(self, d: date, asset: str) -> MarketData:
        bar = self.get_bar(d, asset)
        if bar is None:
            raise MarketDataNotFoundError(d, asset)
        return bar


# ----------------------------------------------------------------------
# History
# ----------------------------------------------------------------------
@dataclass
class HistoricalMarketData(MarketDataView):
    """Ordered mapping date -> {asset -> MarketData}."""

    _bars: Dict[date, Dict[str, MarketData]] = field(default_factory=dict)

    # -------- write --------
    def append(self, d: date, bars: Mapping[str, MarketData]) -> None:
        last = self.last_date
        if last is not None and d < last:
            raise TemporalOrderError(d, last, what="market data")
        # 同一天重复推送：整体替换
        self._bars[d] = dict(bars)

    def adjust_for_split(self, asset: str, coefficient: Decimal) -> int:
        """
        Rewrite every stored bar of `asset` (split date included).

        Returns the number of bars rewritten.
        """
        coef = to_decimal(coefficient)
        n = 0
        for day_bars in self._bars.values():
            bar = day_bars.get(asset)
            if bar is None:
                continue
            day_bars[asset] = bar.adjusted_for_split(coef)
            n += 1
        return n

    # -------- read --------
    def get_bar(self, d: date, asset: str) -> Optional[MarketData]:
        day_bars = self._bars.get(d)
        if day_bars is None:
            return None
        return day_bars.get(asset)

    def closes(self, asset: str, up_to: Optional[date] = None) -> List[Tuple[date, Decimal]]:
        """Close series of one asset, oldest first, optionally capped at up_to."""
        out = []
        for d, day_bars in self._bars.items():
            if up_to is not None and d > up_to:
                break
            bar = day_bars.get(asset)
            if bar is not None:
                out.append((d, bar.close))
        return out

    @property
    def last_date(self) -> Optional[date]:
        if not self._bars:
            return None
        return next(reversed(self._bars))

    def dates(self) -> List[date]:
        return list(self._bars)

    def items(self) -> Iterator[Tuple[date, Mapping[str, MarketData]]]:
        for d, day_bars in self._bars.items():
            yield d, MappingProxyType(day_bars)

    def __contains__(self, d: date) -> bool:
        return d in self._bars

    def __len__(self) -> int:
        return len(self._bars)


@dataclass
class HistoricalFxRates:
    """
    Ordered mapping date -> {currency -> rate}.

    rate(c) = value in base currency of ONE unit of c,
    i.e. base_amount = amount * rate(c).
    The base currency is implicitly 1 on every date.
    """

    base_currency: CurrencyCode
    _rates: Dict[date, Dict[CurrencyCode, Decimal]] = field(default_factory=dict)

    def append(self, d: date, rates: Mapping[CurrencyCode, Decimal]) -> None:
        last = self.last_date
        if last is not None and d < last:
            raise TemporalOrderError(d, last, what="fx rate")
        clean: Dict[CurrencyCode, Decimal] = {}
        for ccy, rate in rates.items():
            r = to_decimal(rate)
            if r <= _ZERO:
                raise InvalidValueError(f"fx rate for {ccy} on {d} must be > 0, got {r}")
            clean[CurrencyCode(ccy)] = r
        self._rates[d] = clean

    def rate(self, d: date, currency: CurrencyCode) -> Decimal:
        """Exact-date lookup; no fill-forward."""
        if currency == self.base_currency:
            return _ONE
        day_rates = self._rates.get(d)
        if day_rates is None or currency not in day_rates:
            raise FxRateNotFoundError(d, currency)
        return day_rates[currency]

    @property
    def last_date(self) -> Optional[date]:
        if not self._rates:
            return None
        return next(reversed(self._rates))

    def items(self) -> Iterator[Tuple[date, Mapping[CurrencyCode, Decimal]]]:
        for d, day_rates in self._rates.items():
            yield d, MappingProxyType(day_rates)

    def __len__(self) -> int:
        return len(self._rates)
