from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from portsim.backtest.core.data import to_decimal
from portsim.utils.errors import TemporalOrderError
# portsim/backtest/core/equity.py


@dataclass
class EquityCurve:
    """
    EquityCurve (FINAL / FROZEN)

    Ordered date -> total portfolio value in base currency.

    Invariants:
    - keys strictly increasing
    - a write earlier than the last date -> TemporalOrderError
    - a write ON the last date replaces that value (same-day re-valuation)
    - any older entry is never mutated
    """

    _values: Dict[date, Decimal] = field(default_factory=dict)

    def record(self, d: date, value: Decimal) -> None:
        last = self.last_date
        if last is not None and d < last:
            raise TemporalOrderError(d, last, what="equity curve")
        self._values[d] = to_decimal(value)

    @property
    def last_date(self) -> Optional[date]:
        if not self._values:
            return None
        return next(reversed(self._values))

    @property
    def last_value(self) -> Optional[Decimal]:
        d = self.last_date
        return None if d is None else self._values[d]

    def dates(self) -> List[date]:
        return list(self._values)

    def values(self) -> List[Decimal]:
        return list(self._values.values())

    def as_mapping(self) -> Mapping[date, Decimal]:
        return MappingProxyType(self._values)

    def __getitem__(self, d: date) -> Decimal:
        return self._values[d]

    def __contains__(self, d: date) -> bool:
        return d in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values.items())
