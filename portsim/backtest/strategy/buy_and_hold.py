from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping, Optional

from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.enums import CurrencyCode, SignalType
from portsim.backtest.core.events import SignalEvent
from portsim.backtest.strategy.base import BaseStrategy
from portsim.utils.datetime_utils import DateTimeUtils


class BuyAndHoldStrategy(BaseStrategy):
    """
    买入并持有

    - initial_date 当天：所有资产发 Underweight 信号（建仓到目标权重）
    - 其余日期：空信号
    - initial_date 未指定时，取第一次看到的日期
    """

    def __init__(self, *, initial_date: Optional[Any] = None, **kwargs):
        super().__init__(**kwargs)
        self._initial_date: Optional[date] = DateTimeUtils.parse_optional(initial_date)

    @property
    def initial_date(self) -> Optional[date]:
        return self._initial_date

    def generate_signals(
        self,
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> SignalEvent:
        if self._initial_date is None:
            self._initial_date = d

        if d != self._initial_date:
            return self.empty_signal(d)

        return SignalEvent(
            date=d,
            strategy_name=self.name,
            signals={asset: SignalType.UNDERWEIGHT for asset in self.assets},
        )

    def export_state(self) -> Dict[str, Any]:
        return {"initial_date": self._initial_date.isoformat() if self._initial_date else None}

    def restore_state(self, state: Mapping[str, Any]) -> None:
        self._initial_date = DateTimeUtils.parse_optional(state.get("initial_date"))
