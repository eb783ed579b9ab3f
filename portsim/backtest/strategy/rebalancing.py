from __future__ import annotations

from datetime import date
from typing import Any, Dict, Mapping, Optional

from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.enums import CurrencyCode, RebalancingFrequency, SignalType
from portsim.backtest.core.events import SignalEvent
from portsim.backtest.strategy.base import BaseStrategy
from portsim.utils.datetime_utils import DateTimeUtils


class RebalancingBuyAndHoldStrategy(BaseStrategy):
    """
    定期再平衡的买入持有

    - 第一次调用：所有资产发 Rebalance
    - 之后：date >= last_rebalancing_date + frequency 时再发一次
    - Never：只在第一次调用时建仓
    """

    def __init__(self, *, frequency: Any = RebalancingFrequency.MONTHLY, **kwargs):
        super().__init__(**kwargs)
        self.frequency = RebalancingFrequency.parse(frequency)
        self._last_rebalancing_date: Optional[date] = None

    @property
    def last_rebalancing_date(self) -> Optional[date]:
        return self._last_rebalancing_date

    def next_rebalancing_date(self, current: date) -> Optional[date]:
        f = self.frequency
        if f is RebalancingFrequency.NEVER:
            return None
        if f is RebalancingFrequency.DAILY:
            return DateTimeUtils.add_days(current, 1)
        if f is RebalancingFrequency.WEEKLY:
            return DateTimeUtils.add_days(current, 7)
        if f is RebalancingFrequency.MONTHLY:
            return DateTimeUtils.add_months(current, 1)
        if f is RebalancingFrequency.QUARTERLY:
            return DateTimeUtils.add_months(current, 3)
        return DateTimeUtils.add_years(current, 1)

    def is_rebalancing_date(self, d: date) -> bool:
        if self._last_rebalancing_date is None:
            return True
        nxt = self.next_rebalancing_date(self._last_rebalancing_date)
        return nxt is not None and d >= nxt

    def generate_signals(
        self,
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> SignalEvent:
        if not self.is_rebalancing_date(d):
            return self.empty_signal(d)

        self._last_rebalancing_date = d
        return SignalEvent(
            date=d,
            strategy_name=self.name,
            signals={asset: SignalType.REBALANCE for asset in self.assets},
        )

    def export_state(self) -> Dict[str, Any]:
        last = self._last_rebalancing_date
        return {"last_rebalancing_date": last.isoformat() if last else None}

    def restore_state(self, state: Mapping[str, Any]) -> None:
        self._last_rebalancing_date = DateTimeUtils.parse_optional(state.get("last_rebalancing_date"))
