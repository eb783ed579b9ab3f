from __future__ import annotations

from datetime import date

import pandas as pd

from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.enums import CurrencyCode, SignalType
from portsim.backtest.core.events import SignalEvent
from portsim.backtest.strategy.base import BaseStrategy
from portsim.utils.errors import ConfigurationError


class MovingAverageCrossoverStrategy(BaseStrategy):
    """
    Moving Average Crossover.

    Long when SMA_fast > SMA_slow and the book holds no position,
    Exit when SMA_fast < SMA_slow and a position is held.
    Invested state is read from the book: an unfilled order is
    signaled again on the next day. Closes come from the
    (split-adjusted) history so a split never fakes a crossover.
    """

    def __init__(self, *, fast: int = 20, slow: int = 50, **kwargs):
        super().__init__(**kwargs)
        fast, slow = int(fast), int(slow)
        if fast <= 0 or slow <= 0 or fast >= slow:
            raise ConfigurationError(f"[{self.name}] need 0 < fast < slow, got fast={fast} slow={slow}")
        self.fast = fast
        self.slow = slow

    def _sma_pair(self, market_data: HistoricalMarketData, asset: str, d: date):
        closes = market_data.closes(asset, up_to=d)
        if len(closes) < self.slow or closes[-1][0] != d:
            return None

        prices = pd.Series([float(c) for _, c in closes[-self.slow:]])
        sma_fast = prices.rolling(window=self.fast).mean().iloc[-1]
        sma_slow = prices.rolling(window=self.slow).mean().iloc[-1]
        return sma_fast, sma_slow

    def is_invested(self, asset: str) -> bool:
        return self.position(asset) > 0

    def generate_signals(
        self,
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> SignalEvent:
        signals = {}

        for asset in self.assets:
            pair = self._sma_pair(market_data, asset, d)
            if pair is None:
                continue
            sma_fast, sma_slow = pair

            invested = self.is_invested(asset)
            if sma_fast > sma_slow and not invested:
                signals[asset] = SignalType.LONG
            elif sma_fast < sma_slow and invested:
                signals[asset] = SignalType.EXIT

        return SignalEvent(date=d, strategy_name=self.name, signals=signals)
