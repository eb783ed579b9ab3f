from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Mapping

import numpy as np

from portsim.backtest.core.data import HistoricalMarketData
from portsim.backtest.core.enums import SignalType
from portsim.backtest.core.interfaces import Strategy
from portsim.backtest.sizing.base import WeightedPositionSizer
from portsim.utils.errors import ConfigurationError


class InverseVolatilityPositionSizer(WeightedPositionSizer):
    """
    Dynamic weights ∝ 1 / stdev(daily close-to-close returns) over the
    trailing `lookback` returns of the signaled assets; weights sum to 1
    over the assets being bought or sold (Exit signals get weight 0).

    Falls back to equal weights while any asset lacks `lookback + 1`
    closes or shows zero volatility.
    """

    def __init__(self, lookback: int = 20):
        lookback = int(lookback)
        if lookback < 2:
            raise ConfigurationError(f"lookback must be >= 2, got {lookback}")
        self.lookback = lookback

    def _volatility(self, market_data: HistoricalMarketData, asset: str, d: date) -> float:
        closes = market_data.closes(asset, up_to=d)
        if len(closes) < self.lookback + 1:
            return 0.0
        px = np.array([float(c) for _, c in closes[-(self.lookback + 1):]])
        if np.any(px <= 0):
            return 0.0
        returns = px[1:] / px[:-1] - 1.0
        return float(np.std(returns, ddof=1))

    def resolve_weights(
        self,
        d: date,
        signals: Mapping[str, SignalType],
        strategy: Strategy,
        market_data: HistoricalMarketData,
    ) -> Dict[str, Decimal]:
        assets = [a for a, s in signals.items() if SignalType(s).direction != 0]
        weights = {a: Decimal(0) for a in signals}
        if not assets:
            return weights
        vols = np.array([self._volatility(market_data, a, d) for a in assets])

        if np.any(vols <= 0.0):
            equal = Decimal(1) / Decimal(len(assets))
            weights.update({a: equal for a in assets})
            return weights

        inv = 1.0 / vols
        raw = inv / inv.sum()
        weights.update({a: Decimal(repr(float(w))) for a, w in zip(assets, raw)})
        return weights
