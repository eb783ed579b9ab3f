from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Mapping

from portsim.backtest.core.data import HistoricalMarketData, to_decimal
from portsim.backtest.core.enums import SignalType
from portsim.backtest.core.interfaces import Strategy
from portsim.backtest.sizing.base import WeightedPositionSizer
from portsim.utils.errors import AssetNotConfiguredError, ConfigurationError


class FixedWeightPositionSizer(WeightedPositionSizer):
    """Static asset -> weight table; a signaled asset without a weight is an error."""

    def __init__(self, weights: Mapping[str, Any]):
        self.weights: Dict[str, Decimal] = {a: to_decimal(w) for a, w in weights.items()}
        for asset, w in self.weights.items():
            if w < 0:
                raise ConfigurationError(f"weight for {asset} must be >= 0, got {w}")

    def resolve_weights(
        self,
        d: date,
        signals: Mapping[str, SignalType],
        strategy: Strategy,
        market_data: HistoricalMarketData,
    ) -> Dict[str, Decimal]:
        out = {}
        for asset in signals:
            if asset not in self.weights:
                raise AssetNotConfiguredError(asset, what="weight")
            out[asset] = self.weights[asset]
        return out
