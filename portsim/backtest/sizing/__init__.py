from portsim.backtest.sizing.base import WeightedPositionSizer, sizing_capital
from portsim.backtest.sizing.fixed_weight import FixedWeightPositionSizer
from portsim.backtest.sizing.inverse_volatility import InverseVolatilityPositionSizer

__all__ = [
    "WeightedPositionSizer",
    "FixedWeightPositionSizer",
    "InverseVolatilityPositionSizer",
    "sizing_capital",
]
