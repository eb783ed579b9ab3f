from portsim.backtest.strategy.base import BaseStrategy
from portsim.backtest.strategy.buy_and_hold import BuyAndHoldStrategy
from portsim.backtest.strategy.ma_crossover import MovingAverageCrossoverStrategy
from portsim.backtest.strategy.rebalancing import RebalancingBuyAndHoldStrategy

__all__ = [
    "BaseStrategy",
    "BuyAndHoldStrategy",
    "RebalancingBuyAndHoldStrategy",
    "MovingAverageCrossoverStrategy",
]
