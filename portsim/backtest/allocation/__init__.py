from portsim.backtest.allocation.allocators import (
    EqualWeightCapitalAllocation,
    SelfFundedCapitalAllocation,
)

__all__ = ["SelfFundedCapitalAllocation", "EqualWeightCapitalAllocation"]
