from portsim.backtest.brokerage.simulated import (
    CommissionModel,
    FixedRateCommission,
    SimulatedBrokerage,
    match_fill_price,
)

__all__ = ["CommissionModel", "FixedRateCommission", "SimulatedBrokerage", "match_fill_price"]
