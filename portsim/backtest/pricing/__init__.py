from portsim.backtest.pricing.policies import (
    ClosePriceOrderPricing,
    LimitOrderPricing,
    StopLimitOrderPricing,
    StopOrderPricing,
)

__all__ = [
    "ClosePriceOrderPricing",
    "LimitOrderPricing",
    "StopOrderPricing",
    "StopLimitOrderPricing",
]
