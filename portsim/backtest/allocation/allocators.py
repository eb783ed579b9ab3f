from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Sequence

from portsim.backtest.core.data import HistoricalFxRates, HistoricalMarketData
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.core.interfaces import CapitalAllocationStrategy, Strategy

"""
{#!filepath: portsim/backtest/allocation/allocators.py}

Capital allocation (FINAL)

Contract:
- Output: strategy name -> {currency -> amount}
- Sum of allocations (in base currency) <= total portfolio value on d
- Pure: never touches positions or cash
"""


class SelfFundedCapitalAllocation(CapitalAllocationStrategy):
    """每个策略只用自己的净值，不在策略之间调拨资金。"""

    def allocate_capital(
        self,
        strategies: Sequence[Strategy],
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Dict[str, Dict[CurrencyCode, Decimal]]:
        return {
            s.name: {base_currency: s.compute_total_value(d, base_currency, market_data, fx_rates)}
            for s in strategies
        }


class EqualWeightCapitalAllocation(CapitalAllocationStrategy):
    """Total portfolio value split evenly across strategies."""

    def allocate_capital(
        self,
        strategies: Sequence[Strategy],
        d: date,
        base_currency: CurrencyCode,
        market_data: HistoricalMarketData,
        fx_rates: HistoricalFxRates,
    ) -> Dict[str, Dict[CurrencyCode, Decimal]]:
        if not strategies:
            return {}

        total = sum(
            (s.compute_total_value(d, base_currency, market_data, fx_rates) for s in strategies),
            Decimal("0"),
        )
        share = total / Decimal(len(strategies))
        return {s.name: {base_currency: share} for s in strategies}
