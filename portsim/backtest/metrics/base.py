from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict

from portsim.backtest.metrics.tearsheet import Tearsheet
from portsim.backtest.result import BacktestResult


class MetricsCollector(ABC):
    """
    MetricsCollector (FINAL)

    BacktestResult -> metrics dict

    - Metrics are pure functions of BacktestResult.
    - Metrics must not affect backtest execution.
    - Result and Metrics are stored separately.
    """

    @abstractmethod
    def compute(self, result: BacktestResult) -> Dict[str, Any]:
        ...


class TearsheetMetrics(MetricsCollector):
    def compute(self, result: BacktestResult) -> Dict[str, Any]:
        if result.tearsheet is not None:
            return result.tearsheet.summary()
        return Tearsheet.from_equity(result.equity_mapping(), result.benchmark_mapping()).summary()


class TradeMetrics(MetricsCollector):
    def compute(self, result: BacktestResult) -> Dict[str, Any]:
        commission = sum((Decimal(f["commission"]) for f in result.fills), Decimal("0"))
        turnover = sum(
            (Decimal(f["fill_price"]) * int(f["quantity"]) for f in result.fills), Decimal("0")
        )
        equity = result.equity_curve
        return {
            "n_signals": result.n_signals,
            "n_orders": result.n_orders,
            "n_fills": len(result.fills),
            "total_commission": float(commission),
            "turnover": float(turnover),
            "initial_equity": float(equity[0]) if equity else 0.0,
            "final_equity": float(equity[-1]) if equity else 0.0,
        }


class MetricsPipeline:
    def __init__(self, collectors: list[MetricsCollector]):
        self._collectors = collectors

    def compute(self, result: BacktestResult) -> Dict[str, Any]:
        metrics: Dict[str, Any] = {}
        for c in self._collectors:
            metrics.update(c.compute(result))
        return metrics
