# portsim/backtest/result.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from portsim.backtest.core.portfolio import Portfolio
    from portsim.backtest.metrics.tearsheet import Tearsheet


@dataclass(frozen=True)
class BacktestResult:
    """
    BacktestResult (FINAL / FROZEN)

    不可变事实结果，用于：
      - 结果回放
      - 回归测试
      - Metrics / Report 派生
    """

    # -----------------------
    # Experiment identity
    # -----------------------
    name: str
    base_currency: str
    strategies: List[str]

    # -----------------------
    # Event stats
    # -----------------------
    n_signals: int
    n_orders: int

    # -----------------------
    # Core trajectories
    # -----------------------
    dates: List[date]
    equity_curve: List[Decimal]                 # 与 dates 对齐
    benchmark_curve: Optional[List[Decimal]] = None

    # -----------------------
    # Trade facts
    # -----------------------
    fills: List[Dict[str, str]] = field(default_factory=list)
    positions: Dict[str, Dict[str, int]] = field(default_factory=dict)
    cash: Dict[str, Dict[str, str]] = field(default_factory=dict)

    tearsheet: Optional["Tearsheet"] = None

    @classmethod
    def from_portfolio(
        cls,
        portfolio: "Portfolio",
        benchmark: Optional["Portfolio"] = None,
        tearsheet: Optional["Tearsheet"] = None,
    ) -> "BacktestResult":
        dates = portfolio.equity_curve.dates()
        bench = None
        if benchmark is not None:
            bench_map = benchmark.equity_curve.as_mapping()
            bench = [bench_map.get(d) for d in dates]

        return cls(
            name=portfolio.name,
            base_currency=portfolio.base_currency.value,
            strategies=[s.name for s in portfolio.strategies],
            n_signals=portfolio.n_signals,
            n_orders=portfolio.n_orders,
            dates=dates,
            equity_curve=portfolio.equity_curve.values(),
            benchmark_curve=bench,
            fills=[
                {
                    "date": f.date.isoformat(),
                    "strategy": f.strategy_name,
                    "asset": f.asset,
                    "trade_action": f.trade_action.value,
                    "quantity": str(f.quantity),
                    "fill_price": str(f.fill_price),
                    "commission": str(f.commission),
                }
                for f in portfolio.fills
            ],
            positions={s.name: dict(s.positions) for s in portfolio.strategies},
            cash={s.name: {c.value: str(v) for c, v in s.cash.items()} for s in portfolio.strategies},
            tearsheet=tearsheet,
        )

    def equity_mapping(self) -> Dict[date, Decimal]:
        return dict(zip(self.dates, self.equity_curve))

    def benchmark_mapping(self) -> Optional[Dict[date, Decimal]]:
        if self.benchmark_curve is None:
            return None
        return {d: v for d, v in zip(self.dates, self.benchmark_curve) if v is not None}
