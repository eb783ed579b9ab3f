from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Mapping, Optional

from portsim.backtest.metrics import performance as perf


@dataclass(frozen=True)
class Tearsheet:
    """
    Tearsheet (FINAL / FROZEN)

    Performance summary of one equity curve, optionally relative to a
    benchmark curve. Benchmark-relative fields are None without one.
    """

    annualized_return: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    cagr: float
    volatility: float
    annualized_volatility: float
    max_drawdown_duration: int
    annualized_sharpe_ratio: float
    annualized_sortino_ratio: float
    alpha: Optional[float] = None
    beta: Optional[float] = None
    information_ratio: Optional[float] = None
    equity_curve: Mapping[date, float] = field(default_factory=dict)
    drawdowns: Mapping[date, float] = field(default_factory=dict)

    @classmethod
    def from_equity(
        cls,
        equity: Mapping[date, Any],
        benchmark: Optional[Mapping[date, Any]] = None,
    ) -> "Tearsheet":
        values = list(equity.values())
        returns = perf.daily_returns(values)
        dd, max_dd, max_dd_duration = perf.drawdowns(equity)

        alpha = beta = info = None
        if benchmark is not None:
            # 只比较两条曲线共同的日期
            common = [d for d in equity if d in benchmark]
            r = perf.daily_returns([equity[d] for d in common])
            b = perf.daily_returns([benchmark[d] for d in common])
            alpha = perf.alpha(r, b)
            beta = perf.beta(r, b)
            info = perf.information_ratio(r, b)

        return cls(
            annualized_return=perf.annualized_return(returns),
            sharpe_ratio=perf.sharpe_ratio(returns),
            sortino_ratio=perf.sortino_ratio(returns),
            max_drawdown=max_dd,
            cagr=perf.cagr(returns),
            volatility=perf.volatility(returns),
            annualized_volatility=perf.annualized_volatility(returns),
            max_drawdown_duration=max_dd_duration,
            annualized_sharpe_ratio=perf.annualized_sharpe_ratio(returns),
            annualized_sortino_ratio=perf.annualized_sortino_ratio(returns),
            alpha=alpha,
            beta=beta,
            information_ratio=info,
            equity_curve={d: float(v) for d, v in equity.items()},
            drawdowns=dd,
        )

    def summary(self) -> Dict[str, Any]:
        """Scalar metrics only (JSON-friendly)."""
        return {
            "annualized_return": self.annualized_return,
            "sharpe_ratio": self.sharpe_ratio,
            "sortino_ratio": self.sortino_ratio,
            "annualized_sharpe_ratio": self.annualized_sharpe_ratio,
            "annualized_sortino_ratio": self.annualized_sortino_ratio,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_duration": self.max_drawdown_duration,
            "cagr_pct": self.cagr,
            "volatility": self.volatility,
            "annualized_volatility": self.annualized_volatility,
            "alpha": self.alpha,
            "beta": self.beta,
            "information_ratio": self.information_ratio,
        }
