# portsim/backtest/context.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from portsim.backtest.backtest import Backtest
from portsim.backtest.core.interfaces import MarketDataFetcher
from portsim.backtest.core.portfolio import Portfolio
from portsim.backtest.metrics.tearsheet import Tearsheet
from portsim.backtest.result import BacktestResult
from portsim.config.backtest_config import BacktestConfig
from portsim.observability.instrumentation import Instrumentation, NoOpInstrumentation


@dataclass
class BacktestContext:
    """
    BacktestContext（FROZEN）

    Contract:
    - cfg is READ-ONLY; no step mutates it.
    - Every other field is written by exactly one step.
    """

    # injected once
    cfg: BacktestConfig
    inst: Instrumentation | NoOpInstrumentation
    run_id: str
    output_dir: Path

    # LoadDataStep
    fetcher: Optional[MarketDataFetcher] = None

    # BuildPortfolioStep
    portfolio: Optional[Portfolio] = None
    benchmark: Optional[Portfolio] = None

    # ReplayStep
    backtest: Optional[Backtest] = None
    tearsheet: Optional[Tearsheet] = None
    result: Optional[BacktestResult] = None

    # MetricsStep
    metrics: Optional[Dict[str, Any]] = None
