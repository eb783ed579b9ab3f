#!filepath: portsim/workflows/run_backtest.py
from __future__ import annotations

from typing import Optional

from portsim import logs
from portsim.backtest.context import BacktestContext
from portsim.backtest.pipeline import BacktestPipeline
from portsim.backtest.steps import (
    BuildPortfolioStep,
    LoadDataStep,
    MetricsStep,
    ReplayStep,
    ReportStep,
)
from portsim.config.app_config import AppConfig
from portsim.observability.instrumentation import Instrumentation
from portsim.utils.datetime_utils import DateTimeUtils


def build_backtest_pipeline(inst: Optional[Instrumentation] = None) -> BacktestPipeline:
    inst = inst or Instrumentation(enabled=True)
    return BacktestPipeline(
        steps=[
            LoadDataStep(inst=inst),
            BuildPortfolioStep(inst=inst),
            ReplayStep(inst=inst),
            MetricsStep(inst=inst),
            ReportStep(inst=inst),
        ],
        inst=inst,
    )


@logs.catch(msg="backtest run failed")
def run_backtest(
    cfg: AppConfig,
    start: Optional[str] = None,
    end: Optional[str] = None,
    run_id: Optional[str] = None,
) -> BacktestContext:
    """CLI 参数覆盖 YAML 中的 start / end 后运行完整 pipeline。"""
    updates = {}
    if start is not None:
        updates["start_date"] = DateTimeUtils.parse_date(start)
    if end is not None:
        updates["end_date"] = DateTimeUtils.parse_date(end)

    bt_cfg = cfg.backtest.model_copy(update=updates) if updates else cfg.backtest
    return build_backtest_pipeline().run(bt_cfg, run_id=run_id)
