# portsim/backtest/pipeline.py
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from portsim import logs
from portsim.backtest.context import BacktestContext
from portsim.config.backtest_config import BacktestConfig
from portsim.observability.instrumentation import Instrumentation
from portsim.pipeline.step import PipelineStep
from portsim.utils.filesystem import FileSystem


class BacktestPipeline:
    """
    BacktestPipeline（FINAL / FROZEN）

    语义：
      - Backtest 的 orchestration 层
      - 只负责：
          * Context 构造
          * Step 顺序执行
          * 输出目录管理
    """

    def __init__(
        self,
        *,
        steps: list[PipelineStep],
        inst: Instrumentation,
    ) -> None:
        self.steps = steps
        self.inst = inst

    def run(self, cfg: BacktestConfig, run_id: Optional[str] = None) -> BacktestContext:
        run_id = run_id or f"{cfg.name}_{datetime.now():%Y%m%d_%H%M%S}"
        logs.info(f"[BacktestPipeline] ====== START {run_id} ======")

        output_dir = FileSystem.ensure_dir(Path(cfg.output_dir) / run_id)

        ctx = BacktestContext(
            cfg=cfg,
            inst=self.inst,
            run_id=run_id,
            output_dir=output_dir,
        )

        for step in self.steps:
            logs.debug(f"[BacktestPipeline] running step={step.step_name}")
            ctx = step.run(ctx)

        # Timeline (leaf only)
        self.inst.generate_timeline_report(run_id)

        logs.info(f"[BacktestPipeline] ====== DONE {run_id} -> {output_dir} ======")
        return ctx
