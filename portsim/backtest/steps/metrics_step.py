# portsim/backtest/steps/metrics_step.py
import json

from portsim.backtest.metrics.base import MetricsPipeline, TearsheetMetrics, TradeMetrics
from portsim.pipeline.step import PipelineStep
from portsim.utils.filesystem import FileSystem


class MetricsStep(PipelineStep):
    """
    MetricsStep（FINAL）

    职责：
      - result -> metrics.json
    """

    stage = "backtest_metrics"

    def run(self, ctx):
        with self.timed():
            with self.inst.timer("metrics"):
                metrics = MetricsPipeline([TearsheetMetrics(), TradeMetrics()]).compute(ctx.result)

            FileSystem.safe_write_text(ctx.output_dir / "metrics.json", json.dumps(metrics, indent=2, default=str))
            ctx.metrics = metrics
        return ctx
