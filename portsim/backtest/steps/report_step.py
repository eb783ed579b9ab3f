# portsim/backtest/steps/report_step.py
from portsim.backtest.report.base import ReportPipeline
from portsim.backtest.report.equity_curve import EquityCurveReport
from portsim.backtest.report.tables import EquityTableReport, MarkdownReport, TradesReport
from portsim.backtest.snapshot import PortfolioSnapshot
from portsim.pipeline.step import PipelineStep
from portsim.utils.filesystem import FileSystem


class ReportStep(PipelineStep):
    """
    ReportStep（FINAL）

    职责：
      - 只读 result + metrics
      - 输出 equity.png / fills.csv / equity.parquet / report.md / snapshot.json
    """

    stage = "backtest_report"

    def run(self, ctx):
        out_dir = ctx.output_dir

        with self.timed():
            with self.inst.timer("report"):
                ReportPipeline(
                    [
                        EquityCurveReport(out_dir / "equity.png"),
                        TradesReport(out_dir / "fills.csv"),
                        EquityTableReport(out_dir / "equity.parquet"),
                        MarkdownReport(out_dir / "report.md", ctx.metrics or {}),
                    ]
                ).render_all(ctx.result)

            with self.inst.timer("snapshot"):
                snapshot = PortfolioSnapshot.capture(ctx.portfolio)
                FileSystem.safe_write_text(out_dir / "snapshot.json", snapshot.to_json())
        return ctx
