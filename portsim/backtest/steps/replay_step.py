# portsim/backtest/steps/replay_step.py
from portsim.backtest.backtest import Backtest
from portsim.backtest.result import BacktestResult
from portsim.pipeline.step import PipelineStep


class ReplayStep(PipelineStep):
    """
    ReplayStep（FINAL）

    职责：
      - 按日回放 MarketEvent -> portfolio / benchmark
      - 生成 Tearsheet 与 BacktestResult
    """

    stage = "backtest_replay"

    def run(self, ctx):
        if ctx.fetcher is None or ctx.portfolio is None:
            raise RuntimeError("[Replay] fetcher / portfolio not initialized")

        cfg = ctx.cfg
        with self.timed():
            backtest = Backtest(
                portfolio=ctx.portfolio,
                fetcher=ctx.fetcher,
                benchmark=ctx.benchmark,
                trading_calendar=set(cfg.trading_calendar) if cfg.trading_calendar else None,
            )

            with self.inst.timer("replay"):
                tearsheet = backtest.run(cfg.start_date, cfg.end_date)

            brokerage = ctx.portfolio.brokerage
            self.inst.metrics.record("days", backtest.n_days)
            self.inst.metrics.record("fills", len(ctx.portfolio.fills))
            self.inst.metrics.record("rejected_orders", getattr(brokerage, "n_rejected", 0))

            ctx.backtest = backtest
            ctx.tearsheet = tearsheet
            ctx.result = BacktestResult.from_portfolio(ctx.portfolio, ctx.benchmark, tearsheet)
        return ctx
