# portsim/backtest/steps/build_portfolio_step.py
from portsim import logs
from portsim.backtest.factory import PortfolioFactory
from portsim.pipeline.step import PipelineStep


class BuildPortfolioStep(PipelineStep):
    """
    BuildPortfolioStep（FINAL）

    职责：
      - BacktestConfig -> Portfolio (+ benchmark) 通过注册式工厂构造
    """

    stage = "backtest_build"

    def run(self, ctx):
        with self.timed():
            with self.inst.timer("build_portfolio"):
                portfolio, benchmark = PortfolioFactory.build(ctx.cfg)

            logs.info(
                f"[BuildPortfolio] strategies={[s.name for s in portfolio.strategies]} "
                f"assets={portfolio.assets} benchmark={benchmark.name if benchmark else None}"
            )
            ctx.portfolio = portfolio
            ctx.benchmark = benchmark
        return ctx
