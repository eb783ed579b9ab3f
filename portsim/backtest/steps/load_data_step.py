# portsim/backtest/steps/load_data_step.py
from portsim import logs
from portsim.backtest.data.frame_fetcher import FrameMarketDataFetcher
from portsim.pipeline.step import PipelineStep


class LoadDataStep(PipelineStep):
    """
    LoadDataStep（FINAL）

    职责：
      - cfg.market_data_path / fx_rates_path -> FrameMarketDataFetcher
    """

    stage = "backtest_load"

    def run(self, ctx):
        cfg = ctx.cfg
        with self.timed():
            with self.inst.timer("load_data"):
                fetcher = FrameMarketDataFetcher.from_files(cfg.market_data_path, cfg.fx_rates_path)

            logs.info(f"[LoadData] symbols in file={fetcher.symbols}")
            ctx.fetcher = fetcher
        return ctx
