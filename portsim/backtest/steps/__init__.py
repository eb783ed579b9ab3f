from portsim.backtest.steps.build_portfolio_step import BuildPortfolioStep
from portsim.backtest.steps.load_data_step import LoadDataStep
from portsim.backtest.steps.metrics_step import MetricsStep
from portsim.backtest.steps.replay_step import ReplayStep
from portsim.backtest.steps.report_step import ReportStep

__all__ = ["LoadDataStep", "BuildPortfolioStep", "ReplayStep", "MetricsStep", "ReportStep"]
