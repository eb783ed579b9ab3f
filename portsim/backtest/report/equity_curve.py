# portsim/backtest/report/equity_curve.py
import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt

from portsim.backtest.report.base import Report
from portsim.backtest.result import BacktestResult


class EquityCurveReport(Report):
    def __init__(self, output_path):
        self._path = output_path

    def render(self, result: BacktestResult) -> None:
        fig, ax = plt.subplots(figsize=(10, 4))
        ax.plot(result.dates, [float(v) for v in result.equity_curve], label=result.name)

        if result.benchmark_curve is not None:
            pairs = [(d, float(v)) for d, v in zip(result.dates, result.benchmark_curve) if v is not None]
            if pairs:
                ax.plot([d for d, _ in pairs], [v for _, v in pairs], label="benchmark", linestyle="--")

        ax.set_title(f"Equity Curve: {result.name}")
        ax.set_xlabel("Date")
        ax.set_ylabel(f"Equity ({result.base_currency})")
        ax.legend()
        fig.autofmt_xdate()
        fig.tight_layout()
        fig.savefig(self._path)
        plt.close(fig)
