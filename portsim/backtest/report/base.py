# portsim/backtest/report/base.py
from __future__ import annotations

from abc import ABC, abstractmethod

from portsim.backtest.result import BacktestResult


class Report(ABC):
    """
    Report (FINAL / FROZEN)

    BacktestResult -> side effects (files, figures)

    - Reports are read-only consumers of BacktestResult.
    - All derived analytics are computed in the Metrics layer.
    - Deleting reports must not affect reproducibility.
    """

    @abstractmethod
    def render(self, result: BacktestResult) -> None:
        ...


class ReportPipeline:
    def __init__(self, reports: list[Report]):
        self._reports = reports

    def render_all(self, result: BacktestResult):
        for r in self._reports:
            r.render(result)
