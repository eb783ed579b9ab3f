#!filepath: portsim/observability/instrumentation.py
from __future__ import annotations

from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict

from portsim.observability.metrics import MetricRecorder
from portsim.observability.timeline_reporter import TimelineReporter
from portsim.observability.timer import Timer


@dataclass
class Instrumentation:
    """
    Instrumentation for one backtest run.

    - Leaf timers (record=True) land in the timeline: load_data,
      build_portfolio, replay, metrics, report, snapshot.
    - Step timers (record=False) only bound a step; nothing is recorded.
    - Run counters (days, fills, rejected_orders) go through `metrics`.
    - Nothing is logged per simulated day; the replay loop stays quiet.
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # leaf name -> seconds, in completion order
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                elapsed = inst._timer.end(name)
                if record:
                    inst.timeline[name] = elapsed

        return _ctx()

    def generate_timeline_report(self, run_id: str):
        TimelineReporter(self.timeline, run_id).print()


class NoOpInstrumentation:
    """Used when a step is built without instrumentation (tests, ad-hoc runs)."""

    def __init__(self):
        self.metrics = MetricRecorder(enabled=False)
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        return _NoOpTimer()

    def generate_timeline_report(self, run_id: str):
        return None


class _NoOpTimer:
    def __enter__(self):
        pass

    def __exit__(self, exc_type, exc, tb):
        pass
