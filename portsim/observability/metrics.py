#!filepath: portsim/observability/metrics.py
from dataclasses import dataclass, field
from typing import Any, Dict

from portsim import logs


@dataclass
class MetricRecorder:
    """Run-level counters (days replayed, fills, rejected orders ...)."""

    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        logs.info(f"[Metric] {name} = {value}")

    def increment(self, name: str, by: int = 1):
        if not self.enabled:
            return
        self.metrics[name] = self.metrics.get(name, 0) + by
