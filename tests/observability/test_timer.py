#!filepath: tests/observability/test_timer.py

import time
from portsim.observability.timer import Timer

def test_timer_basic():
    t = Timer(enabled=True)
    t.start("task")
    time.sleep(0.01)
    elapsed = t.end("task")

    assert elapsed > 0
    assert isinstance(elapsed, float)

def test_timer_disabled():
    t = Timer(enabled=False)
    t.start("task")
    elapsed = t.end("task")

    assert elapsed == 0.0

def test_timer_end_without_start():
    assert Timer().end("never") == 0.0
