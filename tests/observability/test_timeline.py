#!filepath: tests/observability/test_timeline.py

from loguru import logger

from portsim.observability.timeline_reporter import TimelineReporter


def test_timeline_log_output():
    tl = {
        "load_data": 1.23,
        "replay": 2.34,
    }
    reporter = TimelineReporter(tl, "sample_run")

    captured = []

    # 临时添加一个 sink 捕获 Loguru 输出
    sink_id = logger.add(lambda msg: captured.append(str(msg)))

    reporter.print()

    logger.remove(sink_id)  # 恢复

    output = "\n".join(captured)

    assert "Backtest timeline for run sample_run" in output
    assert "load_data" in output
    assert "1.230" in output
    assert "replay" in output
    assert "3.570" in output
