#!filepath: tests/observability/test_instrumentation.py

import time

from loguru import logger

from portsim.observability.instrumentation import Instrumentation, NoOpInstrumentation
from portsim.pipeline.step import PipelineStep


def test_instrumentation_timer():
    inst = Instrumentation(enabled=True)

    with inst.timer("step_A"):
        time.sleep(0.01)

    assert "step_A" in inst.timeline
    assert inst.timeline["step_A"] > 0


def test_parent_scope_not_recorded():
    inst = Instrumentation(enabled=True)

    with inst.timer("parent", record=False):
        with inst.timer("leaf"):
            pass

    assert list(inst.timeline) == ["leaf"]


def test_instrumentation_metrics():
    inst = Instrumentation(enabled=True)
    inst.metrics.record("fills", 123)

    assert inst.metrics.metrics["fills"] == 123


def test_noop_instrumentation():
    inst = NoOpInstrumentation()

    with inst.timer("x"):
        pass
    inst.metrics.record("x", 1)

    assert inst.timeline == {}
    assert inst.metrics.metrics == {}
    assert inst.generate_timeline_report("r") is None


def test_step_without_inst_is_noop():
    class _Step(PipelineStep):
        stage = "demo"

        def run(self, ctx):
            with self.timed():
                with self.inst.timer("leaf"):
                    return ctx

    step = _Step()
    assert step.run("ctx") == "ctx"
    assert step.step_name == "_Step"
    assert isinstance(step.inst, NoOpInstrumentation)


def test_generate_timeline_report():
    inst = Instrumentation(enabled=True)

    with inst.timer("phase_X"):
        time.sleep(0.005)

    captured = []
    sink_id = logger.add(lambda msg: captured.append(str(msg)))

    inst.generate_timeline_report("run-42")

    logger.remove(sink_id)

    output = "\n".join(captured)

    assert "phase_X" in output
    assert "run-42" in output
    assert "Backtest timeline" in output
