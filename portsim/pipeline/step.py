from __future__ import annotations

from typing import TYPE_CHECKING

from portsim.observability.instrumentation import Instrumentation, NoOpInstrumentation

if TYPE_CHECKING:
    from portsim.backtest.context import BacktestContext


class PipelineStep:
    """
    Pipeline Step 基类

    职责：
      1. 作为 orchestration 层（一次 run 内的一个阶段）
      2. 提供 Step 级时间语义边界（parent scope）

    设计铁律：
      - Step 本身不进入 timeline
      - 可观测性发生在 Step 内部（leaf timer）
      - Step 行为不依赖 inst 是否存在
    """

    stage: str = ""

    def __init__(self, inst: Instrumentation | None = None):
        # 永远保证 inst 可用（No-op 语义）
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )

    @property
    def step_name(self) -> str:
        """默认使用类名作为 Step 名称。"""
        return self.__class__.__name__

    def timed(self):
        """Step 级父 scope：record=False，不进入 timeline。"""
        return self.inst.timer(self.step_name, record=False)

    def run(self, ctx: "BacktestContext") -> "BacktestContext":
        raise NotImplementedError(f"{self.step_name}.run")
