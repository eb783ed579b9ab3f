#!filepath: tests/utils/test_logger.py
import pytest
from loguru import logger

from portsim import logs
from portsim.config.log_config import LogConfig
from portsim.utils.logger import Logging


def test_from_config_creates_log_dir(tmp_path):
    log_dir = tmp_path / "logs"

    lg = Logging.from_config(LogConfig(dir=str(log_dir), level="DEBUG"))

    assert log_dir.is_dir()
    assert lg.level == "DEBUG"

    # 恢复为静默 sink
    logger.remove()
    logger.add(lambda msg: None)


def test_catch_logs_and_reraises():
    captured = []
    sink_id = logger.add(lambda msg: captured.append(str(msg)))

    @logs.catch(msg="boom")
    def fail():
        raise RuntimeError("x")

    with pytest.raises(RuntimeError):
        fail()

    logger.remove(sink_id)
    assert any("[ERROR] fail: boom" in line for line in captured)


def test_catch_returns_result():
    @logs.catch(log_time=False)
    def ok(a, b=1):
        return a + b

    assert ok(1, b=2) == 3
