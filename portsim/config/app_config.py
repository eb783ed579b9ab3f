#!filepath: portsim/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from .backtest_config import BacktestConfig
from .log_config import LogConfig
from portsim.utils.errors import ConfigurationError


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    portsim/config/app_config.py → portsim/config → portsim → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(__file__), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = LogConfig()
    backtest: BacktestConfig

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 portsim/config/base.yml
        - 不依赖当前工作目录
        - PORTSIM_OUTPUT_DIR / PORTSIM_LOG_LEVEL 覆盖 YAML
        """
        root = project_root()

        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(root, ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise ConfigurationError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) 环境变量覆盖
        output_dir = os.getenv("PORTSIM_OUTPUT_DIR")
        if output_dir and isinstance(raw.get("backtest"), dict):
            raw["backtest"]["output_dir"] = output_dir

        log_level = os.getenv("PORTSIM_LOG_LEVEL")
        if log_level:
            raw.setdefault("log", {})["level"] = log_level

        # 相对路径以配置文件所在目录为基准
        cls._resolve_paths(raw, os.path.dirname(os.path.abspath(path)))

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"invalid config {path}:\n{e}") from e

    @staticmethod
    def _resolve_paths(raw: dict, base_dir: str) -> None:
        bt = raw.get("backtest")
        if not isinstance(bt, dict):
            return
        for key in ("market_data_path", "fx_rates_path"):
            p = bt.get(key)
            if p and not os.path.isabs(p):
                bt[key] = os.path.normpath(os.path.join(base_dir, p))
