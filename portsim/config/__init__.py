from .app_config import AppConfig
from .backtest_config import BacktestConfig, ComponentConfig, StrategyConfig
from .log_config import LogConfig

__all__ = ["AppConfig", "BacktestConfig", "ComponentConfig", "StrategyConfig", "LogConfig"]
