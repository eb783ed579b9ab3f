#!filepath: portsim/utils/errors.py
"""
portsim 错误体系

所有异常都继承 PortsimError，CLI 只捕获这一个根类：
打印一行错误信息，不输出 traceback。

    PortsimError
    ├── ConfigurationError        (ValueError)
    │   ├── UnknownStrategyError
    │   ├── AssetNotConfiguredError
    │   ├── UnsupportedEventError
    │   └── UnknownComponentError
    ├── DataAvailabilityError     (LookupError)
    │   ├── MarketDataNotFoundError
    │   ├── FxRateNotFoundError
    │   └── MarketDataRetrievalError
    ├── TemporalOrderError        (ValueError)
    ├── InvalidValueError         (ValueError)
    │   └── OrderValidationError
    ├── InsufficientDataError     (ValueError)
    └── CalculationError          (ArithmeticError)
"""


class PortsimError(Exception):
    """Root of every error raised by portsim."""


# ----------------------------------------------------------------------
# Configuration
# ----------------------------------------------------------------------
class ConfigurationError(PortsimError, ValueError):
    """
    Raised for invalid user-provided setup (strategy names, weights,
    currencies, component types). Should NOT print traceback.
    """


class UnknownStrategyError(ConfigurationError):
    def __init__(self, strategy_name: str):
        super().__init__(f"unknown strategy: {strategy_name!r}")
        self.strategy_name = strategy_name


class AssetNotConfiguredError(ConfigurationError):
    def __init__(self, asset: str, what: str = "weight"):
        super().__init__(f"asset {asset!r} has no configured {what}")
        self.asset = asset
        self.what = what


class UnsupportedEventError(ConfigurationError):
    pass


class UnknownComponentError(ConfigurationError):
    pass


# ----------------------------------------------------------------------
# Data availability
# ----------------------------------------------------------------------
class DataAvailabilityError(PortsimError, LookupError):
    pass


class MarketDataNotFoundError(DataAvailabilityError):
    def __init__(self, date, asset: str):
        super().__init__(f"no market data for {asset!r} on {date}")
        self.date = date
        self.asset = asset


class FxRateNotFoundError(DataAvailabilityError):
    def __init__(self, date, currency):
        super().__init__(f"no fx rate for {currency} on {date}")
        self.date = date
        self.currency = currency


class MarketDataRetrievalError(DataAvailabilityError):
    pass


# ----------------------------------------------------------------------
# Sequencing / values
# ----------------------------------------------------------------------
class TemporalOrderError(PortsimError, ValueError):
    def __init__(self, date, last_date, what: str = "event"):
        super().__init__(f"{what} date {date} is earlier than last recorded date {last_date}")
        self.date = date
        self.last_date = last_date


class InvalidValueError(PortsimError, ValueError):
    pass


class OrderValidationError(InvalidValueError):
    pass


# ----------------------------------------------------------------------
# Analytics
# ----------------------------------------------------------------------
class InsufficientDataError(PortsimError, ValueError):
    pass


class CalculationError(PortsimError, ArithmeticError):
    pass
