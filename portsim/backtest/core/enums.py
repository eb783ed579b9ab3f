from __future__ import annotations

from enum import Enum

from portsim.utils.errors import ConfigurationError
# portsim/backtest/core/enums.py


class CurrencyCode(str, Enum):
    """ISO 4217 codes accepted for cash balances, asset listings and FX rates."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CHF = "CHF"
    CAD = "CAD"
    AUD = "AUD"
    NZD = "NZD"
    CNY = "CNY"
    HKD = "HKD"
    SGD = "SGD"
    SEK = "SEK"
    NOK = "NOK"
    DKK = "DKK"
    KRW = "KRW"
    INR = "INR"
    BRL = "BRL"
    MXN = "MXN"
    ZAR = "ZAR"

    def __str__(self) -> str:
        return self.value


class OrderType(str, Enum):
    MARKET = "Market"
    LIMIT = "Limit"
    STOP = "Stop"
    STOP_LIMIT = "StopLimit"


class TradeAction(str, Enum):
    BUY = "Buy"
    SELL = "Sell"

    @property
    def sign(self) -> int:
        return 1 if self is TradeAction.BUY else -1


class SignalType(str, Enum):
    """
    Long / Underweight / Overweight / Rebalance -> hold +target
    Short                                      -> hold -target
    Exit                                       -> flat
    """

    LONG = "Long"
    SHORT = "Short"
    EXIT = "Exit"
    UNDERWEIGHT = "Underweight"
    OVERWEIGHT = "Overweight"
    REBALANCE = "Rebalance"

    @property
    def direction(self) -> int:
        if self is SignalType.SHORT:
            return -1
        if self is SignalType.EXIT:
            return 0
        return 1


class RebalancingFrequency(str, Enum):
    NEVER = "Never"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"

    @classmethod
    def parse(cls, value) -> "RebalancingFrequency":
        """Case-insensitive lookup by member name: 'monthly' -> MONTHLY."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        if key in cls.__members__:
            return cls[key]
        raise ConfigurationError(f"unsupported rebalancing frequency: {value!r}")


def parse_currency(value) -> CurrencyCode:
    """'usd' / 'USD' / CurrencyCode.USD -> CurrencyCode.USD"""
    if isinstance(value, CurrencyCode):
        return value
    try:
        return CurrencyCode(str(value).strip().upper())
    except ValueError:
        raise ConfigurationError(f"unsupported currency code: {value!r}") from None
