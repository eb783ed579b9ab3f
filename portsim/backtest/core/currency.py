from __future__ import annotations

from datetime import date
from decimal import Decimal

from portsim.backtest.core.data import HistoricalFxRates, to_decimal
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.core.interfaces import CurrencyConversionService
# portsim/backtest/core/currency.py


class HistoricalCurrencyConversionService(CurrencyConversionService):
    """
    Converts through the base currency using the rate recorded for the
    exact date:

        amount_to = amount_from * rate(from) / rate(to)

    Missing rate -> FxRateNotFoundError (no fill-forward).
    """

    def __init__(self, fx_rates: HistoricalFxRates):
        self.fx_rates = fx_rates

    @property
    def base_currency(self) -> CurrencyCode:
        return self.fx_rates.base_currency

    def convert(
        self,
        d: date,
        amount: Decimal,
        from_currency: CurrencyCode,
        to_currency: CurrencyCode,
    ) -> Decimal:
        amount = to_decimal(amount)
        if from_currency == to_currency:
            return amount

        base_amount = amount * self.fx_rates.rate(d, from_currency)
        if to_currency == self.base_currency:
            return base_amount
        return base_amount / self.fx_rates.rate(d, to_currency)

    def to_base(self, d: date, amount: Decimal, currency: CurrencyCode) -> Decimal:
        return self.convert(d, amount, currency, self.base_currency)
