from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from portsim import logs
from portsim.backtest.core.data import MarketData
from portsim.backtest.core.portfolio import Portfolio
from portsim.utils.errors import ConfigurationError, UnknownStrategyError

"""
{#!filepath: portsim/backtest/snapshot.py}

PortfolioSnapshot (FINAL)

Serialisable image of a portfolio between two days:
  book (positions / cash / target capital), strategy-internal state,
  equity curve, market history, fx history.

Contract:
- capture() never mutates the portfolio.
- restore() only accepts a freshly built portfolio with the same
  strategy names (same configuration).
- Resuming a restored portfolio yields the same equity curve as an
  uninterrupted run.
"""


class BarModel(BaseModel):
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    adjusted_close: Decimal
    volume: int
    dividend_per_share: Decimal = Decimal("0")
    split_coefficient: Decimal = Decimal("1")

    @classmethod
    def of(cls, bar: MarketData) -> "BarModel":
        return cls(
            open=bar.open,
            high=bar.high,
            low=bar.low,
            close=bar.close,
            adjusted_close=bar.adjusted_close,
            volume=bar.volume,
            dividend_per_share=bar.dividend_per_share,
            split_coefficient=bar.split_coefficient,
        )

    def to_bar(self) -> MarketData:
        return MarketData(**self.model_dump())


class StrategySnapshot(BaseModel):
    name: str
    positions: Dict[str, int] = Field(default_factory=dict)
    cash: Dict[str, Decimal] = Field(default_factory=dict)
    target_capital: Dict[str, Decimal] = Field(default_factory=dict)
    state: Dict[str, Any] = Field(default_factory=dict)


class PortfolioSnapshot(BaseModel):
    name: str
    base_currency: str
    strategies: List[StrategySnapshot]
    equity_curve: Dict[date, Decimal] = Field(default_factory=dict)
    market_data: Dict[date, Dict[str, BarModel]] = Field(default_factory=dict)
    fx_rates: Dict[date, Dict[str, Decimal]] = Field(default_factory=dict)

    # --------------------------------------------------
    @classmethod
    def capture(cls, portfolio: Portfolio) -> "PortfolioSnapshot":
        return cls(
            name=portfolio.name,
            base_currency=portfolio.base_currency.value,
            strategies=[
                StrategySnapshot(
                    name=s.name,
                    positions=dict(s.positions),
                    cash={c.value: v for c, v in s.cash.items()},
                    target_capital={c.value: v for c, v in s.target_capital.items()},
                    state=s.export_state(),
                )
                for s in portfolio.strategies
            ],
            equity_curve=dict(portfolio.equity_curve.as_mapping()),
            market_data={
                d: {a: BarModel.of(b) for a, b in bars.items()} for d, bars in portfolio.market_data.items()
            },
            fx_rates={
                d: {c.value: r for c, r in rates.items()} for d, rates in portfolio.fx_rates.items()
            },
        )

    def restore(self, portfolio: Portfolio) -> Portfolio:
        if portfolio.base_currency.value != self.base_currency:
            raise ConfigurationError(
                f"snapshot base {self.base_currency} != portfolio base {portfolio.base_currency.value}"
            )
        if len(portfolio.market_data) or len(portfolio.equity_curve):
            raise ConfigurationError(f"[{portfolio.name}] restore needs a freshly built portfolio")

        snap_names = {s.name for s in self.strategies}
        for s in portfolio.strategies:
            if s.name not in snap_names:
                raise UnknownStrategyError(s.name)

        for snap in self.strategies:
            strategy = portfolio.get_strategy(snap.name)
            strategy.restore_book(snap.positions, snap.cash, snap.target_capital)
            strategy.restore_state(snap.state)

        for d in sorted(self.market_data):
            portfolio.market_data.append(d, {a: b.to_bar() for a, b in self.market_data[d].items()})
        for d in sorted(self.fx_rates):
            portfolio.fx_rates.append(d, self.fx_rates[d])
        for d in sorted(self.equity_curve):
            portfolio.equity_curve.record(d, self.equity_curve[d])

        logs.info(
            f"[Snapshot] restored {portfolio.name}: {len(self.market_data)} days, "
            f"last equity date={portfolio.equity_curve.last_date}"
        )
        return portfolio

    # --------------------------------------------------
    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, text: str) -> "PortfolioSnapshot":
        return cls.model_validate_json(text)
