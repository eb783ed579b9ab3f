from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterator, Optional, Set, Tuple

from portsim import logs
from portsim.backtest.core.enums import CurrencyCode
from portsim.backtest.core.events import MarketEvent
from portsim.backtest.core.interfaces import MarketDataFetcher
from portsim.backtest.core.portfolio import Portfolio
from portsim.backtest.metrics.tearsheet import Tearsheet
from portsim.utils.datetime_utils import DateLike, DateTimeUtils

"""
{#!filepath: portsim/backtest/backtest.py}

Backtest driver (FINAL)

Role:
- Merge the fetcher's bar stream and fx stream by date.
- Feed one MarketEvent per trading day to the portfolio (and benchmark).
- Analyse the resulting equity curve(s) into a Tearsheet.

Invariants:
- Single-threaded; day d is fully processed before day d+1.
- Days without any bar are skipped (no event, no equity point).
"""


class Backtest:
    def __init__(
        self,
        portfolio: Portfolio,
        fetcher: MarketDataFetcher,
        benchmark: Optional[Portfolio] = None,
        trading_calendar: Optional[Set[date]] = None,
    ):
        self.portfolio = portfolio
        self.fetcher = fetcher
        self.benchmark = benchmark
        self.trading_calendar = (
            DateTimeUtils.to_calendar(trading_calendar) if trading_calendar is not None else None
        )
        self.n_days = 0

    # --------------------------------------------------
    def _symbols(self) -> list:
        symbols = dict.fromkeys(self.portfolio.assets)
        if self.benchmark is not None:
            symbols.update(dict.fromkeys(self.benchmark.assets))
        return list(symbols)

    def _currencies(self) -> list:
        ccys = dict.fromkeys(self.portfolio.currencies)
        if self.benchmark is not None:
            ccys.update(dict.fromkeys(self.benchmark.currencies))
        return list(ccys)

    def events(self, start: Optional[DateLike] = None, end: Optional[DateLike] = None) -> Iterator[MarketEvent]:
        """Date-merged MarketEvents within [start, end] (and the calendar)."""
        start_d = DateTimeUtils.parse_optional(start)
        end_d = DateTimeUtils.parse_optional(end)

        fx_iter = iter(self.fetcher.fetch_fx_rates(self._currencies()))
        pending_fx: Optional[Tuple[date, Dict[CurrencyCode, Decimal]]] = next(fx_iter, None)

        for d, bars in self.fetcher.fetch_market_data(self._symbols()):
            # fx 流与行情流按日期对齐（fx 早于当前日期的部分丢弃）
            while pending_fx is not None and pending_fx[0] < d:
                pending_fx = next(fx_iter, None)
            fx = pending_fx[1] if pending_fx is not None and pending_fx[0] == d else {}

            if end_d is not None and d > end_d:
                break
            if not DateTimeUtils.in_range(d, start_d, end_d):
                continue
            if self.trading_calendar is not None and d not in self.trading_calendar:
                continue

            yield MarketEvent(date=d, bars=bars, fx_rates=fx)

    def run(self, start: Optional[DateLike] = None, end: Optional[DateLike] = None) -> Tearsheet:
        logs.info(f"[Backtest] ====== START {self.portfolio.name} {start} -> {end} ======")

        for event in self.events(start, end):
            self.portfolio.handle_event(event)
            if self.benchmark is not None:
                self.benchmark.handle_event(event)
            self.n_days += 1

        logs.info(
            f"[Backtest] replayed {self.n_days} days, fills={len(self.portfolio.fills)} "
            f"final_equity={self.portfolio.equity_curve.last_value}"
        )
        tearsheet = self.analyze_performance_metrics()
        logs.info(f"[Backtest] ====== DONE {self.portfolio.name} ======")
        return tearsheet

    def analyze_performance_metrics(self) -> Tearsheet:
        benchmark = self.benchmark.equity_curve.as_mapping() if self.benchmark is not None else None
        return Tearsheet.from_equity(self.portfolio.equity_curve.as_mapping(), benchmark)
