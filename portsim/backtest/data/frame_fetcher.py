from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, Iterator, Optional, Tuple

import pandas as pd

from portsim import logs
from portsim.backtest.core.data import MarketData, to_decimal
from portsim.backtest.core.enums import CurrencyCode, parse_currency
from portsim.backtest.core.interfaces import MarketDataFetcher
from portsim.utils.datetime_utils import DateTimeUtils
from portsim.utils.errors import MarketDataRetrievalError

"""
{#!filepath: portsim/backtest/data/frame_fetcher.py}

FrameMarketDataFetcher (FINAL)

Long-format tables:

    bars : date, asset, open, high, low, close,
           [adjusted_close], [volume], [dividend_per_share], [split_coefficient]
    fx   : date, currency, rate

Contract:
- Yields (date, {key -> value}) in ascending date order.
- Restartable: every call re-reads the in-memory frame.
- Any parse failure -> MarketDataRetrievalError (never a partial day).
"""

BAR_REQUIRED = ("date", "asset", "open", "high", "low", "close")
BAR_DEFAULTS = {
    "adjusted_close": None,  # -> close
    "volume": "0",
    "dividend_per_share": "0",
    "split_coefficient": "1",
}
FX_REQUIRED = ("date", "currency", "rate")


def read_table(path: str | Path) -> pd.DataFrame:
    """CSV (all columns as text, Decimal-safe) or parquet via pyarrow."""
    p = Path(path)
    if not p.exists():
        raise MarketDataRetrievalError(f"data file not found: {p}")

    try:
        if p.suffix.lower() in (".parquet", ".pq"):
            return pd.read_parquet(p, engine="pyarrow")
        return pd.read_csv(p, dtype=str, keep_default_na=False)
    except (OSError, ValueError) as e:
        raise MarketDataRetrievalError(f"cannot read {p}: {e}") from e


def _check_columns(df: pd.DataFrame, required: Tuple[str, ...], what: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise MarketDataRetrievalError(f"{what} table is missing columns: {missing}")


class FrameMarketDataFetcher(MarketDataFetcher):
    def __init__(self, bars: pd.DataFrame, fx_rates: Optional[pd.DataFrame] = None):
        _check_columns(bars, BAR_REQUIRED, "market data")
        if fx_rates is not None:
            _check_columns(fx_rates, FX_REQUIRED, "fx rate")

        self._bars = bars.copy()
        self._fx = fx_rates.copy() if fx_rates is not None else None

        # 统一 date 列为 datetime.date，便于排序 / 过滤
        self._bars["date"] = self._parse_dates(self._bars["date"], "market data")
        if self._fx is not None:
            self._fx["date"] = self._parse_dates(self._fx["date"], "fx rate")

    @classmethod
    def from_files(
        cls,
        market_data_path: str | Path,
        fx_rates_path: Optional[str | Path] = None,
    ) -> "FrameMarketDataFetcher":
        bars = read_table(market_data_path)
        fx = read_table(fx_rates_path) if fx_rates_path else None
        logs.info(
            f"[FrameFetcher] loaded {len(bars)} bars from {market_data_path}"
            + (f", {len(fx)} fx rows from {fx_rates_path}" if fx is not None else "")
        )
        return cls(bars, fx)

    @staticmethod
    def _parse_dates(col: pd.Series, what: str) -> pd.Series:
        try:
            return col.map(DateTimeUtils.parse_date)
        except ValueError as e:
            raise MarketDataRetrievalError(f"{what} table has an invalid date: {e}") from e

    # --------------------------------------------------
    @property
    def symbols(self) -> list:
        return sorted(self._bars["asset"].astype(str).unique())

    def fetch_market_data(self, symbols: Iterable[str]) -> Iterator[Tuple[date, Dict[str, MarketData]]]:
        wanted = set(symbols)
        df = self._bars[self._bars["asset"].astype(str).isin(wanted)]
        df = df.sort_values(["date", "asset"], kind="stable")

        for d, day in df.groupby("date", sort=True):
            yield d, {str(row["asset"]): self._to_bar(row, d) for _, row in day.iterrows()}

    def fetch_fx_rates(
        self, currencies: Iterable[CurrencyCode]
    ) -> Iterator[Tuple[date, Dict[CurrencyCode, Decimal]]]:
        if self._fx is None:
            return

        wanted = {parse_currency(c).value for c in currencies}
        df = self._fx.copy()
        df["currency"] = df["currency"].astype(str).str.strip().str.upper()
        df = df[df["currency"].isin(wanted)]

        for d, day in df.groupby("date", sort=True):
            try:
                yield d, {CurrencyCode(row["currency"]): to_decimal(row["rate"]) for _, row in day.iterrows()}
            except ArithmeticError as e:
                raise MarketDataRetrievalError(f"invalid fx rate on {d}: {e}") from e

    # --------------------------------------------------
    @staticmethod
    def _cell(row: pd.Series, name: str):
        if name in row.index:
            v = row[name]
            if v is not None and not (isinstance(v, str) and v.strip() == "") and not pd.isna(v):
                return v
        return BAR_DEFAULTS[name]

    def _to_bar(self, row: pd.Series, d: date) -> MarketData:
        try:
            close = to_decimal(row["close"])
            adj = self._cell(row, "adjusted_close")
            return MarketData(
                open=to_decimal(row["open"]),
                high=to_decimal(row["high"]),
                low=to_decimal(row["low"]),
                close=close,
                adjusted_close=close if adj is None else to_decimal(adj),
                volume=int(to_decimal(self._cell(row, "volume"))),
                dividend_per_share=to_decimal(self._cell(row, "dividend_per_share")),
                split_coefficient=to_decimal(self._cell(row, "split_coefficient")),
            )
        except (ArithmeticError, ValueError) as e:
            raise MarketDataRetrievalError(f"invalid bar for {row['asset']} on {d}: {e}") from e
