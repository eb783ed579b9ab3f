# portsim/backtest/report/tables.py
from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from portsim.backtest.report.base import Report
from portsim.backtest.result import BacktestResult
from portsim.utils.filesystem import FileSystem

FILL_COLUMNS = ["date", "strategy", "asset", "trade_action", "quantity", "fill_price", "commission"]


class TradesReport(Report):
    """fills -> CSV（无成交也写表头）"""

    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, result: BacktestResult) -> None:
        df = pd.DataFrame(result.fills, columns=FILL_COLUMNS)
        df.to_csv(self._path, index=False)


class EquityTableReport(Report):
    """date / equity / benchmark -> parquet（Decimal 以字符串保存，避免精度丢失）"""

    def __init__(self, output_path):
        self._path = Path(output_path)

    def render(self, result: BacktestResult) -> None:
        bench = result.benchmark_curve or [None] * len(result.dates)
        table = pa.table(
            {
                "date": pa.array(result.dates, type=pa.date32()),
                "equity": pa.array([str(v) for v in result.equity_curve], type=pa.string()),
                "benchmark": pa.array([None if v is None else str(v) for v in bench], type=pa.string()),
            }
        )
        pq.write_table(table, self._path)


class MarkdownReport(Report):
    def __init__(self, output_path, metrics: dict):
        self._path = Path(output_path)
        self._metrics = metrics

    def render(self, result: BacktestResult) -> None:
        start = result.dates[0] if result.dates else "-"
        end = result.dates[-1] if result.dates else "-"
        positions = json.dumps(result.positions, indent=2)
        cash = json.dumps(result.cash, indent=2)
        metrics = "\n".join(f"| {k} | {v} |" for k, v in self._metrics.items())

        text = f"""
# Backtest Report

- Name: {result.name}
- Base currency: {result.base_currency}
- Period: {start} -> {end} ({len(result.dates)} days)
- Strategies: {", ".join(result.strategies)}

## Metrics

| metric | value |
|---|---|
{metrics}

## Final positions

```
{positions}
```

## Final cash

```
{cash}
```
"""
        FileSystem.safe_write_text(self._path, text.strip() + "\n")
