#!filepath: portsim/utils/datetime_utils.py
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

import pandas as pd

DateLike = Union[str, date, datetime, pd.Timestamp]


class DateTimeUtils:
    """日线回测用到的日期工具（无时区，无时间部分）。"""

    # ================================================================
    # parse
    # ================================================================
    @classmethod
    def parse_date(cls, value: DateLike) -> date:
        """
        支持：
            "2024-01-02" / "2024/01/02" / "20240102"
            datetime / pandas.Timestamp / date
        """
        if isinstance(value, pd.Timestamp):
            return value.date()
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        s = str(value).strip()
        for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y%m%d"):
            try:
                return datetime.strptime(s[:10] if "-" in s or "/" in s else s, fmt).date()
            except ValueError:
                continue

        raise ValueError(f"cannot parse date: {value!r}")

    @classmethod
    def parse_optional(cls, value: Optional[DateLike]) -> Optional[date]:
        return None if value is None else cls.parse_date(value)

    # ================================================================
    # calendar arithmetic
    # ================================================================
    @classmethod
    def add_days(cls, d: date, days: int) -> date:
        return d + timedelta(days=days)

    @classmethod
    def add_months(cls, d: date, months: int) -> date:
        """月末对齐：2024-01-31 + 1 month -> 2024-02-29"""
        month_index = d.month - 1 + months
        year = d.year + month_index // 12
        month = month_index % 12 + 1
        day = min(d.day, calendar.monthrange(year, month)[1])
        return date(year, month, day)

    @classmethod
    def add_years(cls, d: date, years: int) -> date:
        return cls.add_months(d, 12 * years)

    # ================================================================
    # ranges
    # ================================================================
    @classmethod
    def in_range(cls, d: date, start: Optional[date], end: Optional[date]) -> bool:
        if start is not None and d < start:
            return False
        if end is not None and d > end:
            return False
        return True

    @classmethod
    def business_days(cls, start: DateLike, end: DateLike) -> List[date]:
        return [ts.date() for ts in pd.bdate_range(cls.parse_date(start), cls.parse_date(end))]

    @classmethod
    def to_calendar(cls, days: Iterable[DateLike]) -> frozenset:
        return frozenset(cls.parse_date(d) for d in days)
