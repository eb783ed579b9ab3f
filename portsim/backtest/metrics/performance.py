from __future__ import annotations

from datetime import date
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

from portsim.utils.errors import CalculationError, InsufficientDataError

"""
{#!filepath: portsim/backtest/metrics/performance.py}

Performance statistics on daily series (pure numpy, float64).

Conventions:
- 252 trading days per year
- sample standard deviation (ddof=1)
- a ratio whose denominator is 0 is reported as 0.0
- fewer than 2 observations -> InsufficientDataError
"""

TRADING_DAYS = 252


def _as_array(values: Sequence) -> np.ndarray:
    arr = np.asarray([float(v) for v in values], dtype=float)
    if arr.size == 0:
        raise InsufficientDataError("empty series")
    return arr


def _require_sample(arr: np.ndarray) -> None:
    if arr.size < 2:
        raise InsufficientDataError(f"need at least 2 observations, got {arr.size}")


def _safe_ratio(num: float, den: float) -> float:
    return float(num / den) if den != 0 else 0.0


# ----------------------------------------------------------------------
# returns
# ----------------------------------------------------------------------
def daily_returns(equity: Sequence) -> np.ndarray:
    eq = _as_array(equity)
    _require_sample(eq)
    zero = np.flatnonzero(eq[:-1] == 0)
    if zero.size:
        raise CalculationError(
            f"equity curve is zero at position {int(zero[0])}; daily return undefined"
        )
    return eq[1:] / eq[:-1] - 1.0


def equity_from_returns(returns: Sequence, initial: float = 10_000.0) -> np.ndarray:
    r = _as_array(returns)
    if np.any(r < -1.0):
        idx = int(np.flatnonzero(r < -1.0)[0])
        raise CalculationError(f"invalid daily return at index {idx}: {r[idx]}")
    return initial * np.concatenate([[1.0], np.cumprod(1.0 + r)])


def annualized_return(returns: Sequence, days: int = TRADING_DAYS) -> float:
    r = _as_array(returns)
    cumulative = float(np.prod(1.0 + r))
    return cumulative ** (days / r.size) - 1.0


def cagr(returns: Sequence, days: float = TRADING_DAYS) -> float:
    """Compound annual growth rate, in percent."""
    r = _as_array(returns)
    _require_sample(r)
    years = r.size / days
    if years == 0:
        raise CalculationError("total number of years must be > 0 for CAGR")
    cumulative = float(np.prod(1.0 + r))
    try:
        return (cumulative ** (1.0 / years) - 1.0) * 100.0
    except OverflowError as e:
        raise CalculationError("CAGR overflow") from e


# ----------------------------------------------------------------------
# risk
# ----------------------------------------------------------------------
def volatility(returns: Sequence) -> float:
    r = _as_array(returns)
    _require_sample(r)
    return float(np.std(r, ddof=1))


def annualized_volatility(returns: Sequence, days: int = TRADING_DAYS) -> float:
    return volatility(returns) * float(np.sqrt(days))


def downside_deviation(returns: Sequence, risk_free: float = 0.0) -> float:
    r = _as_array(returns)
    _require_sample(r)
    downside = np.minimum(0.0, r - risk_free)
    return float(np.sqrt(np.mean(downside ** 2)))


def sharpe_ratio(returns: Sequence, risk_free: float = 0.0) -> float:
    r = _as_array(returns)
    _require_sample(r)
    return _safe_ratio(np.mean(r) - risk_free, np.std(r, ddof=1))


def annualized_sharpe_ratio(returns: Sequence, risk_free: float = 0.0, days: int = TRADING_DAYS) -> float:
    return sharpe_ratio(returns, risk_free) * float(np.sqrt(days))


def sortino_ratio(returns: Sequence, risk_free: float = 0.0) -> float:
    r = _as_array(returns)
    _require_sample(r)
    return _safe_ratio(np.mean(r) - risk_free, downside_deviation(r, risk_free))


def annualized_sortino_ratio(returns: Sequence, risk_free: float = 0.0, days: int = TRADING_DAYS) -> float:
    return sortino_ratio(returns, risk_free) * float(np.sqrt(days))


# ----------------------------------------------------------------------
# relative to benchmark
# ----------------------------------------------------------------------
def _pair(returns: Sequence, benchmark: Sequence) -> Tuple[np.ndarray, np.ndarray]:
    r, b = _as_array(returns), _as_array(benchmark)
    _require_sample(r)
    _require_sample(b)
    if r.size != b.size:
        raise InsufficientDataError(
            f"returns and benchmark returns differ in length: {r.size} != {b.size}"
        )
    return r, b


def beta(returns: Sequence, benchmark: Sequence) -> float:
    r, b = _pair(returns, benchmark)
    cov = float(np.sum((r - r.mean()) * (b - b.mean())) / (r.size - 1))
    var = float(np.var(b, ddof=1))
    return _safe_ratio(cov, var)


def alpha(returns: Sequence, benchmark: Sequence, risk_free: float = 0.0) -> float:
    r, b = _pair(returns, benchmark)
    return float(r.mean() - risk_free - beta(r, b) * (b.mean() - risk_free))


def information_ratio(returns: Sequence, benchmark: Sequence) -> float:
    r, b = _pair(returns, benchmark)
    active = r - b
    return _safe_ratio(active.mean(), np.std(active, ddof=1))


# ----------------------------------------------------------------------
# drawdowns
# ----------------------------------------------------------------------
def drawdowns(equity: Mapping[date, object]) -> Tuple[Dict[date, float], float, int]:
    """
    Returns (drawdown per date, max drawdown <= 0, max drawdown duration in days).

    Duration counts calendar days from the last peak to the current date,
    inclusive.
    """
    if len(equity) < 2:
        raise InsufficientDataError(f"need at least 2 observations, got {len(equity)}")

    out: Dict[date, float] = {}
    peak = 0.0
    peak_date = None
    max_dd = 0.0
    max_duration = 0

    for d, v in equity.items():
        value = float(v)
        if value > peak:
            peak = value
            peak_date = d
            dd = 0.0
        else:
            duration = (d - peak_date).days + 1 if peak_date is not None else 0
            max_duration = max(max_duration, duration)
            dd = value / peak - 1.0 if peak > 0 else 0.0
        max_dd = min(max_dd, dd)
        out[d] = dd

    return out, max_dd, max_duration
