"""
Trend and band indicators over close prices.

  - linear_regression: OLS trend line over (index, value)
  - simple_moving_average: aligned SMA, NaN until the window fills
  - bollinger_bands: mean ± k·σ (population σ) per full window
  - z_score: how far a price sits from the mean of its history

Usage:
    from quant_engine.analysis.trend import bollinger_bands, linear_regression

    line = linear_regression(closes)
    bands = bollinger_bands(candles_df, period=20, std_dev=2.0)
"""

import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from quant_engine.analysis.frames import CandleInput, candles_to_frame


@dataclass(frozen=True)
class RegressionLine:
    slope: float
    intercept: float
    start_point: float  # fitted value at index 0
    end_point: float  # fitted value at index n - 1


@dataclass(frozen=True)
class SeriesPoint:
    time: Any
    value: float


@dataclass(frozen=True)
class BandPoint:
    time: Any
    upper: float
    basis: float
    lower: float


def linear_regression(series: Sequence[float]) -> Optional[RegressionLine]:
    """Ordinary least squares fit of *series* against its index.

    Returns None for fewer than two points.
    """
    y = np.asarray(series, dtype=np.float64)
    n = len(y)
    if n < 2:
        return None

    x = np.arange(n, dtype=np.float64)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = float(np.dot(x, y))
    sum_xx = float(np.dot(x, x))

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    return RegressionLine(
        slope=float(slope),
        intercept=float(intercept),
        start_point=float(intercept),
        end_point=float(slope * (n - 1) + intercept),
    )


def simple_moving_average(candles: CandleInput, period: int = 20) -> list[SeriesPoint]:
    """One SMA point per candle; positions before the window fills are NaN."""
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    df = candles_to_frame(candles)
    if df.empty:
        return []

    sma = df["Close"].rolling(window=period, min_periods=period).mean()
    return [SeriesPoint(time=t, value=float(v)) for t, v in zip(df.index, sma)]


def bollinger_bands(
    candles: CandleInput,
    period: int = 20,
    std_dev: float = 2.0,
) -> list[BandPoint]:
    """Bollinger bands for every full window of *period* closes.

    σ is the population standard deviation of the window.  Nothing is
    emitted until the first window fills.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    df = candles_to_frame(candles)
    if len(df) < period:
        return []

    rolling = df["Close"].rolling(window=period, min_periods=period)
    basis = rolling.mean()
    sigma = rolling.std(ddof=0).clip(lower=0.0)

    bands = []
    for i in range(period - 1, len(df)):
        mean = float(basis.iloc[i])
        width = float(sigma.iloc[i]) * std_dev
        bands.append(
            BandPoint(
                time=df.index[i],
                upper=mean + width,
                basis=mean,
                lower=mean - width,
            )
        )
    return bands


def z_score(current_price: float, history: Sequence[float]) -> float:
    """Population z-score of *current_price* against *history*.

    Empty history or zero deviation gives 0.
    """
    values = np.asarray(history, dtype=np.float64)
    if len(values) == 0:
        return 0.0
    std = float(values.std())
    if std == 0 or not math.isfinite(std):
        return 0.0
    return (float(current_price) - float(values.mean())) / std
