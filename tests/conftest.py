"""
Shared pytest fixtures for the quant engine test suite.

Provides synthetic OHLCV DataFrames and candle records so every test
module can exercise the routines and the dispatch path without any
market-data source.  Also provides ``StubContext``, a computation context
that records posted jobs and only answers when a test tells it to.
"""

import numpy as np
import pandas as pd
import pytest

from quant_engine.core.errors import EngineUnavailable
from quant_engine.services.engine.context import ComputationContext

# ---------------------------------------------------------------------------
# Synthetic data generators
# ---------------------------------------------------------------------------


def _make_timestamps(
    n: int, freq: str = "5min", start: str = "2025-01-06 03:00"
) -> pd.DatetimeIndex:
    """Generate a tz-aware (UTC) DatetimeIndex for *n* bars."""
    return pd.date_range(start=start, periods=n, freq=freq, tz="UTC")


def _random_walk_ohlcv(
    n: int = 500,
    start_price: float = 100.0,
    volatility: float = 0.005,
    freq: str = "5min",
    seed: int = 42,
    volume_mean: int = 1000,
) -> pd.DataFrame:
    """Build a realistic-ish OHLCV DataFrame via geometric random walk.

    Returns a DataFrame with columns: Open, High, Low, Close, Volume
    and a tz-aware DatetimeIndex.
    """
    rng = np.random.default_rng(seed)
    returns = rng.normal(0, volatility, n)
    close = start_price * np.exp(np.cumsum(returns))

    spread = close * rng.uniform(0.001, 0.004, n)
    high = close + rng.uniform(0, 1, n) * spread
    low = close - rng.uniform(0, 1, n) * spread
    opn = close + rng.uniform(-0.5, 0.5, n) * spread

    high = np.maximum(high, np.maximum(opn, close))
    low = np.minimum(low, np.minimum(opn, close))

    volume = rng.poisson(volume_mean, n).astype(float)
    volume = np.maximum(volume, 1)  # no zero-volume bars

    idx = _make_timestamps(n, freq=freq)

    return pd.DataFrame(
        {"Open": opn, "High": high, "Low": low, "Close": close, "Volume": volume},
        index=idx,
    )


def _candles(closes, opens=None, volumes=None) -> list[dict]:
    """Lowercase candle records built from explicit closes."""
    closes = list(closes)
    opens = list(opens) if opens is not None else closes
    volumes = list(volumes) if volumes is not None else [100.0] * len(closes)
    return [
        {"time": i, "open": o, "high": max(o, c), "low": min(o, c), "close": c, "volume": v}
        for i, (o, c, v) in enumerate(zip(opens, closes, volumes))
    ]


# ---------------------------------------------------------------------------
# Computation context doubles
# ---------------------------------------------------------------------------


class StubContext:
    """Context double: records posted jobs and never answers on its own."""

    def __init__(self, fail_start: bool = False):
        self.fail_start = fail_start
        self.on_response = None
        self.posted = []
        self.running = False

    def start(self) -> None:
        if self.fail_start:
            raise EngineUnavailable("stub refused to start")
        self.running = True

    def stop(self, timeout: float = 5.0) -> None:
        self.running = False

    def is_alive(self) -> bool:
        return self.running

    def post(self, request) -> None:
        self.posted.append(request)


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def ohlcv_df() -> pd.DataFrame:
    """Generic 500-bar random-walk OHLCV DataFrame."""
    return _random_walk_ohlcv(n=500, seed=42)


@pytest.fixture()
def short_ohlcv_df() -> pd.DataFrame:
    """50-bar DataFrame."""
    return _random_walk_ohlcv(n=50, seed=99, start_price=50.0)


@pytest.fixture()
def tiny_df() -> pd.DataFrame:
    """4-bar DataFrame (below every minimum-candle threshold)."""
    return _random_walk_ohlcv(n=4, seed=11, start_price=20.0)


@pytest.fixture()
def empty_df() -> pd.DataFrame:
    """Empty OHLCV DataFrame for guard-clause tests."""
    return pd.DataFrame(columns=pd.Index(["Open", "High", "Low", "Close", "Volume"]))


@pytest.fixture()
def stub_context() -> StubContext:
    return StubContext()


@pytest.fixture()
def context():
    """A real, running computation context with a small simulation cap."""
    ctx = ComputationContext(max_simulations=50, startup_timeout=5.0)
    ctx.start()
    yield ctx
    ctx.stop()
