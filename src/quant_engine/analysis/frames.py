"""
Candle normalisation shared by the candle-based routines.

Routines work on a DataFrame with ``Open, High, Low, Close, Volume``
columns.  Callers may hand over such a frame directly or any iterable of
candle records (mappings or pydantic ``Candle`` models with lowercase
keys); both end up in the same shape.
"""

from typing import Any, Iterable, Union

import numpy as np
import pandas as pd

OHLCV_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]

CandleInput = Union[pd.DataFrame, Iterable[Any]]


def _record(candle: Any) -> dict:
    if hasattr(candle, "model_dump"):
        return candle.model_dump()
    return dict(candle)


def candles_to_frame(candles: CandleInput) -> pd.DataFrame:
    """Return a float OHLCV DataFrame for *candles*.

    When every record carries a ``time`` it becomes the index; otherwise
    the index is positional.  Missing Open/High/Low are filled from Close
    and a missing Volume column is all-NaN.

    Raises:
        ValueError: if non-empty input has no close prices.
    """
    if isinstance(candles, pd.DataFrame):
        df = candles.rename(columns=lambda c: str(c).capitalize())
    else:
        records = [_record(c) for c in candles]
        df = pd.DataFrame.from_records(records) if records else pd.DataFrame()
        df = df.rename(columns=lambda c: str(c).capitalize())
        if "Time" in df.columns:
            if len(df) and df["Time"].notna().all():
                df = df.set_index("Time")
            else:
                df = df.drop(columns=["Time"])

    if df.empty:
        return pd.DataFrame(columns=pd.Index(OHLCV_COLUMNS), dtype=float)

    if "Close" not in df.columns:
        raise ValueError("candles require a close price")

    df = df.copy()
    close = df["Close"].astype(float)
    for col in ("Open", "High", "Low"):
        if col not in df.columns:
            df[col] = close
        else:
            df[col] = df[col].astype(float).fillna(close)
    if "Volume" not in df.columns:
        df["Volume"] = np.nan

    return df[OHLCV_COLUMNS].astype(float)


def frame_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Turn an OHLCV frame into lowercase candle records keyed by time."""
    frame = candles_to_frame(df)
    records = []
    for time, row in zip(frame.index, frame.itertuples(index=False)):
        records.append(
            {
                "time": time,
                "open": row.Open,
                "high": row.High,
                "low": row.Low,
                "close": row.Close,
                "volume": None if np.isnan(row.Volume) else row.Volume,
            }
        )
    return records
