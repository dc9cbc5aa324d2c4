"""
Close-based Volume Profile.

Each candle's whole volume is assigned to the price bin holding its close.
Bins are equal-width and span [min close, max close]; the bin with the most
accumulated volume is the Point of Control (POC).

Usage:
    from quant_engine.analysis.volume_profile import compute_volume_profile

    bins = compute_volume_profile(df, bins_count=24)
    poc = next(b for b in bins if b.is_poc)
"""

import logging
from dataclasses import dataclass

import numpy as np

from quant_engine.analysis.frames import CandleInput, candles_to_frame

logger = logging.getLogger("volume_profile")


@dataclass
class VolumeBin:
    price: float  # lower edge of the bin
    volume: float
    is_poc: bool = False


def compute_volume_profile(
    candles: CandleInput,
    bins_count: int = 24,
) -> list[VolumeBin]:
    """Bucket candle volume into *bins_count* equal-width close-price bins.

    Args:
        candles: OHLCV frame or candle records.
        bins_count: Number of bins.

    Returns:
        ``bins_count`` bins ordered by price, exactly one flagged as POC,
        or an empty list when there are no candles.  A candle without a
        volume counts as one unit.  When every close is identical all
        volume lands in the first bin.
    """
    df = candles_to_frame(candles)
    if df.empty or bins_count < 1:
        return []

    closes = df["Close"].to_numpy(dtype=np.float64)
    volumes = df["Volume"].fillna(1.0).to_numpy(dtype=np.float64)

    valid = np.isfinite(closes)
    if not valid.any():
        return []
    if not valid.all():
        logger.debug("volume_profile: dropping %d non-finite closes", int((~valid).sum()))
        closes = closes[valid]
        volumes = volumes[valid]

    price_min = float(closes.min())
    price_max = float(closes.max())
    bin_size = (price_max - price_min) / bins_count

    if bin_size > 0:
        idx = np.floor((closes - price_min) / bin_size).astype(np.int64)
        idx = np.clip(idx, 0, bins_count - 1)
    else:
        idx = np.zeros(len(closes), dtype=np.int64)

    bin_volumes = np.bincount(idx, weights=volumes, minlength=bins_count)
    poc_idx = int(np.argmax(bin_volumes))

    return [
        VolumeBin(
            price=price_min + bin_size * i,
            volume=float(bin_volumes[i]),
            is_poc=(i == poc_idx),
        )
        for i in range(bins_count)
    ]
