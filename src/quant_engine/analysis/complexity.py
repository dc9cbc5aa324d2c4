"""
Series complexity measures.

  - Fractal Dimension Index (Sevcik): ~1.0 for a straight line, ~1.5 for a
    random walk, approaching 2.0 for noise that fills the plane.
  - Shannon entropy of directional changes: 0 when every move goes the
    same way, 1 when ups and downs are equally likely.

Usage:
    from quant_engine.analysis.complexity import fractal_dimension, market_entropy

    fdi = fractal_dimension(closes)
    h = market_entropy(closes)
"""

import logging
import math
from typing import Sequence

import numpy as np

logger = logging.getLogger("complexity")

FDI_MIN_POINTS = 30
FDI_DEFAULT = 1.5
FDI_FLAT = 1.0


def fractal_dimension(series: Sequence[float]) -> float:
    """Sevcik fractal dimension of *series*.

    Both axes are normalised to [0, 1] and the curve length ``L`` of the
    normalised polyline gives ``1 + (ln L + ln 2) / ln(2 (n - 1))``.

    Returns 1.5 for fewer than 30 points (or any non-finite value) and
    1.0 for a flat series.
    """
    values = np.asarray(series, dtype=np.float64)
    n = len(values)
    if n < FDI_MIN_POINTS:
        return FDI_DEFAULT
    if not np.all(np.isfinite(values)):
        logger.debug("fractal_dimension: non-finite input, returning default")
        return FDI_DEFAULT

    lo = float(values.min())
    hi = float(values.max())
    if hi == lo:
        return FDI_FLAT

    y = (values - lo) / (hi - lo)
    dx = 1.0 / (n - 1)
    length = float(np.sum(np.sqrt(np.diff(y) ** 2 + dx * dx)))

    return 1.0 + (math.log(length) + math.log(2.0)) / math.log(2.0 * (n - 1))


def direction_symbols(series: Sequence[float]) -> np.ndarray:
    """+1 for each rise, -1 for each fall or unchanged step."""
    values = np.asarray(series, dtype=np.float64)
    if len(values) < 2:
        return np.array([], dtype=np.int8)
    return np.where(np.diff(values) > 0, 1, -1).astype(np.int8)


def market_entropy(series: Sequence[float]) -> float:
    """Shannon entropy (bits) of the up/down symbol sequence, in [0, 1]."""
    symbols = direction_symbols(series)
    n = len(symbols)
    if n == 0:
        return 0.0

    entropy = 0.0
    for sym in (1, -1):
        p = float(np.count_nonzero(symbols == sym)) / n
        if p > 0:
            entropy -= p * math.log2(p)
    # p log p rounding can push a fair split a hair outside the range
    return min(max(entropy, 0.0), 1.0)
