"""
Order-flow heuristics from OHLCV candles.

No Level 2 or tape data reaches the engine, so these are display-grade
approximations:

  - order_heatmap: SYNTHETIC bid/ask walls around a price.  Sizes and
    intensities are random draws, not read from any order book.
  - cumulative_delta: ±10% of each candle's volume by candle direction.
    The divergence flag is a random placeholder signal.
  - institutional_conviction: 5-candle price trend vs. delta sign.
  - exhaustion_index: z-score stretch mapped onto a 0-100 score.

Pass ``seed`` to the randomised routines for reproducible output.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from quant_engine.analysis.frames import CandleInput, candles_to_frame

logger = logging.getLogger("order_flow")

HEATMAP_LEVELS = 10
HEATMAP_STEP_PCT = 0.005
HEATMAP_MAX_SIZE = 100.0

DELTA_VOLUME_FRACTION = 0.1
DIVERGENCE_THRESHOLD = 0.7

CONVICTION_LOOKBACK = 5
EXHAUSTION_MIN_CANDLES = 10


@dataclass(frozen=True)
class OrderWall:
    price: float
    size: float
    side: str  # "BID" or "ASK"
    intensity: float  # 0 to 1


@dataclass(frozen=True)
class DeltaReading:
    current_delta: float
    divergence: bool


@dataclass(frozen=True)
class ConvictionReading:
    type: str  # "ACCUMULATION", "DISTRIBUTION" or "NEUTRAL"
    confidence: int


@dataclass(frozen=True)
class ExhaustionReading:
    score: float
    label: str


def order_heatmap(
    current_price: float,
    volatility: float = 0.02,
    seed: Optional[int] = None,
) -> list[OrderWall]:
    """Synthesize symmetric bid/ask walls around *current_price*.

    Ten walls each side at 0.5% steps.  Each wall gets a uniform random
    size in [0, 100) and intensity in [0, 1).  Output is sorted by price,
    highest first.

    *volatility* is accepted for call-site compatibility; the illustrative
    model does not scale with it.
    """
    rng = np.random.default_rng(seed)
    step = current_price * HEATMAP_STEP_PCT

    walls = []
    for i in range(1, HEATMAP_LEVELS + 1):
        walls.append(
            OrderWall(
                price=current_price - step * i,
                size=float(rng.random() * HEATMAP_MAX_SIZE),
                side="BID",
                intensity=float(rng.random()),
            )
        )
        walls.append(
            OrderWall(
                price=current_price + step * i,
                size=float(rng.random() * HEATMAP_MAX_SIZE),
                side="ASK",
                intensity=float(rng.random()),
            )
        )

    walls.sort(key=lambda w: w.price, reverse=True)
    return walls


def cumulative_delta(
    candles: CandleInput,
    seed: Optional[int] = None,
) -> DeltaReading:
    """Running buy-vs-sell estimate over *candles*.

    A candle closing at or above its open adds 10% of its volume, one
    closing below subtracts it.  Missing volume counts as zero.
    """
    df = candles_to_frame(candles)
    rng = np.random.default_rng(seed)

    if df.empty:
        delta = 0.0
    else:
        volume = df["Volume"].fillna(0.0)
        direction = np.where(df["Close"] >= df["Open"], 1.0, -1.0)
        delta = float((volume * direction * DELTA_VOLUME_FRACTION).sum())

    return DeltaReading(
        current_delta=delta,
        divergence=bool(rng.random() > DIVERGENCE_THRESHOLD),
    )


def institutional_conviction(candles: CandleInput, delta: float) -> ConvictionReading:
    """Classify the last five candles against the sign of *delta*.

    Price flat/down with positive delta is accumulation; price up with
    negative delta is distribution; anything else is neutral.
    """
    df = candles_to_frame(candles)
    if len(df) < CONVICTION_LOOKBACK:
        return ConvictionReading(type="NEUTRAL", confidence=50)

    last = df.iloc[-CONVICTION_LOOKBACK:]
    price_trend = float(last["Close"].iloc[-1] - last["Open"].iloc[0])

    if price_trend <= 0 and delta > 0:
        return ConvictionReading(type="ACCUMULATION", confidence=85)
    if price_trend > 0 and delta < 0:
        return ConvictionReading(type="DISTRIBUTION", confidence=88)
    return ConvictionReading(type="NEUTRAL", confidence=45)


def _exhaustion_label(score: float) -> str:
    if score > 80:
        return "CRITICAL_EXHAUSTION"
    if score > 65:
        return "OVEREXTENDED"
    if score < 35:
        return "ACCUMULATION"
    return "HEALTHY"


def exhaustion_index(candles: CandleInput, z_score: float) -> ExhaustionReading:
    """Map a price z-score to a 0-100 exhaustion score.

    ``score = 50 + 12·|z|`` clamped to [0, 100].  Fewer than ten candles
    give the neutral reading (50, "STABLE").
    """
    df = candles_to_frame(candles)
    if len(df) < EXHAUSTION_MIN_CANDLES:
        return ExhaustionReading(score=50.0, label="STABLE")

    if not math.isfinite(z_score):
        logger.debug("exhaustion_index: non-finite z-score %r treated as 0", z_score)
        z_score = 0.0

    score = min(100.0, max(0.0, 50.0 + abs(z_score) * 12.0))
    return ExhaustionReading(score=score, label=_exhaustion_label(score))
