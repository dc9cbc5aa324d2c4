"""
quant_engine.analysis: Pure numerical routines hosted by the engine.

Re-exports the public API from each sub-module so callers can do:

    from quant_engine.analysis import fractal_dimension, compute_volume_profile

Every routine is deterministic given its inputs, except the ones taking a
``seed`` (Monte Carlo, synthetic order flow).
"""

from quant_engine.analysis.complexity import (
    direction_symbols,
    fractal_dimension,
    market_entropy,
)
from quant_engine.analysis.frames import (
    OHLCV_COLUMNS,
    candles_to_frame,
    frame_to_records,
)
from quant_engine.analysis.monte_carlo import (
    SimulationPath,
    box_muller,
    run_monte_carlo,
)
from quant_engine.analysis.order_flow import (
    ConvictionReading,
    DeltaReading,
    ExhaustionReading,
    OrderWall,
    cumulative_delta,
    exhaustion_index,
    institutional_conviction,
    order_heatmap,
)
from quant_engine.analysis.sizing import (
    kelly_criterion,
    kelly_suggestion,
    reward_risk_ratio,
)
from quant_engine.analysis.trend import (
    BandPoint,
    RegressionLine,
    SeriesPoint,
    bollinger_bands,
    linear_regression,
    simple_moving_average,
    z_score,
)
from quant_engine.analysis.volume_profile import (
    VolumeBin,
    compute_volume_profile,
)

__all__ = [
    # complexity
    "direction_symbols",
    "fractal_dimension",
    "market_entropy",
    # frames
    "OHLCV_COLUMNS",
    "candles_to_frame",
    "frame_to_records",
    # monte_carlo
    "SimulationPath",
    "box_muller",
    "run_monte_carlo",
    # order_flow
    "ConvictionReading",
    "DeltaReading",
    "ExhaustionReading",
    "OrderWall",
    "cumulative_delta",
    "exhaustion_index",
    "institutional_conviction",
    "order_heatmap",
    # sizing
    "kelly_criterion",
    "kelly_suggestion",
    "reward_risk_ratio",
    # trend
    "BandPoint",
    "RegressionLine",
    "SeriesPoint",
    "bollinger_bands",
    "linear_regression",
    "simple_moving_average",
    "z_score",
    # volume_profile
    "VolumeBin",
    "compute_volume_profile",
]
