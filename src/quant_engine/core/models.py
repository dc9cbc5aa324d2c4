"""
Wire types exchanged between the dispatch client and the computation
context, plus the pydantic schemas every job payload is validated against.

A ``JobRequest`` carries its ``kind`` as a plain string so that tags the
context does not know still reach it and come back as an error response
instead of failing on the caller's side.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobKind(str, Enum):
    """Algorithm selector for a job."""

    VOLUME_PROFILE = "VOLUME_PROFILE"
    FRACTAL_DIMENSION = "FRACTAL_DIMENSION"
    MARKET_ENTROPY = "MARKET_ENTROPY"
    EXHAUSTION = "EXHAUSTION"
    ORDER_HEATMAP = "ORDER_HEATMAP"
    DELTA = "DELTA"
    CONVICTION = "CONVICTION"
    KELLY = "KELLY"
    MONTE_CARLO = "MONTE_CARLO"
    SMA = "SMA"
    BOLLINGER = "BOLLINGER"
    REGRESSION = "REGRESSION"


class JobStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class FaultKind(str, Enum):
    """Why a job produced an error response."""

    UNKNOWN_KIND = "unknown_kind"
    ALGORITHM_FAULT = "algorithm_fault"


@dataclass(frozen=True)
class JobRequest:
    id: str
    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class JobResponse:
    """Exactly one of these is emitted per received ``JobRequest``."""

    id: str
    status: JobStatus
    result: Any = None
    error: Optional[str] = None
    fault: Optional[FaultKind] = None

    @classmethod
    def success(cls, job_id: str, result: Any) -> "JobResponse":
        return cls(id=job_id, status=JobStatus.SUCCESS, result=result)

    @classmethod
    def failure(cls, job_id: str, error: str, fault: FaultKind) -> "JobResponse":
        return cls(id=job_id, status=JobStatus.ERROR, error=error, fault=fault)

    @property
    def ok(self) -> bool:
        return self.status == JobStatus.SUCCESS


# ---------------------------------------------------------------------------
# Payload schemas
# ---------------------------------------------------------------------------


class Candle(BaseModel):
    """One OHLCV bar.  Missing open/high/low fall back to the close."""

    model_config = ConfigDict(extra="ignore")

    time: Any = None
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: float
    volume: Optional[float] = None


class SeriesPayload(BaseModel):
    """Raw numeric series (fractal dimension, entropy, regression)."""

    series: list[float] = Field(default_factory=list)


class VolumeProfilePayload(BaseModel):
    candles: list[Candle] = Field(default_factory=list)
    bins_count: int = Field(24, ge=1, le=10_000)


class ExhaustionPayload(BaseModel):
    candles: list[Candle] = Field(default_factory=list)
    z_score: float = 0.0


class OrderHeatmapPayload(BaseModel):
    current_price: float = Field(..., ge=0)
    volatility: float = Field(0.02, ge=0)
    seed: Optional[int] = None


class DeltaPayload(BaseModel):
    candles: list[Candle] = Field(default_factory=list)
    seed: Optional[int] = None


class ConvictionPayload(BaseModel):
    candles: list[Candle] = Field(default_factory=list)
    delta: float = 0.0


class KellyPayload(BaseModel):
    win_prob: float = Field(..., ge=0, le=1)
    win_loss_ratio: float


class MonteCarloPayload(BaseModel):
    start_price: float
    volatility: float = Field(..., ge=0)
    steps: int = Field(20, ge=0, le=100_000)
    simulations: int = Field(50, ge=0)
    seed: Optional[int] = None


class MovingAveragePayload(BaseModel):
    candles: list[Candle] = Field(default_factory=list)
    period: int = Field(20, ge=1)


class BollingerPayload(BaseModel):
    candles: list[Candle] = Field(default_factory=list)
    period: int = Field(20, ge=1)
    std_dev: float = Field(2.0, ge=0)
