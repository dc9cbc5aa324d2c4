"""
Dispatch client: the caller-side half of the engine.

Every call gets a fresh correlation id and a pending record holding its
future and a deadline timer.  The job is posted to the computation
context.  The matching response resolves the future, and a missed
deadline rejects it with ``JobTimeout``.  Responses are matched by id
only, never by arrival order.  A response whose record is already gone
(timed out or cancelled) is dropped silently.

Usage:
    from quant_engine.services.engine.client import get_client

    client = get_client()                        # starts the context once
    fdi = await client.fractal_dimension(closes)
    bins = await client.volume_profile(df, bins_count=24)

    # Engine results are optional: fall back instead of failing
    entropy = await client.call_or_default(JobKind.MARKET_ENTROPY,
                                           {"series": closes}, 0.0)

The pending table is only mutated from the event loop that issued the
call.  The context thread reads it under ``_lock`` to route the response
back to that loop.
"""

import asyncio
import copy
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, Sequence, TypeVar, Union

import pandas as pd

from quant_engine.analysis.complexity import FDI_DEFAULT
from quant_engine.analysis.frames import CandleInput, frame_to_records
from quant_engine.analysis.monte_carlo import SimulationPath
from quant_engine.analysis.order_flow import (
    ConvictionReading,
    DeltaReading,
    ExhaustionReading,
    OrderWall,
)
from quant_engine.analysis.sizing import DEFAULT_WIN_PROB, reward_risk_ratio
from quant_engine.analysis.trend import BandPoint, RegressionLine, SeriesPoint, z_score
from quant_engine.analysis.volume_profile import VolumeBin
from quant_engine.core.config import QUANT_TIMEOUT_SECONDS
from quant_engine.core.errors import (
    AlgorithmFault,
    DispatchError,
    EngineUnavailable,
    JobTimeout,
    UnknownJobKind,
)
from quant_engine.core.logging_config import get_logger
from quant_engine.core.models import FaultKind, JobKind, JobRequest, JobResponse
from quant_engine.services.engine.context import ComputationContext

logger = get_logger("quant.client")

T = TypeVar("T")


@dataclass
class _PendingRequest:
    future: "asyncio.Future[Any]"
    loop: asyncio.AbstractEventLoop
    deadline: float  # loop.time() at which the call times out
    timer: asyncio.TimerHandle
    kind: str


@dataclass
class QuantSnapshot:
    """Asset-level quant readings; each field holds its fallback on error."""

    fdi: float = FDI_DEFAULT
    entropy: float = 0.0
    z_score: float = 0.0
    exhaustion: ExhaustionReading = field(
        default_factory=lambda: ExhaustionReading(score=50.0, label="STABLE")
    )
    delta: DeltaReading = field(
        default_factory=lambda: DeltaReading(current_delta=0.0, divergence=False)
    )
    conviction: ConvictionReading = field(
        default_factory=lambda: ConvictionReading(type="NEUTRAL", confidence=50)
    )


def _candle_records(candles: CandleInput) -> list[dict[str, Any]]:
    if isinstance(candles, pd.DataFrame):
        return frame_to_records(candles)
    return [c.model_dump() if hasattr(c, "model_dump") else dict(c) for c in candles]


def _series(values: Sequence[float]) -> list[float]:
    return [float(v) for v in values]


class QuantClient:
    """Async front door to a ``ComputationContext``."""

    def __init__(
        self,
        context: Optional[ComputationContext] = None,
        timeout: Optional[float] = None,
    ):
        self.context = context if context is not None else ComputationContext()
        self.timeout = QUANT_TIMEOUT_SECONDS if timeout is None else float(timeout)

        self._pending: dict[str, _PendingRequest] = {}
        self._lock = threading.Lock()
        self._start_lock = threading.Lock()
        self._started = False
        self._available = False

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> bool:
        """Start the context once.  Returns False if it could not start.

        Blocks until the context reports ready; concurrent callers wait for
        the first one and share its outcome.
        """
        with self._start_lock:
            if self._started:
                return self._available
            self.context.on_response = self._on_context_response
            try:
                self.context.start()
            except Exception as exc:  # noqa: BLE001
                logger.warning("computation_context_unavailable", error=str(exc))
                self._available = False
            else:
                self._available = True
            self._started = True
            return self._available

    def close(self) -> None:
        """Stop the context.  Outstanding calls still end by deadline."""
        self._available = False
        self.context.stop()

    @property
    def available(self) -> bool:
        return self._available and self.context.is_alive()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # -- dispatch --------------------------------------------------------------

    async def call(
        self,
        kind: Union[JobKind, str],
        payload: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Run one job on the context and return its result.

        Raises:
            EngineUnavailable: the context is not running.
            JobTimeout: no response within ``self.timeout`` seconds.
            UnknownJobKind: the context does not know *kind*.
            AlgorithmFault: the routine or payload validation failed.
        """
        kind_value = kind.value if isinstance(kind, JobKind) else str(kind)
        loop = asyncio.get_running_loop()
        if not self._started:
            # start() waits on the context thread; keep the loop free meanwhile
            await loop.run_in_executor(None, self.start)
        if not self.available:
            raise EngineUnavailable("computation context is unavailable", kind=kind_value)

        job_id = uuid.uuid4().hex
        request = JobRequest(
            id=job_id,
            kind=kind_value,
            payload=copy.deepcopy(dict(payload or {})),
        )

        future: "asyncio.Future[Any]" = loop.create_future()
        timer = loop.call_later(self.timeout, self._expire, job_id)
        with self._lock:
            self._pending[job_id] = _PendingRequest(
                future=future,
                loop=loop,
                deadline=loop.time() + self.timeout,
                timer=timer,
                kind=kind_value,
            )

        try:
            self.context.post(request)
        except Exception as exc:  # noqa: BLE001
            self._discard(job_id)
            raise EngineUnavailable(
                f"could not post job: {exc}", job_id=job_id, kind=kind_value
            ) from exc

        try:
            return await future
        except asyncio.CancelledError:
            self._discard(job_id)
            raise

    async def call_or_default(
        self,
        kind: Union[JobKind, str],
        payload: Optional[dict[str, Any]],
        default: T,
    ) -> Union[Any, T]:
        """``call()``, but any ``DispatchError`` yields *default*."""
        return await self._or_default(self.call(kind, payload), default)

    def deliver(self, response: JobResponse) -> bool:
        """Resolve the pending call matching *response*.

        Must run on the loop that issued the call.  Returns False when no
        caller was waiting (late or unknown id).
        """
        with self._lock:
            record = self._pending.pop(response.id, None)
        if record is None:
            logger.debug("late_response_discarded", job_id=response.id)
            return False

        record.timer.cancel()
        if record.future.done():
            return False

        if response.ok:
            record.future.set_result(response.result)
        else:
            record.future.set_exception(self._error_for(response, record.kind))
        return True

    def _on_context_response(self, response: JobResponse) -> None:
        # Runs on the context thread: hop back to the caller's loop
        with self._lock:
            record = self._pending.get(response.id)
        if record is None:
            logger.debug("late_response_discarded", job_id=response.id)
            return
        try:
            record.loop.call_soon_threadsafe(self.deliver, response)
        except RuntimeError:
            logger.debug("response_loop_closed", job_id=response.id)

    def _expire(self, job_id: str) -> None:
        with self._lock:
            record = self._pending.pop(job_id, None)
        if record is None or record.future.done():
            return
        logger.warning("job_timed_out", job_id=job_id, kind=record.kind, timeout=self.timeout)
        record.future.set_exception(
            JobTimeout(
                f"{record.kind} timed out after {self.timeout}s",
                timeout=self.timeout,
                job_id=job_id,
                kind=record.kind,
            )
        )

    def _discard(self, job_id: str) -> None:
        with self._lock:
            record = self._pending.pop(job_id, None)
        if record is not None:
            record.timer.cancel()

    @staticmethod
    def _error_for(response: JobResponse, kind: str) -> DispatchError:
        message = response.error or "job failed"
        if response.fault == FaultKind.UNKNOWN_KIND:
            return UnknownJobKind(message, job_id=response.id, kind=kind)
        return AlgorithmFault(message, job_id=response.id, kind=kind)

    @staticmethod
    async def _or_default(awaitable: Awaitable[Any], default: T) -> Union[Any, T]:
        try:
            return await awaitable
        except DispatchError as exc:
            logger.info(
                "quant_fallback_used",
                kind=exc.kind,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return default

    # -- one entry point per algorithm -----------------------------------------

    async def volume_profile(
        self, candles: CandleInput, bins_count: int = 24
    ) -> list[VolumeBin]:
        return await self.call(
            JobKind.VOLUME_PROFILE,
            {"candles": _candle_records(candles), "bins_count": bins_count},
        )

    async def fractal_dimension(self, series: Sequence[float]) -> float:
        return await self.call(JobKind.FRACTAL_DIMENSION, {"series": _series(series)})

    async def market_entropy(self, series: Sequence[float]) -> float:
        return await self.call(JobKind.MARKET_ENTROPY, {"series": _series(series)})

    async def exhaustion_index(
        self, candles: CandleInput, z: float
    ) -> ExhaustionReading:
        return await self.call(
            JobKind.EXHAUSTION,
            {"candles": _candle_records(candles), "z_score": z},
        )

    async def order_heatmap(
        self,
        current_price: float,
        volatility: float = 0.02,
        seed: Optional[int] = None,
    ) -> list[OrderWall]:
        return await self.call(
            JobKind.ORDER_HEATMAP,
            {"current_price": current_price, "volatility": volatility, "seed": seed},
        )

    async def cumulative_delta(
        self, candles: CandleInput, seed: Optional[int] = None
    ) -> DeltaReading:
        return await self.call(
            JobKind.DELTA, {"candles": _candle_records(candles), "seed": seed}
        )

    async def institutional_conviction(
        self, candles: CandleInput, delta: float
    ) -> ConvictionReading:
        return await self.call(
            JobKind.CONVICTION,
            {"candles": _candle_records(candles), "delta": delta},
        )

    async def kelly_criterion(self, win_prob: float, win_loss_ratio: float) -> float:
        return await self.call(
            JobKind.KELLY, {"win_prob": win_prob, "win_loss_ratio": win_loss_ratio}
        )

    async def kelly_suggestion(
        self,
        entry: float,
        stop_loss: float,
        take_profit: float,
        win_prob: float = DEFAULT_WIN_PROB,
    ) -> float:
        """Kelly fraction for a trade plan; the payoff ratio comes from the plan."""
        ratio = reward_risk_ratio(entry, stop_loss, take_profit)
        return await self.kelly_criterion(win_prob, ratio)

    async def monte_carlo(
        self,
        start_price: float,
        volatility: float,
        steps: int = 20,
        simulations: int = 50,
        seed: Optional[int] = None,
    ) -> list[SimulationPath]:
        return await self.call(
            JobKind.MONTE_CARLO,
            {
                "start_price": start_price,
                "volatility": volatility,
                "steps": steps,
                "simulations": simulations,
                "seed": seed,
            },
        )

    async def sma(self, candles: CandleInput, period: int = 20) -> list[SeriesPoint]:
        return await self.call(
            JobKind.SMA, {"candles": _candle_records(candles), "period": period}
        )

    async def bollinger_bands(
        self, candles: CandleInput, period: int = 20, std_dev: float = 2.0
    ) -> list[BandPoint]:
        return await self.call(
            JobKind.BOLLINGER,
            {"candles": _candle_records(candles), "period": period, "std_dev": std_dev},
        )

    async def linear_regression(
        self, series: Sequence[float]
    ) -> Optional[RegressionLine]:
        return await self.call(JobKind.REGRESSION, {"series": _series(series)})

    # -- composites ------------------------------------------------------------

    async def snapshot(self, candles: CandleInput, current_price: float) -> QuantSnapshot:
        """Fractal dimension, entropy, exhaustion, delta, then conviction.

        The first four run concurrently.  Conviction needs the delta and
        runs last.  A failed component keeps its fallback value, and
        candles that cannot be read at all give the full fallback snapshot.
        """
        try:
            records = _candle_records(candles)
        except (TypeError, ValueError) as exc:
            logger.warning("snapshot_candles_unreadable", error=str(exc))
            return QuantSnapshot()

        # Missing or non-numeric closes become NaN; the routines treat
        # non-finite input as degenerate and the context rejects the record
        closes = pd.to_numeric(
            pd.Series([r.get("close") for r in records], dtype=object),
            errors="coerce",
        ).astype(float).tolist()
        z = z_score(current_price, closes)
        fallback = QuantSnapshot(z_score=z)

        fdi, entropy, exhaustion, delta = await asyncio.gather(
            self._or_default(self.fractal_dimension(closes), fallback.fdi),
            self._or_default(self.market_entropy(closes), fallback.entropy),
            self._or_default(self.exhaustion_index(records, z), fallback.exhaustion),
            self._or_default(self.cumulative_delta(records), fallback.delta),
        )
        conviction = await self._or_default(
            self.institutional_conviction(records, delta.current_delta),
            fallback.conviction,
        )

        return QuantSnapshot(
            fdi=fdi,
            entropy=entropy,
            z_score=z,
            exhaustion=exhaustion,
            delta=delta,
            conviction=conviction,
        )


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

_client_instance: QuantClient | None = None
_client_lock = threading.Lock()


def get_client(timeout: Optional[float] = None) -> QuantClient:
    """Return (and auto-start) the process-wide client."""
    global _client_instance
    with _client_lock:
        if _client_instance is None:
            _client_instance = QuantClient(timeout=timeout)
            _client_instance.start()
        elif timeout is not None:
            _client_instance.timeout = float(timeout)
        return _client_instance
