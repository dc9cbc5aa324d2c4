"""
Computation context: the isolated thread that runs analysis jobs.

A single daemon thread drains an inbox queue, runs one job at a time in
arrival order and hands exactly one ``JobResponse`` per request to the
``on_response`` callback.  Any exception raised while validating a payload
or running a routine becomes an error response; the thread itself keeps
serving.

Lifecycle:
    ctx = ComputationContext()
    ctx.on_response = deliver      # called on the context thread
    ctx.start()                    # raises EngineUnavailable on failure
    ctx.post(JobRequest(id="...", kind="SMA", payload={...}))
    ctx.stop()

``execute()`` is the synchronous core and can be called directly.
"""

import queue
import threading
import time
from typing import Any, Callable, Optional

from quant_engine.analysis.complexity import fractal_dimension, market_entropy
from quant_engine.analysis.frames import candles_to_frame
from quant_engine.analysis.monte_carlo import run_monte_carlo
from quant_engine.analysis.order_flow import (
    cumulative_delta,
    exhaustion_index,
    institutional_conviction,
    order_heatmap,
)
from quant_engine.analysis.sizing import kelly_criterion
from quant_engine.analysis.trend import (
    bollinger_bands,
    linear_regression,
    simple_moving_average,
)
from quant_engine.analysis.volume_profile import compute_volume_profile
from quant_engine.core.config import (
    QUANT_MAX_SIMULATIONS,
    QUANT_STARTUP_TIMEOUT_SECONDS,
)
from quant_engine.core.errors import EngineUnavailable
from quant_engine.core.logging_config import get_logger
from quant_engine.core.models import (
    BollingerPayload,
    ConvictionPayload,
    DeltaPayload,
    ExhaustionPayload,
    FaultKind,
    JobKind,
    JobRequest,
    JobResponse,
    KellyPayload,
    MonteCarloPayload,
    MovingAveragePayload,
    OrderHeatmapPayload,
    SeriesPayload,
    VolumeProfilePayload,
)

logger = get_logger("quant.context")

ResponseCallback = Callable[[JobResponse], None]
Handler = Callable[[Any], Any]

_STOP = object()


class ComputationContext:
    """Single-threaded FIFO executor for analysis jobs."""

    def __init__(
        self,
        max_simulations: Optional[int] = None,
        startup_timeout: Optional[float] = None,
        name: str = "quant-context",
    ):
        self.max_simulations = (
            QUANT_MAX_SIMULATIONS if max_simulations is None else int(max_simulations)
        )
        self.startup_timeout = (
            QUANT_STARTUP_TIMEOUT_SECONDS if startup_timeout is None else startup_timeout
        )
        self.name = name
        self.on_response: Optional[ResponseCallback] = None

        self._inbox: "queue.Queue[Any]" = queue.Queue()
        self._thread: threading.Thread | None = None
        self._ready = threading.Event()
        self._startup_error: Optional[BaseException] = None
        self._lock = threading.Lock()
        self._handlers: dict[JobKind, Handler] = {}
        self.jobs_processed = 0

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> None:
        """Spawn the context thread and wait until it reports ready."""
        with self._lock:
            if self.is_alive():
                return
            self._ready.clear()
            self._startup_error = None
            # Each thread owns its inbox: a thread left running by a timed-out
            # stop() drains only its own queue up to its stop marker
            self._inbox = queue.Queue()
            self._thread = threading.Thread(
                target=self._loop, args=(self._inbox,), daemon=True, name=self.name
            )
            try:
                self._thread.start()
            except RuntimeError as exc:
                self._thread = None
                raise EngineUnavailable(f"could not start {self.name}: {exc}") from exc

        if not self._ready.wait(self.startup_timeout):
            raise EngineUnavailable(
                f"{self.name} did not become ready within {self.startup_timeout}s"
            )
        if self._startup_error is not None:
            raise EngineUnavailable(
                f"{self.name} failed to initialise: {self._startup_error}"
            ) from self._startup_error

        logger.info(
            "computation_context_started",
            thread=self.name,
            max_simulations=self.max_simulations,
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Finish the job in progress, then end the thread.

        Requests still queued behind the stop marker are dropped.  If the
        job in progress outlasts *timeout* the thread is detached: it exits
        after that job and a later ``start()`` gets a fresh thread and inbox.
        """
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._inbox.put(_STOP)
            thread.join(timeout=timeout)
            self._thread = None
        if thread.is_alive():
            logger.warning(
                "computation_context_stop_timed_out", thread=self.name, timeout=timeout
            )
        else:
            logger.info("computation_context_stopped", thread=self.name)

    def is_alive(self) -> bool:
        return (
            self._thread is not None
            and self._thread.is_alive()
            and self._startup_error is None
        )

    def post(self, request: JobRequest) -> None:
        """Queue *request*; never blocks the caller."""
        if not self.is_alive():
            raise EngineUnavailable(
                f"{self.name} is not running", job_id=request.id, kind=request.kind
            )
        self._inbox.put(request)

    @property
    def backlog(self) -> int:
        return self._inbox.qsize()

    # -- thread body -----------------------------------------------------------

    def _loop(self, inbox: "queue.Queue[Any]") -> None:
        try:
            self._handlers = self._build_handlers()
        except Exception as exc:  # noqa: BLE001
            self._startup_error = exc
            self._ready.set()
            return
        self._ready.set()

        while True:
            item = inbox.get()
            if item is _STOP:
                break
            try:
                response = self.execute(item)
            except Exception:  # noqa: BLE001
                # Not a JobRequest: there is no id to answer to
                logger.exception("malformed_job_dropped", item_type=type(item).__name__)
                continue
            self.jobs_processed += 1
            callback = self.on_response
            if callback is None:
                continue
            try:
                callback(response)
            except Exception:  # noqa: BLE001
                logger.exception("response_delivery_failed", job_id=response.id)

    # -- job execution ---------------------------------------------------------

    def execute(self, request: JobRequest) -> JobResponse:
        """Run one job and turn any failure into an error response."""
        if not self._handlers:
            self._handlers = self._build_handlers()

        try:
            kind = JobKind(request.kind)
        except ValueError:
            logger.warning("unknown_job_kind", job_id=request.id, kind=request.kind)
            return JobResponse.failure(
                request.id,
                f"unknown job kind: {request.kind!r}",
                FaultKind.UNKNOWN_KIND,
            )

        started = time.perf_counter()
        try:
            result = self._handlers[kind](request.payload)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "job_failed",
                job_id=request.id,
                kind=kind.value,
                error=f"{type(exc).__name__}: {exc}",
            )
            return JobResponse.failure(
                request.id,
                f"{kind.value} failed: {type(exc).__name__}: {exc}",
                FaultKind.ALGORITHM_FAULT,
            )

        logger.debug(
            "job_completed",
            job_id=request.id,
            kind=kind.value,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return JobResponse.success(request.id, result)

    def _build_handlers(self) -> dict[JobKind, Handler]:
        return {
            JobKind.VOLUME_PROFILE: self._volume_profile,
            JobKind.FRACTAL_DIMENSION: self._fractal_dimension,
            JobKind.MARKET_ENTROPY: self._market_entropy,
            JobKind.EXHAUSTION: self._exhaustion,
            JobKind.ORDER_HEATMAP: self._order_heatmap,
            JobKind.DELTA: self._delta,
            JobKind.CONVICTION: self._conviction,
            JobKind.KELLY: self._kelly,
            JobKind.MONTE_CARLO: self._monte_carlo,
            JobKind.SMA: self._sma,
            JobKind.BOLLINGER: self._bollinger,
            JobKind.REGRESSION: self._regression,
        }

    # Each handler validates its payload, then calls the pure routine.

    @staticmethod
    def _volume_profile(payload: Any):
        p = VolumeProfilePayload.model_validate(payload)
        return compute_volume_profile(candles_to_frame(p.candles), p.bins_count)

    @staticmethod
    def _fractal_dimension(payload: Any):
        return fractal_dimension(SeriesPayload.model_validate(payload).series)

    @staticmethod
    def _market_entropy(payload: Any):
        return market_entropy(SeriesPayload.model_validate(payload).series)

    @staticmethod
    def _exhaustion(payload: Any):
        p = ExhaustionPayload.model_validate(payload)
        return exhaustion_index(candles_to_frame(p.candles), p.z_score)

    @staticmethod
    def _order_heatmap(payload: Any):
        p = OrderHeatmapPayload.model_validate(payload)
        return order_heatmap(p.current_price, p.volatility, seed=p.seed)

    @staticmethod
    def _delta(payload: Any):
        p = DeltaPayload.model_validate(payload)
        return cumulative_delta(candles_to_frame(p.candles), seed=p.seed)

    @staticmethod
    def _conviction(payload: Any):
        p = ConvictionPayload.model_validate(payload)
        return institutional_conviction(candles_to_frame(p.candles), p.delta)

    @staticmethod
    def _kelly(payload: Any):
        p = KellyPayload.model_validate(payload)
        return kelly_criterion(p.win_prob, p.win_loss_ratio)

    def _monte_carlo(self, payload: Any):
        p = MonteCarloPayload.model_validate(payload)
        simulations = min(p.simulations, self.max_simulations)
        if simulations < p.simulations:
            logger.debug(
                "monte_carlo_capped",
                requested=p.simulations,
                cap=self.max_simulations,
            )
        return run_monte_carlo(
            p.start_price, p.volatility, p.steps, simulations, seed=p.seed
        )

    @staticmethod
    def _sma(payload: Any):
        p = MovingAveragePayload.model_validate(payload)
        return simple_moving_average(candles_to_frame(p.candles), p.period)

    @staticmethod
    def _bollinger(payload: Any):
        p = BollingerPayload.model_validate(payload)
        return bollinger_bands(candles_to_frame(p.candles), p.period, p.std_dev)

    @staticmethod
    def _regression(payload: Any):
        return linear_regression(SeriesPayload.model_validate(payload).series)
