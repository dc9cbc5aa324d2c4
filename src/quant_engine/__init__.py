"""
quant_engine: Background quantitative analysis engine.

Numerical jobs (market statistics, simulations, signal transforms) run on
an isolated computation thread and come back through a correlated
request/response protocol, so the caller's event loop never stalls.

    # Core infrastructure
    from quant_engine.core.logging_config import setup_logging, get_logger
    from quant_engine.core.errors import DispatchError, JobTimeout
    from quant_engine.core.models import JobKind

    # Analysis routines (pure, usable without the engine)
    from quant_engine.analysis import fractal_dimension, compute_volume_profile

    # Dispatch
    from quant_engine.services.engine.client import get_client

    client = get_client()
    fdi = await client.fractal_dimension(closes)
"""

from quant_engine.core.errors import (
    AlgorithmFault,
    DispatchError,
    EngineUnavailable,
    JobTimeout,
    QuantEngineError,
    UnknownJobKind,
)
from quant_engine.core.models import JobKind
from quant_engine.services.engine.client import QuantClient, QuantSnapshot, get_client
from quant_engine.services.engine.context import ComputationContext

__all__ = [
    "AlgorithmFault",
    "ComputationContext",
    "DispatchError",
    "EngineUnavailable",
    "JobKind",
    "JobTimeout",
    "QuantClient",
    "QuantEngineError",
    "QuantSnapshot",
    "UnknownJobKind",
    "get_client",
]

__version__ = "0.1.0"
