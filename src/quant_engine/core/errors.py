"""
Error taxonomy for engine dispatch.

Every error is terminal for the single call that produced it.  Callers are
expected to treat engine results as optional and substitute a default on
any ``DispatchError``.
"""

from typing import Optional


class QuantEngineError(Exception):
    """Base class for all engine errors."""


class DispatchError(QuantEngineError):
    """A dispatched job did not produce a result."""

    def __init__(
        self,
        message: str,
        *,
        job_id: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.kind = kind


class EngineUnavailable(DispatchError):
    """The computation context is not running; calls fail fast."""


class JobTimeout(DispatchError):
    """No response arrived before the deadline.

    The job may still be running inside the context; its eventual
    response is discarded.
    """

    def __init__(
        self,
        message: str,
        *,
        timeout: float,
        job_id: Optional[str] = None,
        kind: Optional[str] = None,
    ) -> None:
        super().__init__(message, job_id=job_id, kind=kind)
        self.timeout = timeout


class UnknownJobKind(DispatchError):
    """The context received a job tag it does not recognise."""


class AlgorithmFault(DispatchError):
    """A routine raised while processing its payload."""
