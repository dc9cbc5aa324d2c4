"""
Structured logging for the quant engine.

The engine logs from two places: the caller's event loop (dispatch client,
CLI) and the computation thread that runs the jobs.  Both go through the
single stderr handler installed by ``setup_logging()``, so a job's
``job_completed`` or ``job_failed`` line from the context thread sits in
the same stream, with the same ``service`` field, as the ``job_timed_out``
or ``quant_fallback_used`` line the client writes for that call.  The
``service`` name is added by a processor rather than bound in contextvars,
because the computation thread does not inherit the caller's context.

Stdout is left alone: the CLI prints its JSON report there.

Analysis routines log through plain ``logging.getLogger(<module>)`` at
debug level; ``foreign_pre_chain`` gives those lines the same fields.

Usage::

    from quant_engine.core.logging_config import setup_logging, get_logger

    setup_logging(service="quant-cli")
    logger = get_logger("quant.client")

    logger.info("job_completed", kind="MONTE_CARLO", elapsed_ms=12.4)
    # => 2026-01-05T14:23:01Z [info] job_completed  elapsed_ms=12.4 kind=MONTE_CARLO service=quant-cli

Console output (``LOG_FORMAT=console``, the default) is coloured when
stderr is a TTY.  ``LOG_FORMAT=json`` switches to one JSON object per line.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog


def _service_adder(service: str) -> structlog.types.Processor:
    def add_service(
        logger: Any, method_name: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def _shared_processors(service: str) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _service_adder(service),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(
    *,
    service: str = "quant-engine",
    level: str | None = None,
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure ``structlog`` and stdlib ``logging`` for the whole process.

    Parameters
    ----------
    service:
        Name bound to every log event.
    level:
        Root log level.  Falls back to ``LOG_LEVEL``, then ``"INFO"``.
    log_format:
        ``"console"`` or ``"json"``.  Falls back to ``LOG_FORMAT``, then
        ``"console"``.
    stream:
        Destination for log lines (default ``sys.stderr``).  Results go to
        stdout, so logs never mix with CLI output.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_format is None:
        log_format = os.getenv("LOG_FORMAT", "console").lower()
    if stream is None:
        stream = sys.stderr

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    shared = _shared_processors(service)

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=stream.isatty(),
            pad_event_to=30,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    # asyncio debug chatter is not useful at INFO
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    structlog.contextvars.clear_contextvars()


def get_logger(
    name: str | None = None, **initial_binds: Any
) -> structlog.stdlib.BoundLogger:
    """Return a structured logger, optionally bound with extra context.

    Examples
    --------
    >>> logger = get_logger("quant.context", thread="quant-context")
    >>> logger.info("job_completed", kind="SMA")
    """
    log = structlog.get_logger(name)
    if initial_binds:
        log = log.bind(**initial_binds)
    return log
