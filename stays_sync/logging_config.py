from __future__ import annotations

import logging
import sys
import uuid
from typing import Any, Callable, MutableMapping, cast

import structlog

from stays_sync.config import LOG_LEVEL

# Type alias for structlog processor
Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]


def setup_logging() -> None:
    """
    Configure structured logging globally using structlog.

    LOG_LEVEL=INFO renders JSON lines for log shipping; any other level renders
    the coloured console format used during development.
    """
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=LOG_LEVEL,
    )

    for noisy_logger in [
        "urllib3",
        "requests",
        "apscheduler",
        "uvicorn.access",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    renderer: Processor = cast(
        Processor,
        (
            structlog.processors.JSONRenderer()
            if LOG_LEVEL == "INFO"
            else structlog.dev.ConsoleRenderer(colors=True)
        ),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(LOG_LEVEL)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_sync_context(sync_type: str) -> str:
    """
    Bind a fresh run id for one sync run to the structlog context.

    Every log line emitted by the pipeline until ``clear_sync_context`` is called
    carries ``sync_type`` and ``sync_run_id`` so a single run can be followed in
    aggregated logs.

    Args:
        sync_type: Sync domain being run ("bookings", "properties", "enrichment")

    Returns:
        The generated run id
    """
    run_id = uuid.uuid4().hex[:12]
    structlog.contextvars.bind_contextvars(sync_type=sync_type, sync_run_id=run_id)
    return run_id


def clear_sync_context() -> None:
    """Remove the sync run keys bound by ``bind_sync_context``."""
    structlog.contextvars.unbind_contextvars("sync_type", "sync_run_id")
