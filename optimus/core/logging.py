"""Structured logging via structlog.

Configures structlog once at CLI startup. All subsequent calls to
`structlog.get_logger()` (or `logging.getLogger()` via the stdlib bridge)
use this configuration.

Renderer selection:
  debug=True   `ConsoleRenderer` with colours for interactive use.
  debug=False  `JSONRenderer` for machine-parseable logs (CI runners).

Log output goes to stderr. stdout carries only the progress and result
lines the CLI prints.

ContextVar injection:
  The `run_id` field is injected into every log line from a ContextVar
  that the orchestrator sets at the start of each submission run.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar

import structlog

_run_id_var: ContextVar[str] = ContextVar("run_id", default="")


def get_run_id() -> str:
    """Return the current run ID, or empty string if not set."""
    return _run_id_var.get()


def new_run_id() -> str:
    """Generate a run ID and make it current for this context."""
    run_id = uuid.uuid4().hex[:12]
    _run_id_var.set(run_id)
    return run_id


def _inject_context_vars(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: inject run_id from the ContextVar."""
    run_id = get_run_id()
    if run_id:
        event_dict["run_id"] = run_id
    return event_dict


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog for the process lifetime.

    Call once from `main()` before any command runs.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_context_vars,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.WARNING
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # Bridge stdlib logging so module loggers (and httpx) share the stream.
    # Quiet by default: progress lines only surface with --verbose.
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
    )
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
