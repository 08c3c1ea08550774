"""Logging setup for the CLI.

Library modules only ever do ``logger = logging.getLogger(__name__)``; the
CLI entry point calls ``configure_logging`` once. Records go to stderr so
stdout stays a clean JSON-lines stream. Rendering is done by structlog's
``ProcessorFormatter`` on the root handler, so plain stdlib records come out
as console text or one JSON object per line.
"""

import logging
import sys

import structlog

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Run on every stdlib record before the renderer sees it
_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
]


def build_formatter(fmt: str = "text") -> structlog.stdlib.ProcessorFormatter:
    """Return the handler formatter for ``text`` or ``json`` output."""
    if fmt == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=False)]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )


def configure_logging(level: str = "info", fmt: str = "text", stream=None) -> None:
    """Configure the root handler. Safe to call more than once."""
    root = logging.getLogger()
    handler = next((h for h in root.handlers if getattr(h, "_chapbook", False)), None)
    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler._chapbook = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    else:
        # sys.stderr may have been swapped since the last call (test runners do this)
        handler.setStream(stream or sys.stderr)
    handler.setFormatter(build_formatter(fmt))
    root.setLevel(_LEVELS.get(level, logging.INFO))
