"""Logging setup for profnet.

Modules log through ``logging.getLogger(__name__)``; structlog formats
the records. Records emitted while a service operation runs carry the
operation name (``op``) and the ids of the users it acts for, bound by
:func:`operation_context`. A busy-store warning from ``send_message``
therefore reads::

    {"event": "Store unavailable ...", "op": "send_message",
     "sender": "alice", "receiver": "bob", "level": "warning", ...}

Output goes to stderr, as console lines or one JSON object per line.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager

import structlog

PACKAGE_LOGGER = "profnet"

# Third-party loggers held at WARNING even in verbose mode.
QUIET_LOGGERS = ("sqlalchemy",)


def operation_context(op: str, **actors: str | None) -> AbstractContextManager[None]:
    """Bind *op* and the acting user ids to every record logged in the block.

    ``None`` values are left out so optional arguments do not show up as
    empty fields.
    """
    bound = {key: value for key, value in actors.items() if value is not None}
    return structlog.contextvars.bound_contextvars(op=op, **bound)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(log_json: bool) -> list[structlog.types.Processor]:
    if log_json:
        return [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
    ]


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route all logging to a single stderr handler.

    Safe to call more than once; the root handler is replaced, not
    stacked.

    Args:
        verbose: Emit DEBUG records from the ``profnet`` loggers.
        log_json: Render JSON lines instead of console output.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=_render_chain(log_json),
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
