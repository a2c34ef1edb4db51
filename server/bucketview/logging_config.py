# ─────────────────────────────────────────────────────────────────────────────
# Logging Configuration — structlog for Cloud Logging
# ─────────────────────────────────────────────────────────────────────────────


import logging
import sys

import structlog

# Request lines come from RequestContextMiddleware; uvicorn's own access log
# would duplicate every one of them.
_QUIETED_LOGGERS = ("uvicorn.access",)


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog for structured JSON logging.

    JSON output is one parseable object per line (timestamp, level, logger,
    fields). Console output is for local development. Stdlib loggers
    (uvicorn, google-cloud, redis) are rendered through the same formatter.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    # foreign_pre_chain handles records from plain stdlib loggers, which never
    # went through the structlog processors above.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info if json_output else _passthrough,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    for name in _QUIETED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _passthrough(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """ConsoleRenderer formats exc_info itself."""
    return event_dict
