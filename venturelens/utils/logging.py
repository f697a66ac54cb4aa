"""structlog configuration for the API server, the CLI and the tests.

Every event passes through one processor chain and ends in either a
coloured console line (any ``app_env`` other than ``"production"``) or a
single JSON object per line.  Each event carries ``service`` and ``env``
keys so lines from the crawl, ingestion and query paths can be told apart
once shipped off the box.

Standard-library loggers (uvicorn, httpx, aiosqlite) are routed through the
same chain.  The HTTP client libraries log every request at INFO, which
drowns out crawl progress, so they are held at WARNING.
"""

import logging
import sys

import structlog

SERVICE_NAME = "venturelens"

_CHATTY_LOGGERS = ("httpx", "httpcore", "openai", "trafilatura", "aiosqlite")


def _service_context(app_env: str) -> structlog.types.Processor:
    def add_service(
        _logger: object, _method: str, event_dict: structlog.types.EventDict
    ) -> structlog.types.EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", app_env)
        return event_dict

    return add_service


def configure_logging(log_level: str = "INFO", app_env: str = "development") -> None:
    """Install the processor chain and bridge stdlib logging into it.

    Safe to call more than once; the last call wins.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _service_context(app_env),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    renderer: structlog.types.Processor
    if app_env == "production":
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        shared_processors.append(structlog.dev.set_exc_info)
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
