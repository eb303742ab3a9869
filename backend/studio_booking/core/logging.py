"""
structlog wired into the stdlib logging tree.

Services log an event name with keyword context and never format strings:

    logger.info("booking_slot_taken", resource_type="studio", date="2025-08-12")

Records from third-party libraries (uvicorn, SQLAlchemy) pass through the
same formatter, so one stream carries everything. ENVIRONMENT=production
renders JSON lines for the log shipper; other environments get the console
renderer.
"""

import logging
import sys

import structlog

from studio_booking.core.config import get_settings

HANDLER_NAME = "studio_booking"

# Chatty at INFO; the request middleware already logs each request
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite")


def _pre_chain(production: bool) -> list:
    chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if production:
        # JSON has no multi-line tracebacks
        chain.append(structlog.processors.format_exc_info)
    return chain


def _renderer(production: bool):
    if production:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _install_handler(root: logging.Logger, formatter: logging.Formatter) -> None:
    # one handler per process even when the lifespan runs again
    for handler in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging() -> None:
    settings = get_settings()
    production = settings.ENVIRONMENT == "production"
    pre_chain = _pre_chain(production)

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(production),
        ],
    )

    root = logging.getLogger()
    _install_handler(root, formatter)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
