import logging
import os

import structlog
from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMATS = ("console", "json")


def build_renderer(log_format: str = "console"):
    """Final structlog processor for the given output format

    "console" is colored and aligned for terminals; "json" emits one object
    per line for log collectors.

    Raises:
        ValueError: If log_format is unknown
    """
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event=50,
        )
    if log_format == "json":
        return structlog.processors.JSONRenderer()

    available = ", ".join(LOG_FORMATS)
    raise ValueError(f"Unknown log format '{log_format}'. Available formats: {available}")


def setup_logging(level: int | None = logging.INFO, log_format: str = "console") -> None:
    """
    Configure structured logging for the server, the simulator and the CLIs.

    Args:
        level: The logging level to use. Defaults to INFO.
        log_format: "console" or "json". Defaults to console.
    """
    renderer = build_renderer(log_format)

    # basicConfig is a no-op once the root logger has handlers
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name (e.g. from LOG_LEVEL) to a logging constant"""
    if not name:
        return default
    return LOG_LEVELS.get(name.strip().upper(), default)


def format_from_name(name: str | None, default: str = "console") -> str:
    """Map LOG_FORMAT to a supported format, falling back on unknown values"""
    if not name:
        return default
    name = name.strip().lower()
    return name if name in LOG_FORMATS else default


setup_logging(
    level=level_from_name(os.getenv("LOG_LEVEL"), default=logging.DEBUG),
    log_format=format_from_name(os.getenv("LOG_FORMAT")),
)
