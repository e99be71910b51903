import logging
from dataclasses import dataclass, field
from enum import StrEnum

import orjson
import structlog
from asgi_correlation_id import correlation_id
from beartype import beartype

from upload_storage.core.settings import settings

MAX_EVENT_LENGTH = 80
SIZE_UNITS = ("B", "KiB", "MiB", "GiB")


class LoggerError(Exception):
    """Exception for logger related issues."""


class LogIcon(StrEnum):
    """Icon mappings for different log categories."""

    DEFAULT = "📋"

    # Status & Results
    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"

    # Lifespan
    START = "🚀"
    PROCESSING = "🔄"
    COMPLETE = "✨"
    TOOL = "🔧"

    # Components
    ADAPTER = "🔌"
    HEALTHCHECK = "❤️"

    # Storage
    FOLDER = "📁"
    FILE = "📄"
    UPLOAD = "📤"
    MEMORY = "🧠"


@dataclass
class LoggerConfig:
    """Logger configuration read from settings."""

    debug: bool = field(default_factory=lambda: settings.DEBUG)
    app_name: str = field(default="upload-storage")
    log_level: str = field(default_factory=lambda: settings.LOG_LEVEL)

    @property
    def level_number(self) -> int:
        try:
            return logging.getLevelNamesMapping()[self.log_level.upper()]
        except KeyError as ex:
            raise LoggerError(f"Unknown log level: {self.log_level}") from ex


def add_correlation_id(logger, method_name: str, event_dict: dict) -> dict:
    """Add correlation_id to event_dict if present in context."""
    request_id = correlation_id.get()
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


class IconEventProcessor:
    """
    Normalize event messages and resolve the ``icon`` kwarg.

    Events are upper-cased and cut at ``MAX_EVENT_LENGTH``. The icon must be a
    ``LogIcon`` value and is only printed in front of the event in debug mode.
    """

    def __init__(self, debug: bool) -> None:
        self.debug = debug

    @beartype
    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        try:
            icon = LogIcon(event_dict.pop("icon", LogIcon.DEFAULT))
        except ValueError as err:
            raise LoggerError("Wrong Icon chosen, please choose a valid LogIcon enum member") from err

        event = str(event_dict.get("event", ""))[:MAX_EVENT_LENGTH].upper()
        event_dict["event"] = f"{icon.value} {event}" if self.debug else event
        return event_dict


def format_size(size: int) -> str:
    """Human readable byte count: ``1536`` -> ``1.5 KiB``."""
    value = float(size)
    for unit in SIZE_UNITS[:-1]:
        if value < 1024:
            return f"{size} B" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} {SIZE_UNITS[-1]}"


def dev_pipeline_renderer(logger, name: str, event_dict: dict) -> str:
    """Render log events in human-readable format with pipe-separated fields."""
    reserved_keys = {"timestamp", "level", "event", "filename", "lineno"}

    timestamp = event_dict.get("timestamp", "")
    level = event_dict.get("level", "info").upper()
    event = event_dict.get("event", "")
    filename = event_dict.get("filename", "")
    lineno = event_dict.get("lineno", "")

    location = f"{filename}:{lineno}" if filename else ""

    # Byte counts of stored files read better with units
    extra_kwargs = " | ".join(
        f"{k}={format_size(v) if k == 'size' and isinstance(v, int) else v}"
        for k, v in event_dict.items()
        if k not in reserved_keys
    )

    parts = [timestamp, level, event, extra_kwargs, location]
    return " | ".join(filter(None, parts))


def setup_logging(config: LoggerConfig) -> None:
    """Configure structlog: pipe-separated console lines in debug, orjson lines otherwise."""
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["logger"]
        ),
        IconEventProcessor(debug=config.debug),
    ]

    if config.debug:
        processors = shared_processors + [dev_pipeline_renderer]
    else:
        processors = shared_processors + [
            add_correlation_id,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(serializer=orjson.dumps),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.PrintLoggerFactory() if config.debug else structlog.BytesLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(config.level_number),
        cache_logger_on_first_use=True,
    )


setup_logging(LoggerConfig())

logger = structlog.get_logger()
