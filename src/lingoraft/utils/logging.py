from __future__ import annotations

import logging
from typing import Optional

import structlog

# Libraries that log every request at INFO; kept at WARNING unless debugging.
CHATTY_LOGGERS = ("httpx", "uvicorn.access")


def add_service(service: str):
    """Processor stamping every event with the service name."""

    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def resolve_level(level: str) -> int:
    """Map a level name such as "debug" to its numeric value, rejecting unknown names."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    return numeric_level


def configure_logging(level: str = "INFO", json_output: bool = False, service: str = "lingoraft") -> None:
    """
    Route stdlib and structlog output for the engine, stores and shells through one pipeline.

    Every event carries the emitting module and the service name, so engine and
    HTTP entries stay distinguishable in a shared JSON log. Values bound with
    `structlog.contextvars.bind_contextvars`, such as the request path in the
    HTTP shell, are merged into each event.
    """
    numeric_level = resolve_level(level)
    logging.basicConfig(level=numeric_level, format="%(message)s")
    quiet_level = numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service(service),
        structlog.processors.CallsiteParameterAdder([structlog.processors.CallsiteParameter.FUNC_NAME]),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger that inherits the global configuration."""
    return structlog.get_logger(name)
