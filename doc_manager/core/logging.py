import logging
import logging.config
import time
from typing import Any, Dict

import structlog

from doc_manager.core.config import settings

PROBE_PATHS = frozenset({"/health", "/ready", "/live"})

# Storage SDKs log every HTTP round trip at INFO
QUIET_LOGGERS = ("azure", "google", "urllib3")

_FORMATTERS = {
    "json": {
        "class": "pythonjsonlogger.jsonlogger.JsonFormatter",
        "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
    },
    "console": {
        "class": "logging.Formatter",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}


def build_logging_config(level: str, log_format: str) -> Dict[str, Any]:
    """dictConfig for the root logger, uvicorn and the storage SDKs."""
    formatter = _FORMATTERS["json" if log_format == "json" else "console"]

    def stream(*filters: str) -> Dict[str, Any]:
        handler = {"class": "logging.StreamHandler", "formatter": "default", "stream": "ext://sys.stdout"}
        if filters:
            handler["filters"] = list(filters)
        return handler

    loggers = {
        "": {"level": level, "handlers": ["default"]},
        "uvicorn.error": {"level": "INFO", "handlers": ["default"], "propagate": False},
        "uvicorn.access": {"level": "INFO", "handlers": ["access"], "propagate": False},
    }
    loggers.update(
        {name: {"level": "WARNING", "handlers": ["default"], "propagate": False} for name in QUIET_LOGGERS}
    )

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"probes": {"()": ProbeRequestFilter}},
        "formatters": {"default": dict(formatter)},
        "handlers": {"default": stream(), "access": stream("probes")},
        "loggers": loggers,
    }


def configure_logging() -> None:
    """Configure structlog and stdlib logging from settings."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(build_logging_config(settings.LOG_LEVEL, settings.LOG_FORMAT))


class ProbeRequestFilter(logging.Filter):
    """Drop uvicorn access lines for liveness and readiness probes."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in PROBE_PATHS)


class RequestLoggingMiddleware:
    """Log method, path, status and duration of every non-probe request."""

    def __init__(self, app):
        self.app = app
        self.logger = structlog.get_logger("request")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["path"] in PROBE_PATHS:
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        fields = {"method": scope["method"], "path": scope["path"]}
        if b"multipart/form-data" in headers.get(b"content-type", b""):
            fields["upload_bytes"] = int(headers.get(b"content-length", 0) or 0)

        self.logger.info("Request started", **fields)
        started = time.perf_counter()
        status = {}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status["code"] = message["status"]
            elif message["type"] == "http.response.body" and not message.get("more_body"):
                self.logger.info(
                    "Request completed",
                    status_code=status.get("code"),
                    duration=round(time.perf_counter() - started, 4),
                    **fields,
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)


def setup_request_logging(app) -> None:
    """Per-request logging is only installed in debug mode."""
    if settings.DEBUG:
        app.add_middleware(RequestLoggingMiddleware)


def get_logger(name: str) -> structlog.BoundLogger:
    return structlog.get_logger(name)


def get_api_logger() -> structlog.BoundLogger:
    return get_logger("api")


def get_service_logger(service_name: str) -> structlog.BoundLogger:
    return get_logger(f"service.{service_name}")
