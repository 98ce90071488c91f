"""
Structured logging for the PetCare appointment service.

Every record may carry a ``context`` dict (``extra={"context": {...}}``).
Inside a request, ``RequestContextFilter`` stamps the request id and the
acting user onto each record so workflow logs can be joined with the access
log line of the same request.

Usage:
    from petcare.core.logging_config import setup_logging, get_logger

    setup_logging(app, log_level="INFO", use_json_format=True)

    logger = get_logger(__name__)
    logger.info("Appointment approved", extra={"context": {"appointment_id": "..."}})
"""

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from flask import Flask, g, has_request_context, request
from sqlalchemy import event
from sqlalchemy.engine import Engine

LOG_DIR = Path(__file__).resolve().parents[2] / "logs"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

_NOISY_LOGGERS = ("werkzeug", "urllib3", "sqlalchemy.engine")


class RequestContextFilter(logging.Filter):
    """Attach ``request_id`` and ``actor_id`` to records emitted in a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = None
        record.actor_id = None
        if has_request_context():
            record.request_id = g.get("request_id")
            actor = g.get("current_actor")
            record.actor_id = getattr(actor, "user_id", None)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; used for files and production stdout."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        for key in ("request_id", "actor_id"):
            value = getattr(record, key, None)
            if value:
                entry[key] = value

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line format for development, context appended as k=v."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s", "%H:%M:%S")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        if self.use_color:
            color = self.LEVEL_COLORS.get(record.levelno, "")
            line = f"{color}{line}{self.RESET}" if color else line
        return line


def _resolve_level(log_level: Union[int, str]) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def _file_handlers(level: int, warnings: List[str]) -> List[logging.Handler]:
    """Rotating ``app.log`` plus an errors-only file, or nothing if LOG_DIR is unusable."""
    try:
        LOG_DIR.mkdir(exist_ok=True)
    except OSError as e:
        warnings.append(f"Cannot create {LOG_DIR}: {e}; logging to console only")
        return []

    handlers: List[logging.Handler] = []
    for filename, handler_level in (("app.log", level), ("petcare_errors.log", logging.ERROR)):
        try:
            handler = logging.handlers.RotatingFileHandler(
                LOG_DIR / filename,
                maxBytes=MAX_LOG_BYTES,
                backupCount=LOG_BACKUPS,
                encoding="utf-8",
            )
        except OSError as e:
            warnings.append(f"Cannot open {filename}: {e}")
            continue
        handler.setLevel(handler_level)
        handler.setFormatter(JSONFormatter())
        handlers.append(handler)
    return handlers


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: Optional[bool] = None,
    use_json_format: bool = False,
) -> None:
    """
    Configure the root logger and, when ``app`` is given, request logging.

    Args:
        app: Flask application to attach request/response hooks to
        log_level: Logging level (``logging.INFO`` or ``"INFO"``)
        enable_sql_echo: Log every SQL statement with its duration at DEBUG
        log_to_file: Write rotating JSON files under ``logs/``
            (defaults to the LOG_TO_FILE env var, on unless "0")
        use_json_format: JSON on stdout instead of the console format
    """
    level = _resolve_level(log_level)
    if log_to_file is None:
        log_to_file = os.getenv("LOG_TO_FILE", "1").strip().lower() in ("1", "true", "yes")

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    context_filter = RequestContextFilter()
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(
        JSONFormatter() if use_json_format else ConsoleFormatter(use_color=sys.stdout.isatty())
    )

    warnings: List[str] = []
    handlers = [console] + (_file_handlers(level, warnings) if log_to_file else [])
    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    for message in warnings:
        root.warning(message, extra={"context": {"component": "logging_setup"}})

    if enable_sql_echo:
        _register_sql_timing()
    if app is not None:
        _register_request_hooks(app)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("petcare").setLevel(level)

    logging.getLogger("petcare").info(
        "Logging configured",
        extra={
            "context": {
                "level": logging.getLevelName(level),
                "sql_timing": enable_sql_echo,
                "files": log_to_file,
                "json": use_json_format,
            }
        },
    )


_SQL_TIMING_REGISTERED = False


def _register_sql_timing() -> None:
    """Time every statement on any engine; registered once per process."""
    global _SQL_TIMING_REGISTERED
    if _SQL_TIMING_REGISTERED:
        return
    sql_logger = logging.getLogger("petcare.sql")

    @event.listens_for(Engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("petcare_query_start", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def _stop_timer(conn, cursor, statement, parameters, context, executemany):
        starts = conn.info.get("petcare_query_start")
        if not starts:
            return
        elapsed_ms = (time.perf_counter() - starts.pop()) * 1000
        sql_logger.debug(
            "SQL %.2fms",
            elapsed_ms,
            extra={"context": {"statement": statement[:300], "ms": round(elapsed_ms, 2)}},
        )

    _SQL_TIMING_REGISTERED = True


def _register_request_hooks(app: Flask) -> None:
    if app.extensions.get("petcare_request_logging"):
        return
    app.extensions["petcare_request_logging"] = True
    access_logger = logging.getLogger("petcare.access")

    @app.before_request
    def _begin_request():
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

    @app.after_request
    def _log_response(response):
        started = g.get("request_started")
        if started is None:
            return response
        elapsed_ms = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        access_logger.log(
            level,
            "%s %s -> %s",
            request.method,
            request.path,
            response.status_code,
            extra={
                "context": {
                    "route": request.url_rule.rule if request.url_rule else None,
                    "user_id": getattr(g.get("current_actor"), "user_id", None),
                    "status": response.status_code,
                    "ms": round(elapsed_ms, 2),
                }
            },
        )
        response.headers.setdefault("X-Request-ID", g.get("request_id", ""))
        return response


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_performance(func_name: str, duration_ms: float, **kwargs) -> None:
    """Log how long an operation took, with any extra context as kwargs."""
    context = {"operation": func_name, "duration_ms": round(duration_ms, 2), **kwargs}
    get_logger("petcare.performance").info(
        f"{func_name} took {duration_ms:.2f}ms", extra={"context": context}
    )
