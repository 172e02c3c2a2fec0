"""
Centralized logging configuration for iDentSoft.

This module provides structured logging with:
- JSON formatting for production and log files
- Colored console formatting for development
- Optional SQLAlchemy query timing
- Request/response logging tagged with a request id

Usage:
    from identsoft.core.logging_config import setup_logging

    # In main.py
    setup_logging(app, log_level="INFO", use_json_format=True)

    # In any module
    logger = logging.getLogger(__name__)
    logger.info("Invoice created", extra={"context": {"invoice_id": 12}})
"""

import json
import logging
import logging.handlers
import sys
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from flask import Flask, g, request
from sqlalchemy import event
from sqlalchemy.engine import Engine

# Handlers installed by setup_logging carry this attribute so a second call
# replaces only its own handlers (pytest's capture handlers stay in place).
_OWNED_HANDLER_FLAG = "_identsoft_handler"
_sql_timing_registered = False


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    Outputs timestamp, level, logger, message and the ``context`` extra.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "context"):
            log_data["context"] = getattr(record, "context", {})

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with colors for development.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Color a copy so other handlers see the plain level name
        color = self.COLORS.get(record.levelname, self.RESET)
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname:8}{self.RESET}"
        message = super().format(colored)
        context = getattr(record, "context", None)
        if context:
            message = f"{message} | {json.dumps(context, default=str)}"
        return message


def _own(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_HANDLER_FLAG, True)
    return handler


def _register_sql_timing() -> None:
    global _sql_timing_registered
    if _sql_timing_registered:
        return

    @event.listens_for(Engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(Engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        starts = conn.info.get("query_start_time")
        if not starts:
            return
        total_ms = (time.perf_counter() - starts.pop(-1)) * 1000
        logging.getLogger("sqlalchemy.performance").debug(
            f"Query executed in {total_ms:.2f}ms",
            extra={
                "context": {
                    "sql_query": statement[:500],
                    "sql_duration_ms": round(total_ms, 2),
                }
            },
        )

    _sql_timing_registered = True


def setup_logging(
    app: Optional[Flask] = None,
    log_level: Union[int, str] = "INFO",
    enable_sql_echo: bool = False,
    log_to_file: bool = False,
    use_json_format: bool = False,
) -> None:
    """
    Configure logging for the Flask application.

    Args:
        app: Flask application instance (required for request/response hooks)
        log_level: Logging level (int like logging.INFO or string "INFO")
        enable_sql_echo: Log every SQL statement with its duration
        log_to_file: Also write JSON logs to rotating files under logs/
        use_json_format: Use JSON format on the console instead of colors
    """
    if isinstance(log_level, int):
        level = log_level
    else:
        level = getattr(logging, str(log_level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        if getattr(handler, _OWNED_HANDLER_FLAG, False):
            handler.close()
            root_logger.removeHandler(handler)

    console_handler = _own(logging.StreamHandler(sys.stdout))
    console_handler.setLevel(level)
    if use_json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ConsoleFormatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_dir = Path(__file__).resolve().parent.parent.parent / "logs"
        try:
            log_dir.mkdir(exist_ok=True)
            file_handler = _own(
                logging.handlers.RotatingFileHandler(
                    log_dir / "identsoft.log",
                    maxBytes=10 * 1024 * 1024,  # 10 MB
                    backupCount=5,
                    encoding="utf-8",
                )
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(JSONFormatter())
            root_logger.addHandler(file_handler)

            error_handler = _own(
                logging.handlers.RotatingFileHandler(
                    log_dir / "identsoft_errors.log",
                    maxBytes=10 * 1024 * 1024,
                    backupCount=5,
                    encoding="utf-8",
                )
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(JSONFormatter())
            root_logger.addHandler(error_handler)
        except OSError as e:
            # Disk full, read-only filesystem: keep console logging only
            root_logger.warning(
                "Failed to create log files; logging to console only",
                extra={"context": {"log_dir": str(log_dir), "error": str(e)}},
            )

    if enable_sql_echo:
        _register_sql_timing()

    if app is not None:

        @app.before_request
        def log_request():
            g.request_start_time = time.time()
            g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
            g.route = (
                request.url_rule.rule if request.url_rule is not None else request.path
            )
            logging.getLogger("flask.request").info(
                f"{request.method} {request.path}",
                extra={
                    "context": {
                        "request_id": g.request_id,
                        "method": request.method,
                        "path": request.path,
                        "route": g.route,
                        "remote_addr": request.remote_addr,
                    }
                },
            )

        @app.after_request
        def log_response(response):
            if hasattr(g, "request_start_time"):
                duration_ms = (time.time() - g.request_start_time) * 1000
                response.headers["X-Request-ID"] = g.get("request_id", "")
                logging.getLogger("flask.response").info(
                    f"{request.method} {request.path} {response.status_code} in {duration_ms:.2f}ms",
                    extra={
                        "context": {
                            "request_id": g.get("request_id"),
                            "method": request.method,
                            "path": request.path,
                            "status_code": response.status_code,
                            "duration_ms": round(duration_ms, 2),
                        }
                    },
                )
            return response

    # Suppress noisy third-party loggers
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    app_logger = logging.getLogger("identsoft")
    app_logger.setLevel(level)
    app_logger.info(
        f"Logging configured: level={logging.getLevelName(level)}, "
        f"sql_echo={enable_sql_echo}, log_to_file={log_to_file}, "
        f"json_format={use_json_format}"
    )
