"""Logging setup and per-request access log for the Flask app."""

from __future__ import annotations

import datetime
import json
import logging
import time
import uuid

from flask import Flask, g, request, session

access_logger = logging.getLogger("workforce.request")

REQUEST_ID_HEADER = "X-Request-ID"


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record):
        log_record = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "request_id": getattr(record, "request_id", "N/A"),
            "user_id": getattr(record, "user_id", "N/A"),
            "execution_time_ms": getattr(record, "execution_time_ms", "N/A"),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def configure_logging(level: str = "INFO", *, json_format: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    # Re-running create_app() (tests) must not stack handlers.
    for existing in list(root.handlers):
        if getattr(existing, "_workforce_handler", False):
            root.removeHandler(existing)
    handler._workforce_handler = True
    root.addHandler(handler)


def install_request_logging(app: Flask) -> None:
    @app.before_request
    def _start_request_timer():
        g.request_started = time.time()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

    @app.after_request
    def _log_request(response):
        duration_ms = int((time.time() - g.get("request_started", time.time())) * 1000)

        level = logging.INFO
        if 400 <= response.status_code < 500:
            level = logging.WARNING
        elif response.status_code >= 500:
            level = logging.ERROR

        access_logger.log(
            level,
            "%s %s - %s (%sms)",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": g.get("request_id", "N/A"),
                "user_id": session.get("user_id", "Anonymous"),
                "execution_time_ms": duration_ms,
            },
        )
        response.headers[REQUEST_ID_HEADER] = g.get("request_id", "N/A")
        return response
