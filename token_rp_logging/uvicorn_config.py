# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""uvicorn logging in the same JSON shape as :class:`~token_rp_logging.StdoutLogger`.

Access log lines are re-emitted as structured request fields. The query
string is dropped from the logged path since clients may put tokens there.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict


def _entry(record: logging.LogRecord, logger_name: str, message: str) -> Dict[str, Any]:
    return {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "level": record.levelname,
        "logger": logger_name,
        "message": message,
    }


class JSONFormatter(logging.Formatter):
    """Formats uvicorn server records as JSON lines."""

    def __init__(self, logger_name: str = "token-rp"):
        super().__init__()
        self.logger_name = logger_name

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(_entry(record, self.logger_name, record.getMessage()), default=str)


class AccessLogFormatter(JSONFormatter):
    """Formats uvicorn access records as one ``Request served`` entry each.

    uvicorn passes ``(client_addr, method, full_path, http_version, status_code)``
    as the record arguments.
    """

    def format(self, record: logging.LogRecord) -> str:
        if not isinstance(record.args, tuple) or len(record.args) != 5:
            return super().format(record)

        client_addr, method, full_path, http_version, status_code = record.args
        entry = _entry(record, self.logger_name, "Request served")
        entry["extra"] = {
            "client": client_addr,
            "method": method,
            "path": str(full_path).split("?", 1)[0],
            "http_version": http_version,
            "status_code": status_code,
        }
        return json.dumps(entry, default=str)


def create_uvicorn_log_config(service_name: str, log_level: str = "INFO") -> Dict[str, Any]:
    """Build a ``log_config`` for :class:`uvicorn.Config`.

    Access lines are only shown at DEBUG, i.e. with ``--verbose``.
    """
    access_level = "DEBUG" if log_level == "DEBUG" else "WARNING"

    def handler(formatter: str) -> Dict[str, Any]:
        return {"class": "logging.StreamHandler", "formatter": formatter, "stream": "ext://sys.stdout"}

    def logger(handler_name: str, level: str) -> Dict[str, Any]:
        return {"handlers": [handler_name], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JSONFormatter, "logger_name": service_name},
            "access": {"()": AccessLogFormatter, "logger_name": service_name},
        },
        "handlers": {
            "console": handler("json"),
            "access": handler("access"),
        },
        "loggers": {
            "uvicorn": logger("console", log_level),
            "uvicorn.error": logger("console", log_level),
            "uvicorn.access": logger("access", access_level),
        },
    }
