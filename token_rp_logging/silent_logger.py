# SPDX-License-Identifier: MIT
# Copyright (c) 2025 token-rp contributors

"""In-memory logger for tests."""

from typing import Any, Dict, List, NamedTuple, Optional

from .logger import Logger


class CapturedLog(NamedTuple):
    level: str
    message: str
    fields: Dict[str, Any]


class SilentLogger(Logger):
    """Captures every entry, whatever its level, without writing anything.

    Besides message lookups, :meth:`mentions` searches messages and field
    values so tests can check that a credential never made it into a log.
    """

    def __init__(self, name: str = "token_rp"):
        self.name = name
        self.records: List[CapturedLog] = []

    def _log(self, level: str, message: str, **kwargs: Any) -> None:
        self.records.append(CapturedLog(level, message, dict(kwargs)))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log("ERROR", message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log("CRITICAL", message, **kwargs)

    def get_logs(self, level: Optional[str] = None) -> List[CapturedLog]:
        if level is None:
            return list(self.records)
        return [record for record in self.records if record.level == level]

    def has_log(self, message: str, level: Optional[str] = None, **fields: Any) -> bool:
        """Check for an entry whose message contains ``message``.

        Args:
            message: Substring of the logged message
            level: Only consider entries at this level
            **fields: Structured fields the entry must carry with equal values

        Returns:
            True if a matching entry was captured
        """
        for record in self.get_logs(level):
            if message not in record.message:
                continue
            if all(name in record.fields and record.fields[name] == value for name, value in fields.items()):
                return True
        return False

    def mentions(self, value: str) -> bool:
        """Return True if ``value`` occurs in any captured message or field."""
        return any(
            value in record.message or any(value in str(field) for field in record.fields.values())
            for record in self.records
        )
