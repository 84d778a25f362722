"""Logging setup and filters that scrub contact details."""

from __future__ import annotations

import logging
import re

from venue_office.core.config import get_settings

_SENSITIVE_PATTERN = re.compile(
    r"([\w.+-]+@[\w-]+\.[\w.-]+|(?<![\w-])\+?\d(?:[\s-]?\d){8,}(?![\w-]))",
)


class SensitiveFilter(logging.Filter):
    """Replace e-mail addresses and phone numbers with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _SENSITIVE_PATTERN.sub("**REDACTED**", record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: _scrub(value) for key, value in record.args.items()
                }
            else:
                record.args = tuple(_scrub(arg) for arg in record.args)
        return True


def _scrub(value: object) -> object:
    if isinstance(value, str):
        return _SENSITIVE_PATTERN.sub("**REDACTED**", value)
    return value


def configure_logging(level: str | None = None) -> None:
    """Apply the configured level and install the scrubbing filter."""

    resolved = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    root.setLevel(resolved)
    for logger_name in ("", "venue_office"):
        target = logging.getLogger(logger_name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


__all__ = ["SensitiveFilter", "configure_logging"]
