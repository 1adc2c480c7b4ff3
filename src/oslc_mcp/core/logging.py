import logging
import sys
from typing import Any, Optional, TextIO

# extras rendered after the event, in this order
LOG_EXTRA_FIELDS = (
    "tool",
    "method",
    "endpoint",
    "status",
    "duration_ms",
    "domain",
    "capability",
    "resource_type",
    "source",
    "error_type",
)


class LogfmtFormatter(logging.Formatter):
    """
    Render records as one logfmt line:
    level=info logger=oslc_mcp.client event=oslc_call tool=... status=200
    Extras that a record does not carry are left out.
    """

    def format(self, record: logging.LogRecord) -> str:
        pairs = [("level", record.levelname.lower()), ("logger", record.name)]

        event = record.getMessage()
        if event:
            pairs.append(("event", event))

        pairs.extend(
            (key, getattr(record, key))
            for key in LOG_EXTRA_FIELDS
            if getattr(record, key, None) is not None
        )

        if record.exc_info and record.exc_info[0] is not None:
            pairs.append(("exc_type", record.exc_info[0].__name__))

        return " ".join(f"{key}={self._quote(val)}" for key, val in pairs)

    @staticmethod
    def _quote(val: Any) -> str:
        if isinstance(val, (bool, int, float)):
            return str(val)
        text = str(val)
        if text and not any(ch in text for ch in ' ="'):
            return text
        return '"' + text.replace('"', '\\"') + '"'


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """
    Route all logging through a single logfmt handler on stderr.
    stdout carries the MCP stdio protocol and must stay clean.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(LogfmtFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))


__all__ = ["setup_logging", "LogfmtFormatter", "LOG_EXTRA_FIELDS"]
