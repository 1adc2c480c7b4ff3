from __future__ import annotations

import logging
from typing import Any, Dict

# LogRecord attributes that `extra` must not overwrite
RESERVED_LOG_KEYS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime"}

OBSERVABILITY_LOGGER = "oslc_mcp.observability"


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        k: v for k, v in fields.items() if k not in RESERVED_LOG_KEYS and v is not None
    }


def log_event(
    event: str,
    logger: logging.Logger | None = None,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """
    Emit one structured event.
    Fields travel as `extra` so LogfmtFormatter can render them; None values
    and reserved LogRecord attribute names are dropped.
    """
    log = logger or logging.getLogger(OBSERVABILITY_LOGGER)
    if not log.isEnabledFor(level):
        return
    log.log(level, event, extra=_clean_fields(fields))


__all__ = ["log_event", "OBSERVABILITY_LOGGER"]
