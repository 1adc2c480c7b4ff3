"""
Shared helpers for turning OslcResponse objects into tool payloads.
"""

from typing import Any, Dict, Optional

from oslc_mcp.core.client import OslcResponse

MAX_BODY_CHARS = 20000


def response_summary(
    resp: OslcResponse, *, include_body: bool = True
) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "url": resp.url,
        "status": resp.status_code,
        "content_type": resp.content_type or None,
        "etag": resp.etag,
        "location": resp.location,
    }
    if include_body:
        summary["body"] = truncate(resp.text)
        summary["truncated"] = len(resp.text or "") > MAX_BODY_CHARS
    return summary


def truncate(text: Optional[str], limit: int = MAX_BODY_CHARS) -> Optional[str]:
    if text is None:
        return None
    return text if len(text) <= limit else text[:limit]
