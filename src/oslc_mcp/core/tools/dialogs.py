"""
Dialog tools.

An MCP client has no embedded browser to host a delegated dialog, so these
tools stop after resolving the render URL: the caller opens it wherever a UI is
available.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from oslc_mcp.core import capabilities as caps
from oslc_mcp.core.client import OslcClient
from oslc_mcp.core.dialogs import prepare_dialog


async def prepare_selection_dialog(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Resolve the selection dialog URL and size hints for a domain/type."""
    cap = await caps.lookup_selection_dialog(
        client,
        service_provider_url,
        domain,
        resource_type,
        tool="prepare_selection_dialog",
    )
    if cap is None:
        return {"found": False, "dialog": None}
    descriptor = await prepare_dialog(client, cap, tool="prepare_selection_dialog")
    return {"found": True, "dialog": descriptor.model_dump()}


async def prepare_creation_dialog(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    draft: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve the creation dialog URL. With an RDF/XML `draft`, the draft is
    POSTed first and the returned URL opens a dialog pre-filled from it.
    """
    cap = await caps.lookup_creation_dialog(
        client,
        service_provider_url,
        domain,
        resource_type,
        tool="prepare_creation_dialog",
    )
    if cap is None:
        return {"found": False, "dialog": None}
    descriptor = await prepare_dialog(
        client, cap, draft or None, tool="prepare_creation_dialog"
    )
    return {"found": True, "dialog": descriptor.model_dump()}
