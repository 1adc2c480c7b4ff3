from __future__ import annotations

from typing import Any, Dict

from oslc_mcp.core import catalog
from oslc_mcp.core.client import OslcClient


async def list_service_providers(client: OslcClient, catalog_url: str) -> Dict[str, Any]:
    """
    List the service providers (projects) advertised by a catalog.
    Returns {items: [{title, url}], count}.
    """
    refs = await catalog.list_service_providers(
        client, catalog_url, tool="list_service_providers"
    )
    items = [ref.model_dump() for ref in refs]
    return {"items": items, "count": len(items)}


async def find_service_provider(
    client: OslcClient, catalog_url: str, title: str
) -> Dict[str, Any]:
    """Resolve a service provider URL by its exact dcterms:title."""
    url = await catalog.lookup_service_provider_url(
        client, catalog_url, title, tool="find_service_provider"
    )
    return {"title": title, "url": url, "found": url is not None}
