from __future__ import annotations

from typing import Any, Dict, Optional

from oslc_mcp.core.client import RDF_XML, OslcClient
from oslc_mcp.core.tools._responses import response_summary


async def get_resource(
    client: OslcClient,
    url: str,
    *,
    media_type: str = RDF_XML,
    send_version_header: bool = True,
) -> Dict[str, Any]:
    """
    Fetch any OSLC resource. `media_type` is sent as Accept
    (application/rdf+xml, application/ld+json, text/turtle, ...).
    Set send_version_header=False for providers that reject OSLC-Core-Version.
    """
    resp = await client.get_resource(
        url,
        media_type=media_type,
        use_version_header=send_version_header,
        tool="get_resource",
    )
    return response_summary(resp)


async def create_resource(
    client: OslcClient,
    url: str,
    body: str,
    *,
    media_type: str = RDF_XML,
    accept_type: str = RDF_XML,
) -> Dict[str, Any]:
    """
    POST a resource to a creation factory URI.
    The new resource's URI is returned as `location`.
    """
    resp = await client.create_resource(
        url,
        body,
        media_type=media_type,
        accept_type=accept_type,
        tool="create_resource",
    )
    return response_summary(resp)


async def update_resource(
    client: OslcClient,
    url: str,
    body: str,
    *,
    media_type: str = RDF_XML,
    accept_type: str = RDF_XML,
    if_match: Optional[str] = None,
) -> Dict[str, Any]:
    """
    PUT a full replacement of a resource. Pass the ETag from get_resource as
    `if_match` to guard against concurrent edits.
    """
    resp = await client.update_resource(
        url,
        body,
        media_type=media_type,
        accept_type=accept_type,
        if_match=if_match,
        tool="update_resource",
    )
    return response_summary(resp)


async def delete_resource(client: OslcClient, url: str) -> Dict[str, Any]:
    resp = await client.delete_resource(url, tool="delete_resource")
    return {"url": url, "status": resp.status_code, "deleted": True}
