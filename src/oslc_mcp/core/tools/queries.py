from __future__ import annotations

from typing import Any, Dict, Optional

from oslc_mcp.core import capabilities as caps
from oslc_mcp.core.client import OslcClient, OslcResponse
from oslc_mcp.core.models import QuerySpec
from oslc_mcp.core.query import (
    OslcQuery,
    next_page_url,
    query_members,
    total_count,
)
from oslc_mcp.core.tools._responses import truncate

MAX_PAGE_SIZE = 500


def _clamp_page_size(page_size: int) -> int:
    if page_size < 0:
        raise ValueError("page_size must be >= 0")
    return min(page_size, MAX_PAGE_SIZE)


def _page_to_result(
    url: str, resp: OslcResponse, *, include_body: bool
) -> Dict[str, Any]:
    members = query_members(resp.document)
    result: Dict[str, Any] = {
        "url": url,
        "members": members,
        "count": len(members),
        "total_count": total_count(resp.document),
        "next_page_url": next_page_url(resp.document),
    }
    if include_body:
        result["body"] = truncate(resp.text)
    return result


async def run_oslc_query(
    client: OslcClient,
    capability_uri: str,
    *,
    page_size: int = 0,
    select: Optional[str] = None,
    where: Optional[str] = None,
    order_by: Optional[str] = None,
    search_terms: Optional[str] = None,
    prefix: Optional[str] = None,
    include_body: bool = False,
) -> Dict[str, Any]:
    """
    Run an OSLC query against a query capability URI and return the first page.

    page_size=0 asks for all results at once. Clauses use OSLC query syntax,
    e.g. where='dcterms:title="Crash"', select='dcterms:title,oslc_cm:status',
    prefix='dcterms=<http://purl.org/dc/terms/>'. Follow `next_page_url`
    with fetch_query_page.
    """
    query = OslcQuery(
        client,
        QuerySpec(
            capability_uri=capability_uri,
            page_size=_clamp_page_size(page_size),
            select=select,
            where=where,
            order_by=order_by,
            search_terms=search_terms,
            prefix=prefix,
        ),
    )
    url = query.url
    resp = await query.get_response()
    return _page_to_result(url, resp, include_body=include_body)


async def fetch_query_page(
    client: OslcClient, page_url: str, *, include_body: bool = False
) -> Dict[str, Any]:
    """Fetch a query result page by its oslc:nextPage URL."""
    resp = await client.get_resource(
        page_url, use_version_header=False, tool="fetch_query_page"
    )
    return _page_to_result(page_url, resp, include_body=include_body)


async def query_domain(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    *,
    page_size: int = 0,
    select: Optional[str] = None,
    where: Optional[str] = None,
    order_by: Optional[str] = None,
    search_terms: Optional[str] = None,
    prefix: Optional[str] = None,
    include_body: bool = False,
) -> Dict[str, Any]:
    """
    Resolve the domain's query capability on a service provider, then run
    the query. Returns found=False when the provider advertises none.
    """
    capability_uri = await caps.lookup_query_capability_uri(
        client, service_provider_url, domain, resource_type, tool="query_domain"
    )
    if not capability_uri:
        return {"found": False, "capability_uri": None}

    result = await run_oslc_query(
        client,
        capability_uri,
        page_size=page_size,
        select=select,
        where=where,
        order_by=order_by,
        search_terms=search_terms,
        prefix=prefix,
        include_body=include_body,
    )
    return {"found": True, "capability_uri": capability_uri, **result}
