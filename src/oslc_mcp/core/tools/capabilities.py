from __future__ import annotations

from typing import Any, Dict, Optional

from oslc_mcp.core import capabilities as caps
from oslc_mcp.core import rdf
from oslc_mcp.core.capabilities import Capability, CapabilityKind
from oslc_mcp.core.client import OslcClient

_KINDS = {kind.name.lower(): kind for kind in CapabilityKind}


def _result(cap: Optional[Capability]) -> Dict[str, Any]:
    return {
        "found": cap is not None,
        "capability": cap.to_summary() if cap is not None else None,
    }


def _parse_kind(kind: str) -> CapabilityKind:
    try:
        return _KINDS[kind.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown capability kind {kind!r}; expected one of {sorted(_KINDS)}"
        ) from None


async def list_capabilities(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    kind: str = "query",
) -> Dict[str, Any]:
    """
    List every capability of one kind a provider advertises for a domain, in
    document order. kind: query | creation_factory | creation_dialog | selection_dialog.
    """
    cap_kind = _parse_kind(kind)
    document = await rdf.fetch_document(
        client, service_provider_url, tool="list_capabilities"
    )
    items = (
        [c.to_summary() for c in caps.iter_capabilities(document, domain, cap_kind)]
        if document is not None
        else []
    )
    return {"items": items, "count": len(items)}


async def lookup_query_capability(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve the query capability for a domain (e.g.
    http://open-services.net/ns/cm#) and optional resource type.
    Its `uri` is the query base to pass to run_oslc_query.
    """
    cap = await caps.lookup_capability(
        client,
        service_provider_url,
        domain,
        CapabilityKind.QUERY,
        resource_type,
        tool="lookup_query_capability",
    )
    return _result(cap)


async def lookup_creation_factory(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    usage: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve the creation factory for a domain, optionally narrowed by resource
    type and oslc:usage. Its `uri` is where create_resource should POST.
    """
    cap = await caps.lookup_creation_factory(
        client,
        service_provider_url,
        domain,
        resource_type,
        usage,
        tool="lookup_creation_factory",
    )
    return _result(cap)


async def lookup_creation_dialog(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
) -> Dict[str, Any]:
    cap = await caps.lookup_creation_dialog(
        client,
        service_provider_url,
        domain,
        resource_type,
        tool="lookup_creation_dialog",
    )
    return _result(cap)


async def lookup_selection_dialog(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
) -> Dict[str, Any]:
    cap = await caps.lookup_selection_dialog(
        client,
        service_provider_url,
        domain,
        resource_type,
        tool="lookup_selection_dialog",
    )
    return _result(cap)
