from __future__ import annotations

from typing import List, Optional

from lxml import etree

from . import rdf
from .client import OslcClient
from .models import ServiceProviderRef


def iter_service_providers(document: etree._Element):
    """ServiceProvider entries of a catalog, in document order."""
    for sp in rdf.find_path(
        document, "ServiceProviderCatalog", "serviceProvider", "ServiceProvider"
    ):
        yield ServiceProviderRef(
            title=rdf.child_text(sp, "title", rdf.DCTERMS),
            url=rdf.about_attr(sp),
        )


def find_service_provider_url(
    document: etree._Element, title: str
) -> Optional[str]:
    for ref in iter_service_providers(document):
        if ref.title == title:
            return ref.url
    return None


async def list_service_providers(
    client: OslcClient, catalog_url: str, *, tool: Optional[str] = None
) -> List[ServiceProviderRef]:
    document = await rdf.fetch_document(client, catalog_url, tool=tool)
    if document is None:
        return []
    return list(iter_service_providers(document))


async def lookup_service_provider_url(
    client: OslcClient,
    catalog_url: str,
    title: str,
    *,
    tool: Optional[str] = None,
) -> Optional[str]:
    """URL (rdf:about) of the catalog's service provider titled `title`."""
    document = await rdf.fetch_document(client, catalog_url, tool=tool)
    if document is None:
        return None
    return find_service_provider_url(document, title)


__all__ = [
    "iter_service_providers",
    "find_service_provider_url",
    "list_service_providers",
    "lookup_service_provider_url",
]
