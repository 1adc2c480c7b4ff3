from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, List, Optional
from urllib.parse import urlencode

from lxml import etree

from . import rdf
from .client import RDF_XML, OslcClient, OslcResponse
from .errors import OslcParseError, QueryExhaustedError
from .models import QuerySpec

log = logging.getLogger("oslc_mcp.query")

# encodeURIComponent leaves these unescaped; spaces become "+" as in form encoding
_URI_COMPONENT_SAFE = "!'()*"


def _encode(params: Dict[str, str]) -> str:
    return urlencode(params, safe=_URI_COMPONENT_SAFE)


def pagination_params(spec: QuerySpec) -> Optional[str]:
    if spec.page_size > 0:
        return _encode({"oslc.paging": "true", "oslc.pageSize": str(spec.page_size)})
    return None


def oslc_query_params(spec: QuerySpec) -> Optional[str]:
    clauses = (
        ("oslc.where", spec.where),
        ("oslc.select", spec.select),
        ("oslc.orderBy", spec.order_by),
        ("oslc.searchTerms", spec.search_terms),
        ("oslc.prefix", spec.prefix),
    )
    params = {key: value for key, value in clauses if value}
    return _encode(params) if params else None


def build_query_url(spec: QuerySpec) -> str:
    """
    capability URI, then paging params introduced by "?", then query params
    introduced by "&" (or by "?" when there are no paging params).
    """
    url = spec.capability_uri
    paging = pagination_params(spec)
    query = oslc_query_params(spec)

    if paging is not None:
        url += "?" + paging
    if query is not None:
        url += ("&" if paging is not None else "?") + query
    return url


def _as_element(document) -> Optional[etree._Element]:
    # result pages served as text/plain arrive as str
    if isinstance(document, (str, bytes)):
        try:
            return rdf.parse_document(document)
        except OslcParseError:
            return None
    return document if isinstance(document, etree._Element) else None


def next_page_url(document) -> Optional[str]:
    """rdf:resource of the first oslc:nextPage in a query result, if any."""
    document = _as_element(document)
    if document is None:
        return None
    return rdf.descendant_resource(document, "nextPage")


def total_count(document) -> Optional[int]:
    document = _as_element(document)
    if document is None:
        return None
    for node in rdf.find_descendants(document, "totalCount"):
        try:
            return int((node.text or "").strip())
        except ValueError:
            return None
    return None


def query_members(document) -> List[str]:
    """
    URIs of the rdfs:member entries of a query result. Members may be
    references (rdf:resource) or inlined resources (rdf:about on the child).
    """
    document = _as_element(document)
    if document is None:
        return []
    members: List[str] = []
    for member in rdf.find_descendants(document, "member", rdf.RDFS):
        uri = rdf.resource_attr(member)
        if uri is None:
            for child in member:
                uri = rdf.about_attr(child)
                if uri is not None:
                    break
        if uri is not None:
            members.append(uri)
    return members


class OslcQuery:
    """
    Cursor over the pages of one OSLC query.

    The URL starts as the built query URL and is replaced by the provider's
    oslc:nextPage link on each advance. A cursor serves one caller; do not run
    next_page() concurrently on the same instance.
    """

    def __init__(self, client: OslcClient, spec: QuerySpec):
        self.client = client
        self.spec = spec
        self.url = build_query_url(spec)
        self.last_result: Optional[OslcResponse] = None

    @classmethod
    def create(
        cls,
        client: OslcClient,
        capability_uri: str,
        page_size: int = 0,
        select: Optional[str] = None,
        where: Optional[str] = None,
        order_by: Optional[str] = None,
        search_terms: Optional[str] = None,
        prefix: Optional[str] = None,
    ) -> "OslcQuery":
        return cls(
            client,
            QuerySpec(
                capability_uri=capability_uri,
                page_size=page_size,
                select=select,
                where=where,
                order_by=order_by,
                search_terms=search_terms,
                prefix=prefix,
            ),
        )

    @property
    def has_next_page(self) -> bool:
        if self.last_result is None:
            return True
        return next_page_url(self.last_result.document) is not None

    async def get_response(self) -> OslcResponse:
        # The version header is omitted: it triggers a CORS preflight that
        # some providers (RTC) answer with a redirect.
        resp = await self.client.get_resource(
            self.url, media_type=RDF_XML, use_version_header=False, tool="query"
        )
        self.last_result = resp
        return resp

    async def next_page(self) -> OslcResponse:
        if self.last_result is not None:
            link = next_page_url(self.last_result.document)
            if link is None:
                raise QueryExhaustedError(self.url)
            log.debug("query.next_page", extra={"endpoint": link})
            self.url = link
        return await self.get_response()

    async def pages(self) -> AsyncIterator[OslcResponse]:
        """Yield the current page, then every following page."""
        if self.last_result is None:
            yield await self.get_response()
        else:
            yield self.last_result
        while self.has_next_page:
            yield await self.next_page()


__all__ = [
    "pagination_params",
    "oslc_query_params",
    "build_query_url",
    "next_page_url",
    "total_count",
    "query_members",
    "OslcQuery",
]
