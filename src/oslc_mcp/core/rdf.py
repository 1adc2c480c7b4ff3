"""
RDF/XML helpers over lxml trees.

Providers serialize the same graph in different ways: with prefixed elements
(`oslc:Service`), with a default namespace, or occasionally with no namespace
at all. Element matching is therefore by local name, accepting either the
expected namespace or none.
"""

from typing import Iterator, List, Optional, Union

from lxml import etree

from .client import RDF_XML, XML_PARSER, OslcClient
from .errors import OslcParseError

OSLC = "http://open-services.net/ns/core#"
RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS = "http://www.w3.org/2000/01/rdf-schema#"
DCTERMS = "http://purl.org/dc/terms/"

OSLC_DEFAULT_USAGE = OSLC + "default"

NAMESPACES = {
    "oslc": OSLC,
    "rdf": RDF,
    "rdfs": RDFS,
    "dcterms": DCTERMS,
}


def parse_document(data: Union[str, bytes]) -> etree._Element:
    """Parse an RDF/XML body into its root element."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        return etree.fromstring(data, XML_PARSER)
    except etree.XMLSyntaxError as exc:
        raise OslcParseError(f"Malformed RDF/XML document: {exc}") from exc


def _matches(el: etree._Element, local: str, ns: Optional[str]) -> bool:
    # comments and processing instructions have non-string tags
    if not isinstance(el.tag, str):
        return False
    qname = etree.QName(el)
    return qname.localname == local and qname.namespace in (ns, None)


def find_children(
    el: etree._Element, local: str, ns: Optional[str] = OSLC
) -> List[etree._Element]:
    return [child for child in el if _matches(child, local, ns)]


def find_descendants(
    el: etree._Element, local: str, ns: Optional[str] = OSLC
) -> Iterator[etree._Element]:
    """Yield matching descendants (including `el` itself) in document order."""
    for node in el.iter():
        if _matches(node, local, ns):
            yield node


def find_path(
    el: etree._Element, *steps: str, ns: Optional[str] = OSLC
) -> Iterator[etree._Element]:
    """
    Yield nodes reached by a child-axis path such as
    ("ServiceProvider", "service", "Service"). The first step may match `el`
    itself or any descendant; later steps are direct children.
    """
    if not steps:
        return
    first, rest = steps[0], steps[1:]
    for start in find_descendants(el, first, ns):
        level = [start]
        for step in rest:
            level = [c for node in level for c in find_children(node, step, ns)]
        yield from level


def resource_attr(el: Optional[etree._Element]) -> Optional[str]:
    """Value of rdf:resource, falling back to an unqualified `resource`."""
    if el is None:
        return None
    value = el.get(f"{{{RDF}}}resource")
    if value is None:
        value = el.get("resource")
    return value


def about_attr(el: Optional[etree._Element]) -> Optional[str]:
    if el is None:
        return None
    value = el.get(f"{{{RDF}}}about")
    if value is None:
        value = el.get("about")
    return value


def child_resource(
    el: etree._Element, local: str, ns: Optional[str] = OSLC
) -> Optional[str]:
    """rdf:resource of the first matching child, or None."""
    for child in find_children(el, local, ns):
        return resource_attr(child)
    return None


def child_resources(
    el: etree._Element, local: str, ns: Optional[str] = OSLC
) -> List[str]:
    values = []
    for child in find_children(el, local, ns):
        value = resource_attr(child)
        if value is not None:
            values.append(value)
    return values


def child_text(
    el: etree._Element, local: str, ns: Optional[str] = OSLC
) -> Optional[str]:
    """Concatenated text of the first matching child (inline XML literals included)."""
    for child in find_children(el, local, ns):
        return "".join(child.itertext()).strip()
    return None


def descendant_resource(
    el: etree._Element, local: str, ns: Optional[str] = OSLC
) -> Optional[str]:
    """rdf:resource of the first matching descendant anywhere below `el`."""
    for node in find_descendants(el, local, ns):
        if node is el:
            continue
        return resource_attr(node)
    return None


def to_string(el: etree._Element) -> str:
    return etree.tostring(el, encoding="unicode")


async def fetch_document(
    client: OslcClient,
    url: str,
    *,
    use_version_header: bool = True,
    tool: Optional[str] = None,
) -> Optional[etree._Element]:
    """GET `url` as RDF/XML and return its root element (None for an empty body)."""
    resp = await client.get_resource(
        url, media_type=RDF_XML, use_version_header=use_version_header, tool=tool
    )
    document = resp.document
    if isinstance(document, str):
        # some providers label RDF/XML as text/plain or octet-stream
        document = parse_document(document)
    return document if isinstance(document, etree._Element) else None


__all__ = [
    "OSLC",
    "RDF",
    "RDFS",
    "DCTERMS",
    "OSLC_DEFAULT_USAGE",
    "NAMESPACES",
    "parse_document",
    "find_children",
    "find_descendants",
    "find_path",
    "resource_attr",
    "about_attr",
    "child_resource",
    "child_resources",
    "child_text",
    "descendant_resource",
    "to_string",
    "fetch_document",
]
