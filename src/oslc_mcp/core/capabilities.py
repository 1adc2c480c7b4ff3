"""
Capability discovery over OSLC service provider documents.

A provider advertises, per domain, query capabilities, creation factories and
creation/selection dialogs. Resolution picks one capability per request:

1. a candidate whose oslc:resourceType equals the requested type (creation
   factories asked for a usage must also declare that usage);
2. otherwise a candidate tagged with oslc:usage oslc:default;
3. otherwise the first candidate of the last service that offers any, but
   only when it declares no resource type.

Nothing is cached: every lookup fetches the provider document again.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Tuple

from lxml import etree

from . import rdf
from .client import OslcClient

log = logging.getLogger("oslc_mcp.capabilities")


class CapabilityKind(enum.Enum):
    # (property element, class element, action property)
    QUERY = ("queryCapability", "QueryCapability", "queryBase")
    CREATION_FACTORY = ("creationFactory", "CreationFactory", "creation")
    CREATION_DIALOG = ("creationDialog", "Dialog", "dialog")
    SELECTION_DIALOG = ("selectionDialog", "Dialog", "dialog")

    @property
    def property_name(self) -> str:
        return self.value[0]

    @property
    def class_name(self) -> str:
        return self.value[1]

    @property
    def action_property(self) -> str:
        return self.value[2]


@dataclass(frozen=True)
class Capability:
    kind: CapabilityKind
    domain: str
    action_uri: Optional[str]
    resource_types: Tuple[str, ...] = ()
    usages: Tuple[str, ...] = ()
    title: Optional[str] = None
    label: Optional[str] = None
    hint_width: Optional[str] = None
    hint_height: Optional[str] = None
    # position of the owning Service among the domain's matching services
    service_index: int = field(default=0, compare=False)
    element: Optional[etree._Element] = field(
        default=None, compare=False, repr=False
    )

    @property
    def is_default(self) -> bool:
        return rdf.OSLC_DEFAULT_USAGE in self.usages

    @property
    def is_untyped(self) -> bool:
        return not self.resource_types

    def to_summary(self) -> dict:
        return {
            "kind": self.kind.name.lower(),
            "domain": self.domain,
            "uri": self.action_uri,
            "title": self.title,
            "label": self.label,
            "resource_types": list(self.resource_types),
            "usages": list(self.usages),
            "hint_width": self.hint_width,
            "hint_height": self.hint_height,
        }


def _capability_from_element(
    el: etree._Element, kind: CapabilityKind, domain: str, service_index: int = 0
) -> Capability:
    return Capability(
        kind=kind,
        domain=domain,
        action_uri=rdf.child_resource(el, kind.action_property),
        resource_types=tuple(rdf.child_resources(el, "resourceType")),
        usages=tuple(rdf.child_resources(el, "usage")),
        title=rdf.child_text(el, "title", rdf.DCTERMS),
        label=rdf.child_text(el, "label"),
        hint_width=rdf.child_text(el, "hintWidth"),
        hint_height=rdf.child_text(el, "hintHeight"),
        service_index=service_index,
        element=el,
    )


def iter_services(
    document: etree._Element, domain: str
) -> Iterator[etree._Element]:
    """Service nodes of the provider that declare `domain`, in document order."""
    for service in rdf.find_path(document, "ServiceProvider", "service", "Service"):
        if domain in rdf.child_resources(service, "domain"):
            yield service


def iter_capabilities(
    document: etree._Element, domain: str, kind: CapabilityKind
) -> Iterator[Capability]:
    """Every capability of `kind` advertised for `domain`, in document order."""
    for index, service in enumerate(iter_services(document, domain)):
        for prop in rdf.find_children(service, kind.property_name):
            for el in rdf.find_children(prop, kind.class_name):
                yield _capability_from_element(el, kind, domain, index)


def select_capability(
    candidates: Iterable[Capability],
    resource_type: Optional[str] = None,
    usage: Optional[str] = None,
) -> Optional[Capability]:
    """
    Fold candidates with the three-tier policy. Within a tier the last
    qualifying candidate in document order wins. The untyped fallback looks at
    the first candidate of each service, so a later service replaces it.
    """
    first: Optional[Capability] = None
    service: Optional[int] = None
    exact: Optional[Capability] = None
    default: Optional[Capability] = None

    for cap in candidates:
        if cap.service_index != service:
            service = cap.service_index
            first = cap
        if resource_type is not None and resource_type in cap.resource_types:
            if usage is None or usage in cap.usages:
                exact = cap
        if cap.is_default:
            default = cap

    if exact is not None:
        return exact
    if default is not None:
        return default
    if first is not None and first.is_untyped:
        return first
    return None


def find_capability(
    document: etree._Element,
    domain: str,
    kind: CapabilityKind,
    resource_type: Optional[str] = None,
    usage: Optional[str] = None,
) -> Optional[Capability]:
    # usage qualifies creation factories only
    if kind is not CapabilityKind.CREATION_FACTORY:
        usage = None
    return select_capability(
        iter_capabilities(document, domain, kind), resource_type, usage
    )


def find_query_capability(document, domain, resource_type=None):
    return find_capability(document, domain, CapabilityKind.QUERY, resource_type)


def find_creation_factory(document, domain, resource_type=None, usage=None):
    return find_capability(
        document, domain, CapabilityKind.CREATION_FACTORY, resource_type, usage
    )


def find_creation_dialog(document, domain, resource_type=None):
    return find_capability(
        document, domain, CapabilityKind.CREATION_DIALOG, resource_type
    )


def find_selection_dialog(document, domain, resource_type=None):
    return find_capability(
        document, domain, CapabilityKind.SELECTION_DIALOG, resource_type
    )


# --- Client lookups ------------------------------------------------------- #


async def lookup_capability(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    kind: CapabilityKind,
    resource_type: Optional[str] = None,
    usage: Optional[str] = None,
    *,
    tool: Optional[str] = None,
) -> Optional[Capability]:
    document = await rdf.fetch_document(client, service_provider_url, tool=tool)
    if document is None:
        return None
    cap = find_capability(document, domain, kind, resource_type, usage)
    log.debug(
        "capability.lookup",
        extra={
            "domain": domain,
            "capability": kind.name.lower(),
            "resource_type": resource_type,
            "status": "found" if cap is not None else "not_found",
        },
    )
    return cap


async def lookup_query_capability_uri(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    *,
    tool: Optional[str] = None,
) -> Optional[str]:
    cap = await lookup_capability(
        client,
        service_provider_url,
        domain,
        CapabilityKind.QUERY,
        resource_type,
        tool=tool,
    )
    return cap.action_uri if cap is not None else None


async def lookup_creation_factory(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    usage: Optional[str] = None,
    *,
    tool: Optional[str] = None,
) -> Optional[Capability]:
    return await lookup_capability(
        client,
        service_provider_url,
        domain,
        CapabilityKind.CREATION_FACTORY,
        resource_type,
        usage,
        tool=tool,
    )


async def lookup_creation_factory_uri(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    usage: Optional[str] = None,
    *,
    tool: Optional[str] = None,
) -> Optional[str]:
    cap = await lookup_creation_factory(
        client, service_provider_url, domain, resource_type, usage, tool=tool
    )
    return cap.action_uri if cap is not None else None


async def lookup_creation_dialog(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    *,
    tool: Optional[str] = None,
) -> Optional[Capability]:
    return await lookup_capability(
        client,
        service_provider_url,
        domain,
        CapabilityKind.CREATION_DIALOG,
        resource_type,
        tool=tool,
    )


async def lookup_selection_dialog(
    client: OslcClient,
    service_provider_url: str,
    domain: str,
    resource_type: Optional[str] = None,
    *,
    tool: Optional[str] = None,
) -> Optional[Capability]:
    return await lookup_capability(
        client,
        service_provider_url,
        domain,
        CapabilityKind.SELECTION_DIALOG,
        resource_type,
        tool=tool,
    )


__all__ = [
    "CapabilityKind",
    "Capability",
    "iter_services",
    "iter_capabilities",
    "select_capability",
    "find_capability",
    "find_query_capability",
    "find_creation_factory",
    "find_creation_dialog",
    "find_selection_dialog",
    "lookup_capability",
    "lookup_query_capability_uri",
    "lookup_creation_factory",
    "lookup_creation_factory_uri",
    "lookup_creation_dialog",
    "lookup_selection_dialog",
]
