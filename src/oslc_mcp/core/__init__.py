"""Core domain surface for oslc-mcp (transport-agnostic)."""

from .capabilities import (
    Capability,
    CapabilityKind,
    find_capability,
    iter_capabilities,
    lookup_capability,
    lookup_creation_dialog,
    lookup_creation_factory,
    lookup_creation_factory_uri,
    lookup_query_capability_uri,
    lookup_selection_dialog,
    select_capability,
)
from .catalog import list_service_providers, lookup_service_provider_url
from .client import (
    DEFAULT_OSLC_VERSION,
    OSLC_VERSION_HEADER,
    RDF_XML,
    OslcClient,
    OslcResponse,
)
from .config import OslcSettings, create_client_from_env, load_env_config
from .dialogs import (
    DialogSession,
    MessageChannel,
    OslcDialogs,
    Presenter,
    default_channel,
    parse_dialog_message,
    prepare_dialog,
)
from .errors import (
    DialogCancelledError,
    OslcClientError,
    OslcHTTPError,
    OslcParseError,
    QueryExhaustedError,
)
from .models import DialogDescriptor, DialogResponse, QuerySpec, ServiceProviderRef
from .query import OslcQuery, build_query_url, next_page_url
from .registry import (
    discover_tool_modules,
    iter_tool_functions,
    register_discovered_tools,
)

__all__ = [
    # Client
    "OslcClient",
    "OslcResponse",
    "DEFAULT_OSLC_VERSION",
    "OSLC_VERSION_HEADER",
    "RDF_XML",
    # Exceptions
    "OslcClientError",
    "OslcHTTPError",
    "OslcParseError",
    "QueryExhaustedError",
    "DialogCancelledError",
    # Models
    "QuerySpec",
    "DialogDescriptor",
    "DialogResponse",
    "ServiceProviderRef",
    # Capabilities
    "Capability",
    "CapabilityKind",
    "iter_capabilities",
    "select_capability",
    "find_capability",
    "lookup_capability",
    "lookup_query_capability_uri",
    "lookup_creation_factory",
    "lookup_creation_factory_uri",
    "lookup_creation_dialog",
    "lookup_selection_dialog",
    "list_service_providers",
    "lookup_service_provider_url",
    # Query
    "OslcQuery",
    "build_query_url",
    "next_page_url",
    # Dialogs
    "Presenter",
    "MessageChannel",
    "default_channel",
    "DialogSession",
    "OslcDialogs",
    "parse_dialog_message",
    "prepare_dialog",
    # Config helpers
    "OslcSettings",
    "create_client_from_env",
    "load_env_config",
    # Registry helpers
    "discover_tool_modules",
    "iter_tool_functions",
    "register_discovered_tools",
]
