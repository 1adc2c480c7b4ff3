"""oslc_mcp package exports."""

from .core import (
    Capability,
    CapabilityKind,
    DialogCancelledError,
    MessageChannel,
    OslcClient,
    OslcClientError,
    OslcDialogs,
    OslcHTTPError,
    OslcParseError,
    OslcQuery,
    OslcResponse,
    QueryExhaustedError,
    QuerySpec,
    create_client_from_env,
)

__all__ = [
    "OslcClient",
    "OslcResponse",
    "OslcQuery",
    "QuerySpec",
    "OslcDialogs",
    "MessageChannel",
    "Capability",
    "CapabilityKind",
    "create_client_from_env",
    "OslcClientError",
    "OslcHTTPError",
    "OslcParseError",
    "QueryExhaustedError",
    "DialogCancelledError",
]
