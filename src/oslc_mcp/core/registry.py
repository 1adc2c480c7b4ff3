from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from types import ModuleType
from typing import Callable, Iterable, List, Optional, Set, get_origin, get_type_hints

from .client import OslcClient
from .observability import log_event

log = logging.getLogger("oslc_mcp.core.registry")

TOOLS_PACKAGE = "oslc_mcp.core.tools"

ClientProvider = Callable[[], OslcClient]


# --- Discovery ------------------------------------------------------------- #


def discover_tool_modules(package_name: str = TOOLS_PACKAGE) -> List[ModuleType]:
    """Import the public modules of a tools package; broken ones are logged and skipped."""
    package = importlib.import_module(package_name)
    modules: List[ModuleType] = []

    for info in pkgutil.iter_modules(package.__path__, package.__name__ + "."):
        if info.name.rsplit(".", 1)[-1].startswith("_"):
            # shared helpers such as _responses
            continue
        try:
            modules.append(importlib.import_module(info.name))
        except Exception as exc:  # pragma: no cover - logged, not fatal
            log.error("Failed importing tool module %s: %s", info.name, exc)

    return modules


def _skip_reason(func: Callable, module: ModuleType) -> Optional[str]:
    if func.__name__.startswith("_"):
        return "private"
    if func.__module__ != module.__name__:
        return "imported"

    params = list(inspect.signature(func).parameters.values())
    if not params or params[0].name != "client":
        return "first parameter must be 'client'"
    # Type[...] cannot be expressed as a tool input schema
    if any(get_origin(p.annotation) is type for p in params[1:]):
        return "unsupported parameter annotation"
    return None


def iter_tool_functions(module: ModuleType) -> Iterable[Callable]:
    """Coroutines of `module` that follow the `(client, ...)` tool convention."""
    for _, func in inspect.getmembers(module, inspect.iscoroutinefunction):
        reason = _skip_reason(func, module)
        if reason is None:
            yield func
        elif reason != "imported":
            log.debug("Skipping %s.%s: %s", module.__name__, func.__name__, reason)


# --- Registration ---------------------------------------------------------- #


def _tool_signature(func: Callable) -> inspect.Signature:
    """`func`'s signature with resolved annotations and without `client`."""
    sig = inspect.signature(func)
    hints = get_type_hints(func)
    params = [
        p.replace(annotation=hints.get(name, p.annotation))
        for name, p in list(sig.parameters.items())[1:]
    ]
    return inspect.Signature(
        parameters=params,
        return_annotation=hints.get("return", sig.return_annotation),
    )


def _wrap_tool(func: Callable, client_provider: ClientProvider) -> Callable:
    async def wrapped(*args, **kwargs):
        return await func(client_provider(), *args, **kwargs)

    wrapped.__name__ = func.__name__
    wrapped.__qualname__ = func.__qualname__
    wrapped.__doc__ = func.__doc__
    wrapped.__module__ = func.__module__
    wrapped.__signature__ = _tool_signature(func)  # type: ignore[attr-defined]
    return wrapped


def register_discovered_tools(
    app,
    client_provider: ClientProvider | OslcClient,
    modules: List[ModuleType] | None = None,
) -> List[str]:
    """
    Register every discovered tool on `app` (anything with a FastMCP-style
    `.tool(name=...)` decorator). The client is injected per call from
    `client_provider`; a bare OslcClient is shared by all calls.
    Returns the registered tool names, sorted.
    """
    if not hasattr(app, "tool"):
        raise TypeError("app must expose a 'tool' decorator")

    if isinstance(client_provider, OslcClient):
        shared = client_provider
        client_provider = lambda: shared  # noqa: E731

    if modules is None:
        modules = discover_tool_modules()

    names: Set[str] = set()
    for module in modules:
        for func in iter_tool_functions(module):
            if func.__name__ in names:
                raise ValueError(f"Duplicate tool name detected: {func.__name__}")
            app.tool(name=func.__name__)(_wrap_tool(func, client_provider))
            names.add(func.__name__)
            log_event(
                "tool_registered",
                level=logging.DEBUG,
                tool=func.__name__,
                source=module.__name__,
            )

    log.info("Registered %d OSLC tools", len(names))
    return sorted(names)


__all__ = [
    "TOOLS_PACKAGE",
    "discover_tool_modules",
    "iter_tool_functions",
    "register_discovered_tools",
]
