import inspect
from types import ModuleType

import pytest
from mcp.server.fastmcp import FastMCP
from oslc_mcp.core.client import OslcClient
from oslc_mcp.core.registry import (
    discover_tool_modules,
    iter_tool_functions,
    register_discovered_tools,
)

FAKE_TOOLS = """
from typing import Type

from oslc_mcp.core.tools.queries import run_oslc_query


async def lookup_things(client, service_provider_url: str, *, limit: int = 1):
    return (client.oslc_version, service_provider_url, limit)

async def _helper(client):
    return None

async def provider_first(service_provider_url, client):
    return None

async def takes_type(client, kind: Type[int]):
    return None

def not_async(client):
    return None
"""


class RecordingApp:
    def __init__(self):
        self.tools = {}

    def tool(self, name):
        def decorator(fn):
            self.tools[name] = fn
            return fn

        return decorator


def _make_module(name: str, code: str) -> ModuleType:
    module = ModuleType(name)
    exec(code, module.__dict__)
    return module


def test_iter_tool_functions_applies_tool_convention():
    mod = _make_module("fake_tools", FAKE_TOOLS)

    names = [f.__name__ for f in iter_tool_functions(mod)]

    # helpers, wrong signatures, sync functions and re-exports are skipped
    assert names == ["lookup_things"]


@pytest.mark.asyncio
async def test_registered_wrapper_injects_shared_client():
    mod = _make_module("fake_tools", FAKE_TOOLS)
    app = RecordingApp()
    client = OslcClient(oslc_version="3.0")
    try:
        names = register_discovered_tools(app, client, modules=[mod])

        assert names == ["lookup_things"]
        wrapper = app.tools["lookup_things"]
        sig = inspect.signature(wrapper)
        assert list(sig.parameters) == ["service_provider_url", "limit"]
        assert sig.parameters["service_provider_url"].annotation is str

        result = await wrapper("https://example.com/sp", limit=5)
        assert result == ("3.0", "https://example.com/sp", 5)
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_client_provider_is_called_per_invocation():
    mod = _make_module("prov_mod", "async def ping(client): return client")
    app = RecordingApp()
    clients = iter(["first", "second"])

    register_discovered_tools(app, lambda: next(clients), modules=[mod])

    assert await app.tools["ping"]() == "first"
    assert await app.tools["ping"]() == "second"


def test_register_discovered_tools_duplicate_names_raise():
    mod1 = _make_module("mod1", "async def tool_fn(client): return None")
    mod2 = _make_module("mod2", "async def tool_fn(client): return None")

    app = FastMCP("test")

    with pytest.raises(ValueError):
        register_discovered_tools(app, lambda: None, modules=[mod1, mod2])


def test_register_discovered_tools_requires_tool_decorator():
    with pytest.raises(TypeError):
        register_discovered_tools(object(), lambda: None, modules=[])


def test_discover_tool_modules_skips_import_failures(monkeypatch, caplog):
    import importlib
    import pkgutil

    class Info:
        def __init__(self, name):
            self.name = name

    def fake_iter_modules(path, prefix):
        return [
            Info(prefix + "good"),
            Info(prefix + "bad"),
            Info(prefix + "_helpers"),
        ]

    good_mod = _make_module(
        "oslc_mcp.core.tools.good", "async def tool_fn(client): return None"
    )

    real_import_module = importlib.import_module

    def fake_import_module(name, *args, **kwargs):
        if name == "oslc_mcp.core.tools.bad":
            raise ImportError("boom")
        if name == "oslc_mcp.core.tools.good":
            return good_mod
        if name == "oslc_mcp.core.tools._helpers":
            raise AssertionError("private modules must not be imported")
        return real_import_module(name, *args, **kwargs)

    monkeypatch.setattr(pkgutil, "iter_modules", fake_iter_modules)
    monkeypatch.setattr(importlib, "import_module", fake_import_module)

    with caplog.at_level("ERROR"):
        modules = discover_tool_modules()

    assert [m.__name__ for m in modules] == ["oslc_mcp.core.tools.good"]
    assert any("Failed importing tool module" in rec.message for rec in caplog.records)


def test_builtin_tools_are_all_registered():
    app = FastMCP("test")
    names = register_discovered_tools(app, lambda: None)

    assert {
        "get_resource",
        "create_resource",
        "update_resource",
        "delete_resource",
        "list_service_providers",
        "find_service_provider",
        "list_capabilities",
        "lookup_query_capability",
        "lookup_creation_factory",
        "lookup_creation_dialog",
        "lookup_selection_dialog",
        "run_oslc_query",
        "fetch_query_page",
        "query_domain",
        "prepare_selection_dialog",
        "prepare_creation_dialog",
    } <= set(names)
    assert "response_summary" not in names
