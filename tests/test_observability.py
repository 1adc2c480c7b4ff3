import logging

import httpx
import pytest
import respx
from oslc_mcp.core.client import OslcClient, OslcClientError
from oslc_mcp.core.logging import LogfmtFormatter
from oslc_mcp.core.observability import OBSERVABILITY_LOGGER, log_event


@pytest.mark.asyncio
@respx.mock
async def test_client_logs_success(caplog):
    caplog.set_level(logging.INFO, logger=OBSERVABILITY_LOGGER)
    route = respx.get("https://example.com/cm/cr/1").mock(
        return_value=httpx.Response(200, text="ok")
    )
    client = OslcClient(base_url="https://example.com")
    try:
        await client.get_resource("/cm/cr/1", tool="foo")
    finally:
        await client.aclose()

    assert route.called
    record = next(r for r in caplog.records if r.getMessage() == "oslc_call")
    assert record.tool == "foo"
    assert record.method == "GET"
    assert record.status == 200
    assert record.endpoint == "/cm/cr/1"
    assert record.duration_ms >= 0


@pytest.mark.asyncio
@respx.mock
async def test_client_logs_exception(caplog):
    caplog.set_level(logging.INFO, logger=OBSERVABILITY_LOGGER)
    respx.get("https://example.com/cm/cr/2").mock(
        side_effect=httpx.ConnectTimeout("boom")
    )
    client = OslcClient(base_url="https://example.com")
    with pytest.raises(OslcClientError):
        await client.get_resource("/cm/cr/2", tool="bar")
    await client.aclose()

    record = next(r for r in caplog.records if r.getMessage() == "oslc_call")
    assert record.tool == "bar"
    assert record.status == "exception"
    assert record.error_type == "ConnectTimeout"
    assert record.endpoint == "/cm/cr/2"


def test_log_event_drops_none_and_reserved_fields(caplog):
    caplog.set_level(logging.INFO, logger=OBSERVABILITY_LOGGER)

    log_event("capability_lookup", domain="cm", tool=None, name="clobber")

    record = next(r for r in caplog.records if r.getMessage() == "capability_lookup")
    assert record.domain == "cm"
    assert not hasattr(record, "tool")
    assert record.name == OBSERVABILITY_LOGGER


def test_log_event_respects_level(caplog):
    caplog.set_level(logging.WARNING, logger=OBSERVABILITY_LOGGER)

    log_event("quiet", status=200)

    assert not [r for r in caplog.records if r.getMessage() == "quiet"]


def test_logfmt_formatter_renders_extras_and_quotes():
    record = logging.LogRecord(
        "oslc_mcp.client", logging.INFO, __file__, 1, "oslc call", None, None
    )
    record.method = "GET"
    record.status = 200
    record.endpoint = "https://example.com/q?oslc.where=a=1"

    line = LogfmtFormatter().format(record)

    assert line.startswith("level=info logger=oslc_mcp.client ")
    assert 'event="oslc call"' in line
    assert "method=GET" in line
    assert "status=200" in line
    assert 'endpoint="https://example.com/q?oslc.where=a=1"' in line
    assert "tool=" not in line


def test_setup_logging_installs_single_logfmt_handler():
    import io

    from oslc_mcp.core.logging import setup_logging

    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    stream = io.StringIO()
    try:
        setup_logging("debug", stream=stream)
        setup_logging("debug", stream=stream)
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

        logging.getLogger("oslc_mcp.test").debug("hello", extra={"tool": "x"})
        assert "event=hello tool=x" in stream.getvalue()
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
