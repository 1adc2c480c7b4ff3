import base64

import httpx
import pytest
import respx
from oslc_mcp.core.client import (
    OslcClient,
    OslcClientError,
    OslcHTTPError,
    OslcParseError,
)

BASE = "https://example.com"

OSLC_ERROR = """<?xml version="1.0"?>
<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
         xmlns:oslc="http://open-services.net/ns/core#">
  <oslc:Error>
    <oslc:statusCode>404</oslc:statusCode>
    <oslc:message>Work item 42 does not exist</oslc:message>
  </oslc:Error>
</rdf:RDF>"""


@pytest.mark.asyncio
@respx.mock
async def test_get_sends_accept_and_default_version_header():
    route = respx.get(f"{BASE}/cm/cr/1").mock(
        return_value=httpx.Response(
            200,
            content=b"<root><child>x</child></root>",
            headers={"Content-Type": "application/rdf+xml", "ETag": '"v1"'},
        )
    )

    async with OslcClient(base_url=BASE) as client:
        resp = await client.get_resource("/cm/cr/1")

    sent = route.calls[0].request.headers
    assert sent["Accept"] == "application/rdf+xml"
    assert sent["OSLC-Core-Version"] == "2.0"
    assert resp.document.tag == "root"
    assert resp.etag == '"v1"'


@pytest.mark.asyncio
@respx.mock
async def test_version_header_can_be_suppressed_or_overridden():
    route = respx.get(f"{BASE}/r").mock(return_value=httpx.Response(200))

    async with OslcClient(base_url=BASE, oslc_version="3.0") as client:
        await client.get_resource("/r")
        await client.get_resource("/r", use_version_header=False)

    assert route.calls[0].request.headers["OSLC-Core-Version"] == "3.0"
    assert "OSLC-Core-Version" not in route.calls[1].request.headers


@pytest.mark.asyncio
@respx.mock
async def test_post_sends_body_and_creation_headers():
    route = respx.post(f"{BASE}/cm/create").mock(
        return_value=httpx.Response(201, headers={"Location": f"{BASE}/cm/cr/9"})
    )

    async with OslcClient(base_url=BASE) as client:
        resp = await client.create_resource(
            "/cm/create",
            '{"dcterms:title": "x"}',
            media_type="application/json",
            accept_type="application/json",
        )

    request = route.calls[0].request
    assert request.content == b'{"dcterms:title": "x"}'
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["X-Requested-With"] == "XMLHttpRequest"
    assert resp.status_code == 201
    assert resp.location == f"{BASE}/cm/cr/9"
    assert resp.document is None


@pytest.mark.asyncio
@respx.mock
async def test_put_sends_if_match_only_when_given():
    route = respx.put(f"{BASE}/cm/cr/1").mock(return_value=httpx.Response(200))

    async with OslcClient(base_url=BASE) as client:
        await client.update_resource("/cm/cr/1", "<rdf:RDF/>", if_match='"v1"')
        await client.update_resource("/cm/cr/1", "<rdf:RDF/>")

    assert route.calls[0].request.headers["If-Match"] == '"v1"'
    assert route.calls[0].request.headers["Content-Type"] == "application/rdf+xml"
    assert "If-Match" not in route.calls[1].request.headers


@pytest.mark.asyncio
@respx.mock
async def test_delete_returns_empty_document():
    route = respx.delete(f"{BASE}/cm/cr/1").mock(return_value=httpx.Response(204))

    async with OslcClient(base_url=BASE) as client:
        resp = await client.delete_resource("/cm/cr/1")

    assert route.called
    assert resp.status_code == 204
    assert resp.document is None


@pytest.mark.asyncio
@respx.mock
async def test_http_error_uses_oslc_error_message():
    respx.get(f"{BASE}/cm/cr/42").mock(
        return_value=httpx.Response(
            404,
            content=OSLC_ERROR.encode(),
            headers={"Content-Type": "application/rdf+xml"},
        )
    )

    async with OslcClient(base_url=BASE) as client:
        with pytest.raises(OslcHTTPError) as exc:
            await client.get_resource("/cm/cr/42")

    err = exc.value
    assert err.status_code == 404
    assert err.method == "GET"
    assert err.url == f"{BASE}/cm/cr/42"
    assert "Work item 42 does not exist" in str(err)
    assert err.response_text.startswith("<?xml")


@pytest.mark.asyncio
@respx.mock
async def test_http_error_falls_back_to_reason_phrase():
    respx.get(f"{BASE}/x").mock(return_value=httpx.Response(503, text="down"))

    async with OslcClient(base_url=BASE) as client:
        with pytest.raises(OslcHTTPError) as exc:
            await client.get_resource("/x")

    assert exc.value.status_code == 503
    assert "Service Unavailable" in str(exc.value)


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_is_not_retried():
    route = respx.get(f"{BASE}/slow").mock(side_effect=httpx.ConnectTimeout("boom"))

    async with OslcClient(base_url=BASE) as client:
        with pytest.raises(OslcClientError) as exc:
            await client.get_resource("/slow")

    assert route.call_count == 1
    assert isinstance(exc.value.__cause__, httpx.ConnectTimeout)


@pytest.mark.asyncio
@respx.mock
async def test_malformed_xml_raises_parse_error():
    respx.get(f"{BASE}/bad").mock(
        return_value=httpx.Response(
            200, content=b"<rdf:RDF", headers={"Content-Type": "application/rdf+xml"}
        )
    )

    async with OslcClient(base_url=BASE) as client:
        with pytest.raises(OslcParseError):
            await client.get_resource("/bad")


@pytest.mark.asyncio
@respx.mock
async def test_json_and_text_bodies_are_decoded():
    respx.get(f"{BASE}/json").mock(
        return_value=httpx.Response(200, json={"dcterms:title": "x"})
    )
    respx.get(f"{BASE}/turtle").mock(
        return_value=httpx.Response(
            200, text="<a> <b> <c> .", headers={"Content-Type": "text/turtle"}
        )
    )

    async with OslcClient(base_url=BASE) as client:
        as_json = await client.get_resource("/json", media_type="application/json")
        as_text = await client.get_resource("/turtle", media_type="text/turtle")

    assert as_json.document == {"dcterms:title": "x"}
    assert as_text.document == "<a> <b> <c> ."


@pytest.mark.asyncio
@respx.mock
async def test_basic_auth_credentials_are_sent():
    route = respx.get(f"{BASE}/secure").mock(return_value=httpx.Response(200))

    async with OslcClient(base_url=BASE, username="alice", password="s3cret") as c:
        await c.get_resource("/secure")

    expected = "Basic " + base64.b64encode(b"alice:s3cret").decode()
    assert route.calls[0].request.headers["Authorization"] == expected


def test_partial_credentials_are_rejected():
    with pytest.raises(ValueError):
        OslcClient(username="alice")


@pytest.mark.asyncio
async def test_injected_http_client_is_not_closed():
    http = httpx.AsyncClient()
    try:
        async with OslcClient(http=http):
            pass
        assert not http.is_closed
    finally:
        await http.aclose()
