import json as _json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import httpx
from lxml import etree

from .observability import log_event

DEFAULT_OSLC_VERSION = "2.0"
OSLC_VERSION_HEADER = "OSLC-Core-Version"
RDF_XML = "application/rdf+xml"

# external entities and DTD network fetches stay disabled for provider documents
XML_PARSER = etree.XMLParser(resolve_entities=False, no_network=True)

_XML_MARKERS = ("xml",)
_JSON_MARKERS = ("json",)


class OslcClientError(Exception):
    """Base error for client failures."""


class OslcHTTPError(OslcClientError):
    def __init__(
        self,
        *,
        status_code: int,
        method: str,
        url: str,
        message: str,
        response_text: Optional[str] = None,
    ):
        super().__init__(f"{status_code} {method} {url}: {message}")
        self.status_code = status_code
        self.method = method
        self.url = url
        self.response_text = response_text


class OslcParseError(OslcClientError):
    pass


@dataclass(frozen=True)
class OslcResponse:
    """
    Result of one OSLC request.
    `document` is the parsed body: an lxml element for XML media types,
    decoded JSON for JSON media types, plain text otherwise, None when empty.
    """

    status_code: int
    url: str
    headers: httpx.Headers
    text: str
    document: Any = None

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("Location")

    @property
    def etag(self) -> Optional[str]:
        return self.headers.get("ETag")

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")


class OslcClient:
    """
    Shared async HTTP client for OSLC providers.
    - Handles credentials, optional base URL, timeouts and the OSLC-Core-Version header
    - Returns OslcResponse objects with the body parsed per media type
    - No retries; transport failures are raised once, unchanged
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        oslc_version: Optional[str] = None,
        timeout_seconds: float = 10.0,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.oslc_version = oslc_version or DEFAULT_OSLC_VERSION
        self.timeout_seconds = timeout_seconds
        self.log = logger or logging.getLogger("oslc_mcp.client")

        auth = None
        if username and password:
            auth = httpx.BasicAuth(username, password)
        elif username or password:
            raise ValueError("username and password must be provided together.")

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url,
            auth=auth,
            timeout=timeout_seconds,
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "OslcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        accept: Optional[str] = None,
        content: Optional[Union[str, bytes]] = None,
        content_type: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        use_version_header: bool = True,
        tool: Optional[str] = None,
    ) -> OslcResponse:
        """
        Core request method.
        - Raises OslcHTTPError on non-2xx HTTP responses
        - Raises OslcClientError on network/timeout errors
        - Raises OslcParseError if an XML/JSON body doesn't parse
        """
        method = method.upper()
        if not url:
            raise ValueError("url must be provided.")

        req_headers: Dict[str, str] = {}
        if accept:
            req_headers["Accept"] = accept
        if content_type:
            req_headers["Content-Type"] = content_type
        if use_version_header:
            req_headers[OSLC_VERSION_HEADER] = self.oslc_version
        if headers:
            req_headers.update(headers)

        start = time.perf_counter()
        try:
            resp = await self.http.request(
                method, url, content=content, headers=req_headers
            )
        except httpx.HTTPError as exc:
            log_event(
                "oslc_call",
                tool=tool,
                method=method,
                endpoint=url,
                status="exception",
                error_type=type(exc).__name__,
                duration_ms=int((time.perf_counter() - start) * 1000),
            )
            if isinstance(exc, (httpx.ConnectError, httpx.TimeoutException)):
                raise OslcClientError(
                    f"Network/timeout error calling {method} {url}: {exc}"
                ) from exc
            raise OslcClientError(
                f"HTTPX error calling {method} {url}: {exc}"
            ) from exc

        duration_ms = int((time.perf_counter() - start) * 1000)

        # structured-ish log without credentials
        self.log.debug(
            "oslc.request",
            extra={
                "tool": tool,
                "method": method,
                "endpoint": str(resp.request.url),
                "status": resp.status_code,
                "duration_ms": duration_ms,
            },
        )
        log_event(
            "oslc_call",
            tool=tool,
            method=method,
            endpoint=url,
            status=resp.status_code,
            duration_ms=duration_ms,
        )

        if resp.status_code < 200 or resp.status_code >= 300:
            raise self._to_http_error(resp, method=method)

        return OslcResponse(
            status_code=resp.status_code,
            url=str(resp.request.url),
            headers=resp.headers,
            text=resp.text,
            document=self._parse_body(resp),
        )

    def _parse_body(self, resp: httpx.Response) -> Any:
        # Handle empty responses (204 No Content, etc.)
        if not resp.content:
            return None

        ctype = resp.headers.get("Content-Type", "").lower()
        if any(m in ctype for m in _XML_MARKERS):
            try:
                return etree.fromstring(resp.content, XML_PARSER)
            except etree.XMLSyntaxError as exc:
                snippet = (resp.text or "")[:500]
                raise OslcParseError(
                    f"Expected XML from {resp.request.method} "
                    f"{resp.request.url}, got body snippet: {snippet!r}"
                ) from exc
        if any(m in ctype for m in _JSON_MARKERS):
            try:
                return _json.loads(resp.content)
            except ValueError as exc:
                snippet = (resp.text or "")[:500]
                raise OslcParseError(
                    f"Expected JSON from {resp.request.method} "
                    f"{resp.request.url}, got body snippet: {snippet!r}"
                ) from exc
        return resp.text

    def _to_http_error(self, resp: httpx.Response, *, method: str) -> OslcHTTPError:
        url = str(resp.request.url)
        response_text = (resp.text or "")[:500] or None
        message = resp.reason_phrase or "request failed"

        # OSLC providers report errors as oslc:Error with an oslc:message
        ctype = resp.headers.get("Content-Type", "").lower()
        if resp.content and "xml" in ctype:
            try:
                root = etree.fromstring(resp.content, XML_PARSER)
            except etree.XMLSyntaxError:
                root = None
            if root is not None:
                for el in root.iter("{*}message"):
                    if el.text and el.text.strip():
                        message = el.text.strip()
                        break

        return OslcHTTPError(
            status_code=resp.status_code,
            method=method,
            url=url,
            message=message,
            response_text=response_text,
        )

    async def get_resource(
        self,
        url: str,
        *,
        media_type: str = RDF_XML,
        use_version_header: bool = True,
        tool: Optional[str] = None,
    ) -> OslcResponse:
        return await self.request(
            "GET",
            url,
            accept=media_type or RDF_XML,
            use_version_header=use_version_header,
            tool=tool,
        )

    async def create_resource(
        self,
        url: str,
        resource: Union[str, bytes],
        *,
        media_type: str = RDF_XML,
        accept_type: str = RDF_XML,
        tool: Optional[str] = None,
    ) -> OslcResponse:
        # X-Requested-With is required by some providers (e.g. RTC) to accept POSTs
        return await self.request(
            "POST",
            url,
            accept=accept_type or RDF_XML,
            content=resource,
            content_type=media_type or RDF_XML,
            headers={"X-Requested-With": "XMLHttpRequest"},
            tool=tool,
        )

    async def update_resource(
        self,
        url: str,
        resource: Union[str, bytes],
        *,
        media_type: str = RDF_XML,
        accept_type: str = RDF_XML,
        if_match: Optional[str] = None,
        tool: Optional[str] = None,
    ) -> OslcResponse:
        headers = {"If-Match": if_match} if if_match else None
        return await self.request(
            "PUT",
            url,
            accept=accept_type or RDF_XML,
            content=resource,
            content_type=media_type or RDF_XML,
            headers=headers,
            tool=tool,
        )

    async def delete_resource(
        self, url: str, *, tool: Optional[str] = None
    ) -> OslcResponse:
        return await self.request("DELETE", url, tool=tool)
