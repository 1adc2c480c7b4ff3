"""
Delegated UI dialogs (OSLC Core 2.0 postMessage protocol).

A dialog is rendered by the provider inside an embedded page. When the user is
done, the page posts a string "oslc-response:" followed by a JSON object whose
`oslc:results` list holds the selected or created resources.

The embedding UI is not part of this package. It is reached through two seams:

- a `Presenter`, which shows a URL and returns a hashable handle identifying
  the embedded page;
- a `MessageChannel`, into which the UI feeds every message it receives
  together with the handle of the page that sent it, and the fact that a page
  was closed by the user.

Channel methods must be called on the event loop thread; from other threads
use `loop.call_soon_threadsafe(channel.post, handle, payload)`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Hashable, List, Mapping, Optional, Protocol, Union

from lxml import etree
from pydantic import ValidationError

from .capabilities import (
    Capability,
    lookup_creation_dialog,
    lookup_selection_dialog,
)
from .client import RDF_XML, OslcClient, OslcClientError
from .errors import DialogCancelledError
from .models import DialogDescriptor, DialogResponse

log = logging.getLogger("oslc_mcp.dialogs")

RESPONSE_HEADER = "oslc-response:"
POSTMESSAGE_FRAGMENT = "#oslc-core-postMessage-1.0"
DIALOG_TITLE = "OSLC Dialog"

Draft = Union[str, bytes, etree._Element]


class Presenter(Protocol):
    def present(
        self, url: str, width: Optional[int], height: Optional[int], title: str
    ) -> Hashable: ...

    def dismiss(self, handle: Hashable) -> None: ...


class MessageListener(Protocol):
    def on_message(self, payload: str) -> None: ...

    def on_dismissed(self) -> None: ...


class MessageChannel:
    """Dispatch table from embedded-page handle to its single listener."""

    def __init__(self) -> None:
        self._listeners: Dict[Hashable, MessageListener] = {}

    @property
    def listeners(self) -> Mapping[Hashable, MessageListener]:
        return dict(self._listeners)

    def register(self, source: Hashable, listener: MessageListener) -> None:
        if source in self._listeners:
            raise ValueError(f"A listener is already registered for {source!r}")
        self._listeners[source] = listener

    def unregister(self, source: Hashable) -> None:
        self._listeners.pop(source, None)

    def post(self, source: Hashable, payload: Any) -> None:
        """Deliver one message; traffic from unknown pages is ignored."""
        listener = self._listeners.get(source)
        if listener is None:
            log.debug("dialog.message_ignored", extra={"source": source})
            return
        listener.on_message(payload)

    def dismissed(self, source: Hashable) -> None:
        listener = self._listeners.get(source)
        if listener is not None:
            listener.on_dismissed()


default_channel = MessageChannel()


def parse_dialog_message(payload: Any) -> Optional[List[Any]]:
    """
    Results carried by a dialog message.
    None when the payload is not an `oslc-response:` message at all; an empty
    list when it is one but its body is missing or malformed.
    """
    if not isinstance(payload, str) or not payload.startswith(RESPONSE_HEADER):
        return None

    body = payload[len(RESPONSE_HEADER) :]
    start = body.find("{")
    if start < 0:
        log.warning("dialog.malformed_response", extra={"error_type": "no_json"})
        return []
    try:
        return DialogResponse.from_payload(json.loads(body[start:])).results
    except (ValueError, ValidationError) as exc:
        log.warning(
            "dialog.malformed_response", extra={"error_type": type(exc).__name__}
        )
        return []


class DialogSession:
    """
    One presented dialog and its message registration.

    The registration lives exactly as long as the session: it is removed on
    the first response message, on dismissal, and on leaving the `async with`
    block, whichever happens first.
    """

    def __init__(
        self,
        presenter: Presenter,
        channel: Optional[MessageChannel] = None,
        *,
        draft: Optional[Draft] = None,
        title: str = DIALOG_TITLE,
    ):
        self.presenter = presenter
        self.channel = channel if channel is not None else default_channel
        self.draft = draft
        self.title = title
        self.handle: Optional[Hashable] = None
        self._registered = False
        self._future: Optional[asyncio.Future] = None

    @property
    def active(self) -> bool:
        return self._registered

    def open(
        self, url: str, width: Optional[int] = None, height: Optional[int] = None
    ) -> Hashable:
        if self._future is not None:
            raise RuntimeError("DialogSession can only be opened once")
        self._future = asyncio.get_running_loop().create_future()
        handle = self.presenter.present(url, width, height, self.title)
        try:
            self.channel.register(handle, self)
        except ValueError:
            # handle already owned by another session; close what we showed
            self.presenter.dismiss(handle)
            self._future = None
            raise
        self.handle = handle
        self._registered = True
        log.debug("dialog.opened", extra={"endpoint": url, "source": self.handle})
        return self.handle

    def on_message(self, payload: str) -> None:
        results = parse_dialog_message(payload)
        if results is None:
            # unrelated traffic from the page; stay armed
            return
        self._teardown(dismiss=True)
        self._settle(results=results)

    def on_dismissed(self) -> None:
        self._teardown(dismiss=False)
        self._settle(error=DialogCancelledError("Dialog was dismissed by the user"))

    def cancel(self) -> None:
        self._teardown(dismiss=True)
        self._settle(error=DialogCancelledError("Dialog was cancelled"))

    async def wait(self) -> List[Any]:
        if self._future is None:
            raise RuntimeError("DialogSession has not been opened")
        return await self._future

    def _teardown(self, *, dismiss: bool) -> None:
        if not self._registered:
            return
        self._registered = False
        self.channel.unregister(self.handle)
        if dismiss:
            self.presenter.dismiss(self.handle)

    def _settle(
        self,
        *,
        results: Optional[List[Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        if self._future is None or self._future.done():
            return
        if error is not None:
            self._future.set_exception(error)
        else:
            self._future.set_result(results or [])

    async def __aenter__(self) -> "DialogSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._teardown(dismiss=True)
        if self._future is not None and not self._future.done():
            self._future.cancel()


def _serialize_draft(draft: Draft) -> Union[str, bytes]:
    if isinstance(draft, etree._Element):
        return etree.tostring(draft, xml_declaration=True, encoding="UTF-8")
    return draft


async def prepare_dialog(
    client: OslcClient,
    capability: Capability,
    draft: Optional[Draft] = None,
    *,
    tool: Optional[str] = None,
) -> DialogDescriptor:
    """
    Resolve the URL a dialog should be rendered at.
    With a draft, the draft is POSTed to the dialog URI first and the provider's
    Location header (a pre-filled dialog) becomes the target.
    """
    url = capability.action_uri
    if not url:
        raise OslcClientError("Dialog capability declares no oslc:dialog URI")

    if draft is not None:
        resp = await client.create_resource(
            url,
            _serialize_draft(draft),
            media_type=RDF_XML,
            accept_type="*/*",
            tool=tool or "dialog",
        )
        if not resp.location:
            raise OslcClientError(f"Draft POST to {url} returned no Location header")
        url = resp.location

    return DialogDescriptor(
        url=url + POSTMESSAGE_FRAGMENT,
        width=capability.hint_width,
        height=capability.hint_height,
        title=capability.title,
        label=capability.label,
    )


class OslcDialogs:
    """Opens provider dialogs through a Presenter and waits for their results."""

    def __init__(
        self,
        client: OslcClient,
        presenter: Presenter,
        channel: Optional[MessageChannel] = None,
    ):
        self.client = client
        self.presenter = presenter
        self.channel = channel if channel is not None else default_channel

    async def open_selection_dialog(
        self,
        service_provider_url: str,
        domain: str,
        resource_type: Optional[str] = None,
    ) -> Optional[List[Any]]:
        """
        Selected resources, or None when the provider has no matching
        selection dialog or the user selected nothing.
        Raises DialogCancelledError if the user closes the dialog.
        """
        cap = await lookup_selection_dialog(
            self.client, service_provider_url, domain, resource_type, tool="dialog"
        )
        if cap is None:
            return None
        return await self.run(cap)

    async def open_creation_dialog(
        self,
        service_provider_url: str,
        domain: str,
        resource_type: Optional[str] = None,
        draft: Optional[Draft] = None,
    ) -> Optional[List[Any]]:
        cap = await lookup_creation_dialog(
            self.client, service_provider_url, domain, resource_type, tool="dialog"
        )
        if cap is None:
            return None
        return await self.run(cap, draft)

    async def run(
        self, capability: Capability, draft: Optional[Draft] = None
    ) -> Optional[List[Any]]:
        descriptor = await prepare_dialog(self.client, capability, draft)
        async with DialogSession(
            self.presenter, self.channel, draft=draft
        ) as session:
            session.open(descriptor.url, descriptor.width, descriptor.height)
            results = await session.wait()
        return results or None


__all__ = [
    "RESPONSE_HEADER",
    "POSTMESSAGE_FRAGMENT",
    "DIALOG_TITLE",
    "Presenter",
    "MessageListener",
    "MessageChannel",
    "default_channel",
    "parse_dialog_message",
    "DialogSession",
    "prepare_dialog",
    "OslcDialogs",
]
