"""Page-level view over a CDP connection: navigation, evaluation and events."""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

from .cdp import CDPClient

logger = logging.getLogger(__name__)


@dataclass
class NetworkRequest:
    request_id: str
    url: str
    method: str
    headers: dict[str, str] = field(default_factory=dict)
    post_data: str | None = None
    resource_type: str | None = None


@dataclass
class NetworkResponse:
    request_id: str
    url: str
    status: int
    status_text: str = ""


@dataclass
class ConsoleMessage:
    type: str
    text: str


def _to_request(params: dict[str, Any]) -> NetworkRequest:
    request = dict(params.get("request", {}))
    return NetworkRequest(
        request_id=str(params.get("requestId", "")),
        url=str(request.get("url", "")),
        method=str(request.get("method", "GET")),
        headers={str(k): str(v) for k, v in dict(request.get("headers", {})).items()},
        post_data=(None if request.get("postData") is None else str(request.get("postData"))),
        resource_type=(None if params.get("type") is None else str(params.get("type"))),
    )


def _to_response(params: dict[str, Any]) -> NetworkResponse:
    response = dict(params.get("response", {}))
    return NetworkResponse(
        request_id=str(params.get("requestId", "")),
        url=str(response.get("url", "")),
        status=int(response.get("status", 0)),
        status_text=str(response.get("statusText", "")),
    )


def _to_console(params: dict[str, Any]) -> ConsoleMessage:
    parts = []
    for arg in params.get("args", []):
        arg = dict(arg)
        parts.append(str(arg.get("value", arg.get("description", ""))))
    return ConsoleMessage(type=str(params.get("type", "log")), text=" ".join(parts))


_EVENT_TRANSLATORS: dict[str, tuple[str, Callable[[dict[str, Any]], Any]]] = {
    "Network.requestWillBeSent": ("request", _to_request),
    "Network.responseReceived": ("response", _to_response),
    "Runtime.consoleAPICalled": ("console", _to_console),
}


class CDPPage:
    """The browser page the session drives.

    Handlers registered with :meth:`on` run synchronously whenever an event is
    read off the connection: during :meth:`goto` and :meth:`pump_events`, and
    after each command for events that arrived while awaiting its reply.
    """

    def __init__(
        self,
        client: CDPClient,
        network_idle_seconds: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.network_idle_seconds = network_idle_seconds
        self._clock = clock
        self._handlers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)
        self.url: str | None = None

    def on(self, event_name: str, handler: Callable[[Any], None]) -> None:
        self._handlers[event_name].append(handler)

    def _dispatch(self, message: dict[str, Any]) -> None:
        translator = _EVENT_TRANSLATORS.get(str(message.get("method", "")))
        if translator is None:
            return
        event_name, convert = translator
        handlers = self._handlers.get(event_name)
        if not handlers:
            return
        payload = convert(dict(message.get("params", {})))
        for handler in list(handlers):
            handler(payload)

    def pump_events(self, timeout_seconds: float) -> int:
        """Dispatch events for up to *timeout_seconds*; return how many were read."""
        deadline = self._clock() + timeout_seconds
        seen = 0
        while True:
            remaining = deadline - self._clock()
            event = self.client.read_event(timeout_seconds=max(0.05, min(remaining, 1.0)))
            if event is not None:
                seen += 1
                self._dispatch(event)
            if remaining <= 0:
                return seen

    def goto(self, url: str, timeout_seconds: float = 30.0) -> None:
        """Navigate and block until the load event, then let traffic settle briefly."""
        result = self.client.navigate(url)
        if result.get("errorText"):
            raise RuntimeError(f"Navigation to {url} failed: {result['errorText']}")
        self.url = url

        deadline = self._clock() + timeout_seconds
        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                raise TimeoutError(f"Page load for {url} did not finish within {timeout_seconds:.1f}s")
            event = self.client.read_event(timeout_seconds=min(remaining, 1.0))
            if event is None:
                continue
            self._dispatch(event)
            if event.get("method") == "Page.loadEventFired":
                break

        if self.network_idle_seconds > 0:
            self.pump_events(self.network_idle_seconds)

    def _dispatch_queued(self) -> None:
        # The client queue is empty after every page command.
        for event in self.client.drain_events():
            self._dispatch(event)

    def title(self) -> str:
        return str(self.evaluate("document.title") or "")

    def content(self) -> str:
        return str(self.evaluate("document.documentElement.outerHTML") or "")

    def evaluate(self, expression: str, timeout_seconds: float | None = None) -> Any:
        try:
            return self.client.evaluate(expression, timeout_seconds=timeout_seconds)
        finally:
            self._dispatch_queued()

    def cookies(self) -> list[dict[str, str]]:
        urls = [self.url] if self.url else None
        try:
            raw = self.client.get_cookies(urls)
        finally:
            self._dispatch_queued()
        return [{"name": str(c.get("name", "")), "value": str(c.get("value", ""))} for c in raw]

    def close(self) -> None:
        self._handlers.clear()
        self.client.close()
