from __future__ import annotations

import json
import time
from collections import deque
from itertools import count
from typing import Any

from websocket import (
    WebSocket,
    WebSocketBadStatusException,
    WebSocketTimeoutException,
    create_connection,
)


class CDPClient:
    """Blocking Chrome DevTools Protocol connection to a single page target.

    Events that arrive while waiting for a command reply are queued and
    handed out by :meth:`read_event` in arrival order.
    """

    def __init__(self, websocket_url: str, timeout_seconds: float = 10.0) -> None:
        self.websocket_url = websocket_url
        self.timeout_seconds = timeout_seconds
        self._next_id = count(1)
        self._ws: WebSocket | None = None
        self._events: deque[dict[str, Any]] = deque()

    @property
    def connected(self) -> bool:
        return self._ws is not None

    def connect(self) -> None:
        try:
            self._ws = create_connection(self.websocket_url, timeout=self.timeout_seconds)
        except WebSocketBadStatusException as exc:
            raise RuntimeError(
                "Failed to connect to Chrome DevTools websocket. "
                "Start Chrome with --remote-allow-origins=* and --remote-debugging-port."
            ) from exc

    def close(self) -> None:
        if self._ws is not None:
            self._ws.close()
            self._ws = None
        self._events.clear()

    def send_command(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout_seconds: float | None = None,
    ) -> dict[str, Any]:
        if self._ws is None:
            raise RuntimeError("CDP client is not connected")

        msg_id = next(self._next_id)
        payload = {"id": msg_id, "method": method, "params": params or {}}
        self._ws.send(json.dumps(payload))

        budget = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        deadline = time.monotonic() + budget
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"CDP command {method} timed out after {budget:.1f}s")
            self._ws.settimeout(remaining)
            try:
                raw = self._ws.recv()
            except WebSocketTimeoutException as exc:
                raise TimeoutError(f"CDP command {method} timed out after {budget:.1f}s") from exc
            message = json.loads(raw)
            if message.get("id") == msg_id:
                if "error" in message:
                    raise RuntimeError(f"CDP command failed: {message['error']}")
                return dict(message.get("result", {}))
            if "method" in message:
                self._events.append(message)

    def read_event(self, timeout_seconds: float = 1.0) -> dict[str, Any] | None:
        if self._events:
            return self._events.popleft()
        if self._ws is None:
            raise RuntimeError("CDP client is not connected")
        self._ws.settimeout(timeout_seconds)
        try:
            raw = self._ws.recv()
        except WebSocketTimeoutException:
            return None
        message = json.loads(raw)
        if "method" not in message:
            return None
        return message

    def drain_events(self) -> list[dict[str, Any]]:
        """Remove and return every event queued while waiting on command replies."""
        events = list(self._events)
        self._events.clear()
        return events

    # ---- Domain helpers ----

    def enable_domains(self) -> None:
        """Enable the Page, Network and Runtime domains so their events are emitted."""
        self.send_command("Page.enable", {})
        self.send_command("Network.enable", {})
        self.send_command("Runtime.enable", {})

    def navigate(self, url: str) -> dict[str, Any]:
        """Navigate the attached page to *url* (``Page.navigate``)."""
        return self.send_command("Page.navigate", {"url": url})

    def set_user_agent(self, user_agent: str, accept_language: str | None = None) -> None:
        params: dict[str, Any] = {"userAgent": user_agent}
        if accept_language:
            params["acceptLanguage"] = accept_language
        self.send_command("Network.setUserAgentOverride", params)

    def set_extra_headers(self, headers: dict[str, str]) -> None:
        self.send_command("Network.setExtraHTTPHeaders", {"headers": headers})

    def evaluate(self, expression: str, timeout_seconds: float | None = None) -> Any:
        """Run *expression* in the page, awaiting promises, and return its value."""
        result = self.send_command(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True, "awaitPromise": True},
            timeout_seconds=timeout_seconds,
        )
        if "exceptionDetails" in result:
            details = result["exceptionDetails"]
            description = dict(details.get("exception", {})).get("description") or details.get("text")
            raise RuntimeError(f"Page script raised: {description}")
        value = dict(result.get("result", {}))
        if value.get("type") == "undefined":
            return None
        return value.get("value")

    def get_cookies(self, urls: list[str] | None = None) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"urls": urls} if urls else {}
        result = self.send_command("Network.getCookies", params)
        return list(result.get("cookies", []))
