from __future__ import annotations

import json
import time
import urllib.parse
import urllib.request


def _read_json(url: str, method: str = "GET") -> list[dict] | dict:
    request = urllib.request.Request(url, method=method)
    with urllib.request.urlopen(request, timeout=5) as response:
        return json.loads(response.read().decode("utf-8"))


def list_targets(host: str, port: int, retries: int = 1, retry_delay_seconds: float = 0.5) -> list[dict]:
    endpoint = f"http://{host}:{port}/json"
    last_error: Exception | None = None
    for attempt in range(max(1, retries)):
        try:
            data = _read_json(endpoint)
            if not isinstance(data, list):
                raise RuntimeError("Unexpected /json response from Chrome DevTools endpoint")
            return data
        except Exception as exc:  # noqa: BLE001
            last_error = exc
            if attempt < retries - 1:
                time.sleep(retry_delay_seconds)

    raise RuntimeError(
        f"Could not reach Chrome DevTools at {endpoint}. "
        "Start Chrome with --remote-debugging-port and try again."
    ) from last_error


def open_page_target(host: str, port: int, url: str = "about:blank") -> dict:
    """Open a fresh tab through the HTTP endpoint and return its target record."""
    endpoint = f"http://{host}:{port}/json/new?{urllib.parse.quote(url, safe=':/?&=')}"
    # Recent Chrome builds reject GET on /json/new.
    data = _read_json(endpoint, method="PUT")
    if not isinstance(data, dict):
        raise RuntimeError("Unexpected /json/new response from Chrome DevTools endpoint")
    return data


def websocket_url_for(target: dict, host: str, port: int) -> str:
    ws_url = target.get("webSocketDebuggerUrl")
    if not ws_url:
        target_id = urllib.parse.quote(str(target.get("id", "")))
        if not target_id:
            raise RuntimeError("Target missing webSocketDebuggerUrl and id")
        ws_url = f"ws://{host}:{port}/devtools/page/{target_id}"
    return str(ws_url)


def pick_page_websocket_url(host: str, port: int) -> str:
    """Use the browser's first page tab, opening one if none exist."""
    targets = [t for t in list_targets(host, port, retries=8, retry_delay_seconds=0.5) if t.get("type") == "page"]
    target = targets[0] if targets else open_page_target(host, port)
    return websocket_url_for(target, host, port)
