from __future__ import annotations

import json
import logging
from typing import Any

import requests

from .config import REPLAY_MODES, ReplayConfig
from .endpoints import with_query_params
from .exceptions import ConfigurationError, ReplayError, ReplayTimeoutError
from .models import CapturedRequest, ReplayResult, RequestTarget, SessionHandle
from .security_utils import serialize_cookies

logger = logging.getLogger(__name__)

_BODY_METHODS = ("POST", "PUT", "PATCH")

_IN_PAGE_FETCH = """
(async (url, method, headers, body, timeoutMs, bodyMethods) => {
  const controller = new AbortController();
  const timer = setTimeout(() => controller.abort(), timeoutMs);
  try {
    const response = await fetch(url, {
      method,
      headers: headers || {},
      body: bodyMethods.includes(String(method).toUpperCase()) && body ? body : null,
      credentials: 'include',
      signal: controller.signal,
    });
    const text = await response.text();
    return {status: response.status, statusText: response.statusText, body: text};
  } catch (err) {
    return {error: String((err && err.message) || err), aborted: !!err && err.name === 'AbortError'};
  } finally {
    clearTimeout(timer);
  }
})(%s)
"""


def build_target(captured: CapturedRequest, overrides: dict[str, str | None]) -> RequestTarget:
    """Substitute query parameters into the captured URL, keeping everything else."""
    return RequestTarget(
        url=with_query_params(captured.url, overrides),
        method=captured.method,
        headers=dict(captured.headers),
        body=captured.post_data,
    )


def _sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
    blocked = {"host", "content-length", "connection"}
    return {k: v for k, v in headers.items() if k.lower() not in blocked}


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set *name* case-insensitively, keeping the captured spelling when present."""
    for existing in headers:
        if existing.lower() == name.lower():
            headers[existing] = value
            return
    headers[name] = value


def _check_status(result: ReplayResult, url: str) -> ReplayResult:
    if result.status >= 400:
        raise ReplayError(f"Replay of {url} returned {result.status} {result.status_text}".rstrip(), status=result.status)
    return result


class InPageReplayer:
    """Run ``fetch`` inside the live page so its cookie jar and origin apply."""

    mode = "in-page"

    def __init__(self, timeout_seconds: float = 20.0) -> None:
        self.timeout_seconds = timeout_seconds

    def execute(self, handle: SessionHandle, target: RequestTarget) -> ReplayResult:
        args = ", ".join(
            json.dumps(value)
            for value in (
                target.url,
                target.method,
                dict(target.headers),
                target.body,
                int(self.timeout_seconds * 1000),
                list(_BODY_METHODS),
            )
        )
        try:
            # A little slack over the in-page abort so the page reports the timeout itself.
            raw = handle.page.evaluate(_IN_PAGE_FETCH % args, timeout_seconds=self.timeout_seconds + 5)
        except TimeoutError as exc:
            raise ReplayTimeoutError(f"In-page fetch of {target.url} timed out") from exc
        except Exception as exc:  # noqa: BLE001
            raise ReplayError(f"Failed to make request: {exc}") from exc

        if not isinstance(raw, dict):
            raise ReplayError("Unknown request error")
        if raw.get("error"):
            if raw.get("aborted"):
                raise ReplayTimeoutError(
                    f"In-page fetch of {target.url} exceeded {self.timeout_seconds:.1f}s"
                )
            raise ReplayError(f"Failed to make request: {raw['error']}")
        if "status" not in raw:
            raise ReplayError("Unknown request error")

        result = ReplayResult(
            status=int(raw["status"]),
            status_text=str(raw.get("statusText", "")),
            body=str(raw.get("body", "")),
        )
        return _check_status(result, target.url)


class HttpReplayer:
    """Re-issue the request with ``requests``, outside the browser."""

    mode = "http"

    def __init__(self, config: ReplayConfig | None = None) -> None:
        self.config = config or ReplayConfig(mode="http")

    def build_headers(self, handle: SessionHandle, target: RequestTarget) -> dict[str, str]:
        headers = _sanitize_headers(dict(target.headers))
        _set_header(headers, "User-Agent", self.config.user_agent)
        _set_header(headers, "Accept-Language", self.config.accept_language)
        for name, value in self.config.client_hints.items():
            _set_header(headers, name, value)
        cookie = serialize_cookies(handle.page.cookies())
        if cookie:
            _set_header(headers, "Cookie", cookie)
        return headers

    def execute(self, handle: SessionHandle, target: RequestTarget) -> ReplayResult:
        data = target.body if target.method.upper() in _BODY_METHODS else None
        try:
            headers = self.build_headers(handle, target)
        except TimeoutError as exc:
            raise ReplayTimeoutError(f"Reading page cookies for {target.url} timed out") from exc
        except Exception as exc:  # noqa: BLE001
            raise ReplayError(f"Failed to read page cookies: {exc}") from exc
        try:
            response = requests.request(
                method=target.method.upper(),
                url=target.url,
                headers=headers,
                data=data,
                timeout=self.config.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise ReplayTimeoutError(f"Request to {target.url} timed out") from exc
        except requests.RequestException as exc:
            raise ReplayError(f"Failed to make request: {exc}") from exc

        result = ReplayResult(status=response.status_code, status_text=response.reason or "", body=response.text)
        return _check_status(result, target.url)


def make_replayer(config: ReplayConfig) -> Any:
    if config.mode == "in-page":
        return InPageReplayer(config.timeout_seconds)
    if config.mode == "http":
        return HttpReplayer(config)
    raise ConfigurationError(f"Unknown replay mode '{config.mode}'. Expected one of: {', '.join(REPLAY_MODES)}")


class ReplayEngine:
    """Rebuild the captured request with new query parameters and send it."""

    def __init__(self, executor: Any) -> None:
        self.executor = executor

    def replay(self, handle: SessionHandle, overrides: dict[str, str | None]) -> ReplayResult:
        captured = handle.captured_request
        if captured is None:
            raise ReplayError("No API request was captured; nothing to replay.")
        target = build_target(captured, overrides)
        logger.debug("Replaying %s %s (%s)", target.method, target.url, self.executor.mode)
        result = self.executor.execute(handle, target)
        logger.debug("[API Response] Status: %s %s", result.status, result.status_text)
        return result
