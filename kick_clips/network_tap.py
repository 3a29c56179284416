from __future__ import annotations

import logging
import time
from typing import Any, Callable
from urllib.parse import urlparse

from .exceptions import CaptureTimeoutError
from .models import CapturedRequest
from .security_utils import redact_headers

logger = logging.getLogger(__name__)


def _path_matches(url: str, path_contains: str) -> bool:
    path = urlparse(url).path.lower()
    return path_contains.lower() in path


class NetworkTap:
    """Passively record the first request the page sends to the target path."""

    def __init__(self, path_contains: str, method: str | None = None) -> None:
        self.path_contains = path_contains
        self.method = method
        self.captured: CapturedRequest | None = None

    def attach(self, page: Any) -> None:
        page.on("request", self._on_request)
        page.on("response", self._on_response)
        page.on("console", self._on_console)

    def matches(self, url: str, method: str) -> bool:
        if not _path_matches(url, self.path_contains):
            return False
        if self.method and method.upper() != self.method.upper():
            return False
        return True

    def _on_request(self, request: Any) -> None:
        if not self.matches(request.url, request.method):
            return
        if self.captured is not None:
            return
        logger.debug("[REQUEST INTERCEPTED] %s => %s", request.method, request.url)
        self.captured = CapturedRequest(
            url=request.url,
            method=request.method,
            headers=dict(request.headers),
            post_data=request.post_data,
            request_id=request.request_id,
            resource_type=request.resource_type,
        )
        logger.debug("Intercepted headers: %s", redact_headers(dict(self.captured.headers)))

    def _on_response(self, response: Any) -> None:
        if _path_matches(response.url, self.path_contains):
            logger.debug("[RESPONSE] => %s [Status: %s]", response.url, response.status)

    def _on_console(self, message: Any) -> None:
        logger.debug("BROWSER LOG: %s => %s", message.type, message.text)

    def wait_for_capture(
        self,
        page: Any,
        timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> CapturedRequest:
        deadline = clock() + timeout_seconds
        while self.captured is None:
            remaining = deadline - clock()
            if remaining <= 0:
                raise CaptureTimeoutError(
                    f"No request to {self.path_contains} was observed within {timeout_seconds:.1f}s"
                )
            page.pump_events(min(remaining, 0.5))
        return self.captured
