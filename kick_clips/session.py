from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

from .browser_session import open_browser_session
from .challenge import ChallengeDetector
from .config import SessionConfig
from .exceptions import (
    ChallengeBlockedError,
    KickClipsError,
    NavigationTimeoutError,
    SessionSetupError,
)
from .models import CapturedRequest, ChallengeState, SessionHandle, SessionState
from .network_tap import NetworkTap
from .storage import ERROR_RESPONSE_FILE, LAST_RESPONSE_FILE, write_snapshot

logger = logging.getLogger(__name__)

Launcher = Callable[[SessionConfig], Any]


def _scroll_step_script(selector: str, step_pixels: int) -> str:
    return (
        "(() => {"
        f" const container = document.querySelector({json.dumps(selector)});"
        " if (!container) return null;"
        f" container.scrollBy(0, {int(step_pixels)});"
        " return {scrollHeight: container.scrollHeight, clientHeight: container.clientHeight};"
        "})()"
    )


def auto_scroll(
    page: Any,
    selector: str,
    step_pixels: int,
    interval_seconds: float,
    max_steps: int,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Scroll *selector* in fixed steps until its end or *max_steps*; return steps taken.

    Scrolling makes the clip grid lazy-load, which is what gets the page to
    call the clips API in the first place.
    """
    script = _scroll_step_script(selector, step_pixels)
    position = 0
    steps = 0
    while steps < max_steps:
        dims = page.evaluate(script)
        if dims is None:
            logger.warning("No element found for scroll container %s", selector)
            return steps
        steps += 1
        position += step_pixels
        bottom_reached = position >= int(dims.get("scrollHeight", 0)) - int(dims.get("clientHeight", 0))
        logger.debug("Scroll step: %d, bottom reached: %s", steps, bottom_reached)
        if bottom_reached:
            break
        sleep(interval_seconds)
    return steps


class SessionLifecycle:
    """Owns the single browser session: create once, reuse, dispose."""

    def __init__(
        self,
        config: SessionConfig | None = None,
        launcher: Launcher = open_browser_session,
        detector: ChallengeDetector | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or SessionConfig()
        self._launcher = launcher
        self._sleep = sleep
        self._clock = clock
        self.detector = detector or ChallengeDetector(self.config.challenge_grace_seconds, sleep=sleep)
        self._handle: SessionHandle | None = None

    @property
    def state(self) -> SessionState:
        return SessionState.LIVE if self._handle is not None else SessionState.ABSENT

    @property
    def handle(self) -> SessionHandle | None:
        return self._handle

    @property
    def captured_request(self) -> CapturedRequest | None:
        return self._handle.captured_request if self._handle is not None else None

    def ensure_session(self) -> SessionHandle:
        if self._handle is not None:
            return self._handle

        browser = None
        try:
            try:
                browser = self._launcher(self.config)
            except Exception as exc:  # noqa: BLE001
                raise SessionSetupError(f"Failed to create new session: {exc}") from exc
            handle = SessionHandle(page=browser.page, browser=browser)
            self._prepare(handle)
        except BaseException as exc:
            if isinstance(exc, KickClipsError):
                self._write_error_snapshot(exc)
            self._close_browser(browser)
            raise

        self._handle = handle
        logger.info("Session ready; captured %s %s", handle.captured_request.method, handle.captured_request.url)
        return handle

    def _prepare(self, handle: SessionHandle) -> None:
        cfg = self.config
        page = handle.page
        tap = NetworkTap(cfg.capture_path)
        tap.attach(page)

        logger.info("Navigating to %s...", cfg.page_url)
        try:
            page.goto(cfg.page_url, timeout_seconds=cfg.navigation_timeout_seconds)
        except TimeoutError as exc:
            raise NavigationTimeoutError(f"Navigation to {cfg.page_url} timed out") from exc
        except Exception as exc:  # noqa: BLE001
            raise SessionSetupError(f"Navigation to {cfg.page_url} failed: {exc}") from exc

        try:
            state = self.detector.detect(page, handle)
        except Exception as exc:  # noqa: BLE001
            raise SessionSetupError(f"Challenge check failed: {exc}") from exc
        if state is ChallengeState.BLOCKING:
            raise ChallengeBlockedError()

        self._write_page_snapshot(page)

        if tap.captured is None:
            logger.debug("Starting auto scroll...")
            self._sleep(cfg.scroll_settle_seconds)
            try:
                steps = auto_scroll(
                    page,
                    cfg.scroll_container_selector,
                    cfg.scroll_step_pixels,
                    cfg.scroll_interval_seconds,
                    cfg.max_scroll_steps,
                    sleep=self._sleep,
                )
            except Exception as exc:  # noqa: BLE001
                raise SessionSetupError(f"Auto scroll failed: {exc}") from exc
            logger.debug("Auto scroll finished after %d steps", steps)

        try:
            handle.captured_request = tap.wait_for_capture(page, cfg.capture_timeout_seconds, clock=self._clock)
        except KickClipsError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise SessionSetupError(f"Lost connection while waiting for capture: {exc}") from exc

    def _write_page_snapshot(self, page: Any) -> None:
        if not self.config.snapshot_dir:
            return
        try:
            path = write_snapshot(self.config.snapshot_dir, LAST_RESPONSE_FILE, page.content())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not save page snapshot: %s", exc)
            return
        logger.debug("Saved HTML content to %s", path)

    def _write_error_snapshot(self, error: Exception) -> None:
        if not self.config.snapshot_dir:
            return
        try:
            write_snapshot(self.config.snapshot_dir, ERROR_RESPONSE_FILE, str(error))
        except OSError as exc:
            logger.warning("Could not save error snapshot: %s", exc)

    def _close_browser(self, browser: Any) -> None:
        if browser is None:
            return
        try:
            browser.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error while closing browser: %s", exc)

    def dispose(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        handle.captured_request = None
        self._close_browser(handle.browser)
        logger.debug("Session disposed")
