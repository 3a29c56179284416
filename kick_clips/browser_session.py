from __future__ import annotations

import logging
import shutil
from subprocess import Popen

from .cdp import CDPClient
from .chrome_discovery import pick_page_websocket_url
from .chrome_launcher import launch_browser, wait_for_debug_endpoint
from .config import SessionConfig
from .page import CDPPage

logger = logging.getLogger(__name__)


class BrowserSession:
    """A launched browser process plus the one page the scraper drives."""

    def __init__(self, config: SessionConfig) -> None:
        self.config = config
        self.page: CDPPage | None = None
        self._proc: Popen[bytes] | None = None
        self._temp_profile: str | None = None

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def open(self) -> CDPPage:
        cfg = self.config
        self._proc, profile_root = launch_browser(
            browser=cfg.browser,
            browser_path=cfg.browser_path,
            port=cfg.chrome_port,
            user_data_dir=cfg.user_data_dir,
            headless=cfg.headless,
        )
        if cfg.user_data_dir is None:
            self._temp_profile = profile_root
        logger.info("Launched %s (pid=%s) on port %s", cfg.browser, self._proc.pid, cfg.chrome_port)

        wait_for_debug_endpoint(cfg.chrome_host, cfg.chrome_port, timeout_seconds=cfg.launch_timeout_seconds)
        ws_url = pick_page_websocket_url(cfg.chrome_host, cfg.chrome_port)

        client = CDPClient(ws_url, timeout_seconds=cfg.command_timeout_seconds)
        client.connect()
        client.enable_domains()
        client.set_user_agent(cfg.user_agent, cfg.accept_language)
        client.set_extra_headers({"Accept-Language": cfg.accept_language})
        self.page = CDPPage(client, network_idle_seconds=cfg.network_idle_seconds)
        return self.page

    def close(self) -> None:
        if self.page is not None:
            try:
                self.page.close()
            except Exception as exc:  # noqa: BLE001
                logger.debug("Ignoring error while closing page: %s", exc)
            self.page = None
        if self._proc is not None:
            self._proc.terminate()
            try:
                self._proc.wait(timeout=5)
            except Exception:  # noqa: BLE001
                self._proc.kill()
            self._proc = None
            logger.info("Browser terminated")
        if self._temp_profile is not None:
            shutil.rmtree(self._temp_profile, ignore_errors=True)
            self._temp_profile = None


def open_browser_session(config: SessionConfig) -> BrowserSession:
    session = BrowserSession(config)
    try:
        session.open()
    except BaseException:
        session.close()
        raise
    return session
