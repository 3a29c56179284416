from __future__ import annotations

from dataclasses import dataclass, field

BASE_URL = "https://kick.com"
CLIPS_API_PATH = "/api/v2/clips"
DEFAULT_PAGE_URL = f"{BASE_URL}/browse/clips"

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)
ACCEPT_LANGUAGE = "en-GB,en;q=0.9,en;q=0.8"

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--start-maximized",
    "--disable-infobars",
    "--disable-dev-shm-usage",
]

# Must agree with USER_AGENT; override when running a different Chrome.
DEFAULT_CLIENT_HINTS = {
    "sec-ch-ua": '"Google Chrome";v="131", "Chromium";v="131", "Not_A Brand";v="24"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"macOS"',
}

REPLAY_MODES = ("in-page", "http")


@dataclass
class SessionConfig:
    browser: str = "chrome"
    browser_path: str | None = None
    chrome_host: str = "127.0.0.1"
    chrome_port: int = 9222
    headless: bool = True
    user_data_dir: str | None = None
    page_url: str = DEFAULT_PAGE_URL
    capture_path: str = CLIPS_API_PATH
    user_agent: str = USER_AGENT
    accept_language: str = ACCEPT_LANGUAGE
    launch_timeout_seconds: float = 15.0
    command_timeout_seconds: float = 10.0
    navigation_timeout_seconds: float = 30.0
    network_idle_seconds: float = 0.5
    capture_timeout_seconds: float = 15.0
    challenge_grace_seconds: float = 2.0
    scroll_settle_seconds: float = 3.0
    scroll_step_pixels: int = 100
    scroll_interval_seconds: float = 0.2
    max_scroll_steps: int = 50
    scroll_container_selector: str = "#main-container"
    snapshot_dir: str | None = None


@dataclass
class ReplayConfig:
    mode: str = "in-page"
    timeout_seconds: float = 20.0
    user_agent: str = USER_AGENT
    accept_language: str = ACCEPT_LANGUAGE
    client_hints: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_CLIENT_HINTS))
