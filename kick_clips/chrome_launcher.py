from __future__ import annotations

import os
import platform
import shutil
import subprocess
import tempfile
import time
import urllib.request

from .config import BROWSER_ARGS

_POSIX_NAMES = {
    "chrome": ["google-chrome", "google-chrome-stable", "chromium", "chromium-browser"],
    "edge": ["microsoft-edge", "microsoft-edge-stable"],
}


def detect_browser_path(browser: str) -> str | None:
    browser = browser.lower()
    if browser not in {"chrome", "edge"}:
        raise ValueError(f"Unsupported browser: {browser}")

    system = platform.system().lower()
    if "darwin" in system:
        app_paths = {
            "chrome": "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            "edge": "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
        }
        path = app_paths[browser]
        return path if os.path.exists(path) else None
    if "windows" in system:
        candidates = {
            "chrome": [
                os.path.expandvars(r"%ProgramFiles%\\Google\\Chrome\\Application\\chrome.exe"),
                os.path.expandvars(r"%ProgramFiles(x86)%\\Google\\Chrome\\Application\\chrome.exe"),
                os.path.expandvars(r"%LocalAppData%\\Google\\Chrome\\Application\\chrome.exe"),
            ],
            "edge": [
                os.path.expandvars(r"%ProgramFiles%\\Microsoft\\Edge\\Application\\msedge.exe"),
                os.path.expandvars(r"%ProgramFiles(x86)%\\Microsoft\\Edge\\Application\\msedge.exe"),
            ],
        }[browser]
        for candidate in candidates:
            if os.path.exists(candidate):
                return candidate
        return None
    for name in _POSIX_NAMES[browser]:
        found = shutil.which(name)
        if found:
            return found
    return None


def wait_for_debug_endpoint(host: str, port: int, timeout_seconds: float = 15) -> None:
    deadline = time.time() + timeout_seconds
    url = f"http://{host}:{port}/json/version"
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(url, timeout=1):
                return
        except Exception:  # noqa: BLE001
            time.sleep(0.5)
    raise TimeoutError(f"Chrome DevTools endpoint did not come up at {url}")


def build_browser_args(
    resolved_path: str,
    port: int,
    profile_root: str,
    headless: bool,
) -> list[str]:
    args = [
        resolved_path,
        f"--remote-debugging-port={port}",
        "--remote-allow-origins=*",
        f"--user-data-dir={profile_root}",
        *BROWSER_ARGS,
    ]
    if headless:
        args.append("--headless=new")
    args.append("about:blank")
    return args


def launch_browser(
    browser: str,
    browser_path: str | None,
    port: int,
    user_data_dir: str | None,
    headless: bool,
) -> tuple[subprocess.Popen[bytes], str]:
    """Start the browser with remote debugging enabled.

    Returns the process and the profile directory it was started with. When
    *user_data_dir* is not given a throwaway profile is created.
    """
    resolved = browser_path or detect_browser_path(browser)
    if not resolved:
        raise RuntimeError(f"Could not determine {browser.title()} path. Pass --browser-path.")

    profile_root = user_data_dir or tempfile.mkdtemp(prefix="kick-clips-profile-")
    args = build_browser_args(resolved, port, profile_root, headless)

    if platform.system().lower() == "windows":
        # Chrome only binds the debug port reliably in its own console.
        proc = subprocess.Popen(
            args,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            creationflags=subprocess.CREATE_NEW_CONSOLE,
        )  # type: ignore[call-overload]
        return proc, profile_root

    proc = subprocess.Popen(args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    return proc, profile_root
