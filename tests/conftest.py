import json
from urllib.parse import parse_qs, urlparse

import pytest

from kick_clips.page import ConsoleMessage, NetworkRequest, NetworkResponse

CAPTURED_URL = "https://kick.com/api/v2/clips?sort=view&time=day"
CAPTURED_HEADERS = {
    "Accept": "application/json",
    "X-XSRF-TOKEN": "eyJpdiI6IkFh==",
    "sec-ch-ua": '"Chromium";v="131", "Not_A Brand";v="24"',
    "User-Agent": "Mozilla/5.0 (X11; Linux x86_64) Chrome/131.0.0.0",
    "Referer": "https://kick.com/browse/clips",
}


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeUpstream:
    """Serves ``total`` clips in pages of ``page_size`` with cursors c1, c2, ..."""

    def __init__(self, total=100, page_size=20, fail_status=None):
        self.total = total
        self.page_size = page_size
        self.fail_status = fail_status
        self.calls = []

    def __call__(self, url, method, headers, body):
        query = parse_qs(urlparse(url).query)
        self.calls.append({"url": url, "method": method, "headers": headers, "query": query})
        if self.fail_status:
            return {"status": self.fail_status, "statusText": "Internal Server Error", "body": "oops"}
        cursor = query.get("cursor", [None])[0]
        page_no = int(cursor[1:]) if cursor else 0
        start = page_no * self.page_size
        clips = [{"id": f"clip_{i}"} for i in range(start, min(start + self.page_size, self.total))]
        next_cursor = f"c{page_no + 1}" if start + self.page_size < self.total else None
        return {"status": 200, "statusText": "OK", "body": json.dumps({"clips": clips, "nextCursor": next_cursor})}


class FakePage:
    def __init__(
        self,
        clock,
        title="Kick",
        verification_present=False,
        request_on="scroll",
        responder=None,
        scroll_height=1000,
        client_height=500,
        has_container=True,
        goto_error=None,
        cookies=None,
    ):
        self.clock = clock
        self.title_text = title
        self.verification_present = verification_present
        self.request_on = request_on
        self.responder = responder or FakeUpstream()
        self.scroll_height = scroll_height
        self.client_height = client_height
        self.has_container = has_container
        self.goto_error = goto_error
        self._cookies = cookies if cookies is not None else [{"name": "session", "value": "abc"}]
        self.handlers = {}
        self.visited = []
        self.scroll_steps = 0
        self.fetch_calls = []
        self.checked_verification = False

    def on(self, event_name, handler):
        self.handlers.setdefault(event_name, []).append(handler)

    def emit(self, event_name, payload):
        for handler in self.handlers.get(event_name, []):
            handler(payload)

    def emit_api_request(self):
        self.emit("request", NetworkRequest("0", "https://kick.com/build/app.js", "GET", {"Accept": "*/*"}))
        self.emit("request", NetworkRequest("1", CAPTURED_URL, "GET", dict(CAPTURED_HEADERS), None, "Fetch"))
        self.emit("response", NetworkResponse("1", CAPTURED_URL, 200, "OK"))
        self.emit("console", ConsoleMessage("log", "clips loaded"))

    def goto(self, url, timeout_seconds=30.0):
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)
        if self.request_on == "goto":
            self.emit_api_request()

    def title(self):
        return self.title_text

    def content(self):
        return "<html><body>clips</body></html>"

    def cookies(self):
        return list(self._cookies)

    def pump_events(self, timeout_seconds):
        self.clock.now += timeout_seconds
        return 0

    def evaluate(self, expression, timeout_seconds=None):
        if expression == "document.title":
            return self.title_text
        if "querySelector('p')" in expression:
            self.checked_verification = True
            return self.verification_present
        if "scrollBy" in expression:
            if not self.has_container:
                return None
            self.scroll_steps += 1
            if self.request_on == "scroll" and self.scroll_steps == 3:
                self.emit_api_request()
            return {"scrollHeight": self.scroll_height, "clientHeight": self.client_height}
        if "fetch(" in expression:
            start = expression.rindex("})(") + 3
            args = json.loads("[" + expression[start : expression.rindex(")")] + "]")
            url, method, headers, body = args[:4]
            self.fetch_calls.append(args)
            return self.responder(url, method, headers, body)
        raise AssertionError(f"unexpected expression {expression[:60]}")


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.close_calls = 0

    def close(self):
        self.close_calls += 1


class RecordingLauncher:
    def __init__(self, page_factory):
        self.page_factory = page_factory
        self.browsers = []

    def __call__(self, config):
        browser = FakeBrowser(self.page_factory())
        self.browsers.append(browser)
        return browser


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fast_session_config():
    from kick_clips.config import SessionConfig

    return SessionConfig(
        capture_timeout_seconds=2.0,
        challenge_grace_seconds=2.0,
        scroll_settle_seconds=3.0,
        scroll_interval_seconds=0.2,
        max_scroll_steps=50,
    )
