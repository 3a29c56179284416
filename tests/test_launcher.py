from kick_clips import chrome_launcher


class DummyProc:
    pid = 4242


def test_launch_browser_builds_debug_args(monkeypatch):
    captured = {}

    def fake_popen(args, **kwargs):
        captured["args"] = args
        captured["kwargs"] = kwargs
        return DummyProc()

    monkeypatch.setattr("kick_clips.chrome_launcher.platform.system", lambda: "Linux")
    monkeypatch.setattr("kick_clips.chrome_launcher.subprocess.Popen", fake_popen)

    proc, profile = chrome_launcher.launch_browser(
        browser="chrome",
        browser_path="/usr/bin/chromium",
        port=9333,
        user_data_dir="/tmp/profile-root",
        headless=True,
    )

    assert isinstance(proc, DummyProc)
    assert profile == "/tmp/profile-root"
    args = captured["args"]
    assert args[0] == "/usr/bin/chromium"
    assert "--remote-debugging-port=9333" in args
    assert "--remote-allow-origins=*" in args
    assert "--headless=new" in args
    assert "--no-sandbox" in args
    assert args[-1] == "about:blank"


def test_launch_browser_uses_temp_profile(monkeypatch, tmp_path):
    monkeypatch.setattr("kick_clips.chrome_launcher.platform.system", lambda: "Linux")
    monkeypatch.setattr("kick_clips.chrome_launcher.subprocess.Popen", lambda args, **kwargs: DummyProc())
    monkeypatch.setattr("kick_clips.chrome_launcher.tempfile.mkdtemp", lambda prefix: str(tmp_path / prefix))

    _, profile = chrome_launcher.launch_browser("chrome", "/usr/bin/chromium", 9222, None, headless=False)
    assert profile.endswith("kick-clips-profile-")


def test_launch_browser_without_executable(monkeypatch):
    monkeypatch.setattr("kick_clips.chrome_launcher.detect_browser_path", lambda browser: None)
    try:
        chrome_launcher.launch_browser("chrome", None, 9222, None, headless=True)
    except RuntimeError as exc:
        assert "--browser-path" in str(exc)
    else:
        raise AssertionError("expected RuntimeError")


def test_detect_browser_path_posix_uses_which(monkeypatch):
    monkeypatch.setattr("kick_clips.chrome_launcher.platform.system", lambda: "Linux")
    monkeypatch.setattr(
        "kick_clips.chrome_launcher.shutil.which",
        lambda name: "/usr/bin/chromium" if name == "chromium" else None,
    )
    assert chrome_launcher.detect_browser_path("chrome") == "/usr/bin/chromium"
