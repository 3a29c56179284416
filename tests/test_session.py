import pytest
from conftest import CAPTURED_URL, FakePage, RecordingLauncher

from kick_clips.exceptions import (
    CaptureTimeoutError,
    ChallengeBlockedError,
    NavigationTimeoutError,
    SessionSetupError,
)
from kick_clips.models import ChallengeState, SessionState
from kick_clips.session import SessionLifecycle, auto_scroll


def _lifecycle(config, clock, **page_kwargs):
    launcher = RecordingLauncher(lambda: FakePage(clock, **page_kwargs))
    lifecycle = SessionLifecycle(config, launcher=launcher, sleep=clock.sleep, clock=clock)
    return lifecycle, launcher


def test_ensure_session_captures_request_after_scroll(fast_session_config, clock):
    lifecycle, launcher = _lifecycle(fast_session_config, clock)

    handle = lifecycle.ensure_session()

    assert lifecycle.state is SessionState.LIVE
    assert handle.captured_request.url == CAPTURED_URL
    assert handle.challenge_state is ChallengeState.CLEAR
    assert handle.page.visited == [fast_session_config.page_url]
    assert handle.page.scroll_steps == 5


def test_ensure_session_is_reused(fast_session_config, clock):
    lifecycle, launcher = _lifecycle(fast_session_config, clock)

    first = lifecycle.ensure_session()
    second = lifecycle.ensure_session()

    assert first is second
    assert len(launcher.browsers) == 1


def test_capture_during_navigation_skips_scrolling(fast_session_config, clock):
    lifecycle, _ = _lifecycle(fast_session_config, clock, request_on="goto")
    handle = lifecycle.ensure_session()
    assert handle.page.scroll_steps == 0
    assert handle.captured_request is not None


def test_blocking_challenge_disposes_and_raises(fast_session_config, clock):
    lifecycle, launcher = _lifecycle(
        fast_session_config, clock, title="Just a moment...", verification_present=True
    )

    with pytest.raises(ChallengeBlockedError):
        lifecycle.ensure_session()

    assert lifecycle.state is SessionState.ABSENT
    assert launcher.browsers[0].close_calls == 1
    assert launcher.browsers[0].page.scroll_steps == 0


def test_resolved_challenge_proceeds(fast_session_config, clock):
    lifecycle, _ = _lifecycle(fast_session_config, clock, title="Just a moment...", verification_present=False)
    handle = lifecycle.ensure_session()
    assert handle.challenge_state is ChallengeState.CLEAR


def test_capture_timeout_disposes(fast_session_config, clock):
    lifecycle, launcher = _lifecycle(fast_session_config, clock, request_on=None)

    with pytest.raises(CaptureTimeoutError):
        lifecycle.ensure_session()

    assert lifecycle.state is SessionState.ABSENT
    assert lifecycle.handle is None
    assert launcher.browsers[0].close_calls == 1
    assert launcher.browsers[0].page.fetch_calls == []


def test_navigation_timeout_is_distinct(fast_session_config, clock):
    lifecycle, launcher = _lifecycle(fast_session_config, clock, goto_error=TimeoutError("slow"))

    with pytest.raises(NavigationTimeoutError) as info:
        lifecycle.ensure_session()

    assert isinstance(info.value.__cause__, TimeoutError)
    assert lifecycle.state is SessionState.ABSENT
    assert launcher.browsers[0].close_calls == 1


def test_launch_failure_wraps_as_setup_error(fast_session_config, clock):
    def failing_launcher(config):
        raise RuntimeError("Could not determine Chrome path")

    lifecycle = SessionLifecycle(fast_session_config, launcher=failing_launcher, sleep=clock.sleep, clock=clock)
    with pytest.raises(SessionSetupError) as info:
        lifecycle.ensure_session()
    assert "Chrome path" in str(info.value)
    assert lifecycle.state is SessionState.ABSENT


def test_interrupt_during_setup_still_closes_browser(fast_session_config, clock):
    launcher = RecordingLauncher(lambda: FakePage(clock))

    def interrupted_sleep(seconds):
        raise KeyboardInterrupt

    lifecycle = SessionLifecycle(fast_session_config, launcher=launcher, sleep=interrupted_sleep, clock=clock)

    with pytest.raises(KeyboardInterrupt):
        lifecycle.ensure_session()

    assert lifecycle.state is SessionState.ABSENT
    assert launcher.browsers[0].close_calls == 1


def test_dispose_is_idempotent(fast_session_config, clock):
    lifecycle, launcher = _lifecycle(fast_session_config, clock)
    lifecycle.dispose()

    lifecycle.ensure_session()
    lifecycle.dispose()
    lifecycle.dispose()

    assert lifecycle.state is SessionState.ABSENT
    assert lifecycle.captured_request is None
    assert launcher.browsers[0].close_calls == 1


def test_snapshots_written(fast_session_config, clock, tmp_path):
    fast_session_config.snapshot_dir = str(tmp_path)
    lifecycle, _ = _lifecycle(fast_session_config, clock)
    lifecycle.ensure_session()
    assert "clips" in (tmp_path / "last_response.html").read_text(encoding="utf-8")


def test_error_snapshot_written_on_failure(fast_session_config, clock, tmp_path):
    fast_session_config.snapshot_dir = str(tmp_path)
    lifecycle, _ = _lifecycle(fast_session_config, clock, request_on=None)
    with pytest.raises(CaptureTimeoutError):
        lifecycle.ensure_session()
    assert "/api/v2/clips" in (tmp_path / "error_response.html").read_text(encoding="utf-8")


def test_auto_scroll_is_bounded_by_max_steps(clock):
    page = FakePage(clock, request_on=None, scroll_height=100000, client_height=500)
    steps = auto_scroll(page, "#main-container", 100, 0.2, max_steps=7, sleep=clock.sleep)
    assert steps == 7
    assert page.scroll_steps == 7


def test_auto_scroll_stops_at_end(clock):
    page = FakePage(clock, request_on=None, scroll_height=800, client_height=500)
    steps = auto_scroll(page, "#main-container", 100, 0.2, max_steps=50, sleep=clock.sleep)
    assert steps == 3
    assert clock.sleeps == [0.2, 0.2]


def test_auto_scroll_without_container(clock):
    page = FakePage(clock, has_container=False)
    assert auto_scroll(page, "#missing", 100, 0.2, max_steps=5, sleep=clock.sleep) == 0
