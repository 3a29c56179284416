from __future__ import annotations


class KickClipsError(Exception):
    """Base exception type for library consumers."""


class ConfigurationError(KickClipsError):
    pass


class ValidationError(KickClipsError):
    """Caller supplied an invalid limit or query parameter."""


class SessionSetupError(KickClipsError):
    """Launching the browser or navigating to the target page failed."""


class NavigationTimeoutError(SessionSetupError):
    pass


class ChallengeBlockedError(KickClipsError):
    """The anti-automation interstitial did not resolve within the grace period."""

    def __init__(self, message: str = "Cloudflare challenge detected") -> None:
        super().__init__(message)


class CaptureTimeoutError(KickClipsError):
    """No request to the target endpoint was observed before the deadline."""


class ReplayError(KickClipsError):
    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ReplayTimeoutError(ReplayError):
    pass
