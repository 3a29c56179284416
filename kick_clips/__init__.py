"""kick-clips package."""

from .client import KickClipsClient
from .config import ReplayConfig, SessionConfig
from .exceptions import (
    CaptureTimeoutError,
    ChallengeBlockedError,
    KickClipsError,
    NavigationTimeoutError,
    ReplayError,
    ReplayTimeoutError,
    SessionSetupError,
    ValidationError,
)
from .hooks import ClipsHooks
from .models import CapturedRequest, ChallengeState, ClipPage, ClipQuery, ReplayResult
from .pagination import PAGE_SIZE, PaginationDriver
from .replay import HttpReplayer, InPageReplayer, ReplayEngine
from .session import SessionLifecycle

__all__ = [
    "PAGE_SIZE",
    "CaptureTimeoutError",
    "CapturedRequest",
    "ChallengeBlockedError",
    "ChallengeState",
    "ClipPage",
    "ClipQuery",
    "ClipsHooks",
    "HttpReplayer",
    "InPageReplayer",
    "KickClipsClient",
    "KickClipsError",
    "NavigationTimeoutError",
    "PaginationDriver",
    "ReplayConfig",
    "ReplayEngine",
    "ReplayError",
    "ReplayResult",
    "ReplayTimeoutError",
    "SessionConfig",
    "SessionLifecycle",
    "SessionSetupError",
    "ValidationError",
]
