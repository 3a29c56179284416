from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ChallengeState(str, Enum):
    UNCHECKED = "unchecked"
    CLEAR = "clear"
    PRESENTED = "presented"
    BLOCKING = "blocking"


_CHALLENGE_TRANSITIONS: dict[ChallengeState, set[ChallengeState]] = {
    ChallengeState.UNCHECKED: {ChallengeState.CLEAR, ChallengeState.PRESENTED},
    ChallengeState.PRESENTED: {ChallengeState.CLEAR, ChallengeState.BLOCKING},
    ChallengeState.CLEAR: set(),
    ChallengeState.BLOCKING: set(),
}


class SessionState(str, Enum):
    ABSENT = "absent"
    LIVE = "live"


@dataclass(frozen=True)
class CapturedRequest:
    """Value snapshot of one request the page sent to the target endpoint."""

    url: str
    method: str
    headers: Mapping[str, str]
    post_data: str | None = None
    request_id: str = ""
    resource_type: str | None = None
    seen_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def __post_init__(self) -> None:
        # Copy so later mutation of the source dict cannot leak in.
        object.__setattr__(self, "headers", MappingProxyType({str(k): str(v) for k, v in self.headers.items()}))


@dataclass
class SessionHandle:
    """One live browser context: the page, its capture and its challenge state."""

    page: Any
    browser: Any = None
    captured_request: CapturedRequest | None = None
    challenge_state: ChallengeState = ChallengeState.UNCHECKED

    def advance_challenge(self, new_state: ChallengeState) -> None:
        if new_state not in _CHALLENGE_TRANSITIONS[self.challenge_state]:
            raise ValueError(
                f"Illegal challenge transition {self.challenge_state.value} -> {new_state.value}"
            )
        self.challenge_state = new_state


@dataclass(frozen=True)
class RequestTarget:
    url: str
    method: str
    headers: Mapping[str, str]
    body: str | None = None


@dataclass(frozen=True)
class ReplayResult:
    status: int
    status_text: str
    body: str


@dataclass
class ClipQuery:
    sort: str = "view"
    time_range: str = "day"

    def to_params(self) -> dict[str, str]:
        return {"sort": self.sort, "time": self.time_range}


@dataclass
class PaginationState:
    cursor: str | None = None
    accumulated: list[dict[str, Any]] = field(default_factory=list)
    requests_issued: int = 0


@dataclass
class ClipPage:
    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: str | None = None

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {"clips": self.items, "nextCursor": self.next_cursor}
