from __future__ import annotations

from .models import CapturedRequest


class ClipsHooks:
    """Progress callbacks for a pagination run. Override what you need."""

    def on_session_ready(self, captured: CapturedRequest) -> None:
        pass

    def on_page(
        self,
        request_number: int,
        requests_planned: int,
        received: int,
        total: int,
        next_cursor: str | None,
    ) -> None:
        pass

    def on_complete(self, total: int, trimmed: bool) -> None:
        pass
