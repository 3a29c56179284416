from __future__ import annotations

import json
import logging
import math
from typing import Any

from .endpoints import CURSOR_PARAM, validate_params
from .exceptions import ReplayError, ValidationError
from .hooks import ClipsHooks
from .models import ClipPage, ClipQuery, PaginationState
from .replay import ReplayEngine
from .session import SessionLifecycle

logger = logging.getLogger(__name__)

# Fixed by the upstream API.
PAGE_SIZE = 20


def _validate_limit(limit: Any) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")
    if limit <= 0:
        raise ValidationError(f"limit must be a positive integer, got {limit}")
    return limit


def parse_clips_body(body: str) -> tuple[list[dict[str, Any]], str | None]:
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ReplayError(f"Clips response was not valid JSON: {exc}") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("clips"), list):
        raise ReplayError("Clips response did not contain a 'clips' list")
    cursor = payload.get("nextCursor")
    return list(payload["clips"]), (str(cursor) if cursor else None)


class PaginationDriver:
    def __init__(
        self,
        session: SessionLifecycle,
        engine: ReplayEngine,
        hooks: ClipsHooks | None = None,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self.session = session
        self.engine = engine
        self.hooks = hooks or ClipsHooks()
        self.page_size = page_size

    def fetch_up_to(self, query: ClipQuery, limit: int = PAGE_SIZE) -> ClipPage:
        """Collect at most *limit* clips, following ``nextCursor`` across pages.

        The browser session is set up once; every page after that is a replay
        of the captured request with the cursor swapped in. Any failure aborts
        the whole run.
        """
        limit = _validate_limit(limit)
        params = query.to_params()
        validate_params("clips", params)

        handle = self.session.ensure_session()
        self.hooks.on_session_ready(handle.captured_request)

        requests_needed = math.ceil(limit / self.page_size)
        state = PaginationState()
        logger.info("Fetching up to %d clips (%d requests max)", limit, requests_needed)

        while state.requests_issued < requests_needed and len(state.accumulated) < limit:
            overrides: dict[str, str | None] = dict(params)
            # The API treats a present-but-empty cursor differently from none.
            overrides[CURSOR_PARAM] = state.cursor
            result = self.engine.replay(handle, overrides)
            state.requests_issued += 1

            items, next_cursor = parse_clips_body(result.body)
            state.accumulated.extend(items)
            state.cursor = next_cursor
            logger.info(
                "[Request %d] Count clips: %d, total so far: %d",
                state.requests_issued,
                len(items),
                len(state.accumulated),
            )
            self.hooks.on_page(state.requests_issued, requests_needed, len(items), len(state.accumulated), next_cursor)

            if next_cursor is None:
                logger.info("No more clips available from the API")
                break

        items = state.accumulated
        trimmed = len(items) > limit
        if trimmed:
            items = items[:limit]
            logger.info("Trimmed result to %d clips as requested", limit)

        self.hooks.on_complete(len(items), trimmed)
        logger.info("Fetch complete. Retrieved %d clips total", len(items))
        return ClipPage(items=items, next_cursor=state.cursor)
