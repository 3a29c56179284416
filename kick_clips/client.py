from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from .browser_session import open_browser_session
from .config import ReplayConfig, SessionConfig
from .hooks import ClipsHooks
from .models import CapturedRequest, ClipPage, ClipQuery
from .pagination import PAGE_SIZE, PaginationDriver
from .replay import ReplayEngine, make_replayer
from .session import Launcher, SessionLifecycle

logger = logging.getLogger(__name__)


class KickClipsClient:
    """Stable library API: fetch clips through one captured browser session.

    Use it as a context manager so the browser is always released::

        with KickClipsClient() as client:
            page = client.fetch_clips("view", "day", limit=45)
    """

    def __init__(
        self,
        session_config: SessionConfig | None = None,
        replay_config: ReplayConfig | None = None,
        hooks: ClipsHooks | None = None,
        launcher: Launcher = open_browser_session,
    ) -> None:
        self.session_config = session_config or SessionConfig()
        self.replay_config = replay_config or ReplayConfig(
            user_agent=self.session_config.user_agent,
            accept_language=self.session_config.accept_language,
        )
        self.session = SessionLifecycle(self.session_config, launcher=launcher)
        self.engine = ReplayEngine(make_replayer(self.replay_config))
        self.driver = PaginationDriver(self.session, self.engine, hooks=hooks)

    @property
    def captured_request(self) -> CapturedRequest | None:
        return self.session.captured_request

    def fetch_clips(self, sort: str = "view", time_range: str = "day", limit: int = PAGE_SIZE) -> ClipPage:
        try:
            return self.driver.fetch_up_to(ClipQuery(sort=sort, time_range=time_range), limit)
        except BaseException:
            logger.debug("Fetch failed; disposing session")
            self.dispose_session()
            raise

    async def fetch_clips_async(self, sort: str = "view", time_range: str = "day", limit: int = PAGE_SIZE) -> ClipPage:
        return await asyncio.to_thread(self.fetch_clips, sort, time_range, limit)

    def with_replay_mode(self, mode: str) -> "KickClipsClient":
        """Switch replay mode, keeping the live session and its capture."""
        self.replay_config = replace(self.replay_config, mode=mode)
        self.engine.executor = make_replayer(self.replay_config)
        return self

    def dispose_session(self) -> None:
        self.session.dispose()

    def __enter__(self) -> "KickClipsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.dispose_session()
        return False
