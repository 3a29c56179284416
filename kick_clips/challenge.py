"""Detection of the anti-automation interstitial shown before the real page."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable

from .models import ChallengeState, SessionHandle

logger = logging.getLogger(__name__)

INTERSTITIAL_TITLE_MARKER = "Just a moment"
HUMAN_VERIFICATION_MARKER = "Verify you are human by completing the action below"


def _verification_check(marker: str) -> str:
    return (
        "(() => {"
        " const paragraph = document.querySelector('p');"
        " if (!paragraph) return false;"
        f" return (paragraph.textContent || '').includes({json.dumps(marker)});"
        "})()"
    )


class ChallengeDetector:
    """Classify whether a challenge blocks the page.

    This is a single check: if the interstitial title is showing, wait one
    grace interval for the page to clear itself, then look for the
    human-verification prompt once. There is no polling loop.
    """

    def __init__(
        self,
        grace_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        title_marker: str = INTERSTITIAL_TITLE_MARKER,
        verification_marker: str = HUMAN_VERIFICATION_MARKER,
    ) -> None:
        self.grace_seconds = grace_seconds
        self.title_marker = title_marker
        self.verification_marker = verification_marker
        self._sleep = sleep

    def detect(self, page: Any, handle: SessionHandle) -> ChallengeState:
        logger.debug("Checking for Cloudflare challenge...")
        title = str(page.title() or "")
        if self.title_marker not in title:
            handle.advance_challenge(ChallengeState.CLEAR)
            logger.debug("No Cloudflare challenge detected.")
            return handle.challenge_state

        handle.advance_challenge(ChallengeState.PRESENTED)
        logger.warning(
            'Cloudflare detected: page title contains "%s". Waiting %.1fs for possible redirect...',
            self.title_marker,
            self.grace_seconds,
        )
        self._sleep(self.grace_seconds)

        if page.evaluate(_verification_check(self.verification_marker)):
            handle.advance_challenge(ChallengeState.BLOCKING)
            logger.error('Cloudflare challenge found: "%s" text is present.', self.verification_marker)
        else:
            handle.advance_challenge(ChallengeState.CLEAR)
            logger.info("Challenge resolved during the grace period.")
        return handle.challenge_state
