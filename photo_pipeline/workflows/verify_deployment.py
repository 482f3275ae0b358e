"""Wait until a deployed site serves the expected commit."""

import logging
import time
from collections.abc import Callable

import httpx

from ..utils.logging import log_section, log_success

logger = logging.getLogger(__name__)

DEFAULT_SITE_URL = "https://appgates.github.io/PongPush/"
DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_RETRY_DELAY = 10.0
REQUEST_TIMEOUT = 30.0


def commit_marker(sha: str) -> str:
    """HTML attribute the deployed page carries for its build commit."""
    return f'id="commit-{sha}"'


class DeploymentVerifier:
    """Polls a site until it answers 200 with the expected commit marker."""

    def __init__(
        self,
        expected_commit: str,
        site_url: str = DEFAULT_SITE_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize deployment verifier.

        Args:
            expected_commit: Full commit SHA the page must contain
            site_url: Deployed site
            max_attempts: Number of checks before giving up
            retry_delay: Seconds between checks
            transport: Custom httpx transport (tests use ``httpx.MockTransport``)
            sleep: Sleep function, replaceable in tests
        """
        if not expected_commit:
            raise ValueError("Expected commit SHA is required (set GITHUB_SHA)")
        self.expected_commit = expected_commit
        self.site_url = site_url
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._transport = transport
        self._sleep = sleep

    def _fetch(self, client: httpx.Client) -> tuple[int, str]:
        """Status code and body of the site; ``(0, "")`` on transport errors."""
        try:
            response = client.get(self.site_url)
        except httpx.HTTPError as e:
            logger.debug("Request to %s failed: %s", self.site_url, e)
            return 0, ""
        return response.status_code, response.text

    def verify(self) -> bool:
        """Check the site up to ``max_attempts`` times.

        Returns:
            True once the expected commit is live, False when attempts run out
        """
        log_section(logger, "Verify Deployment Workflow")
        logger.info("Expected commit: %s", self.expected_commit)
        logger.info("Site URL: %s", self.site_url)
        logger.info("")

        marker = commit_marker(self.expected_commit)
        with httpx.Client(
            timeout=REQUEST_TIMEOUT, follow_redirects=True, transport=self._transport
        ) as client:
            for attempt in range(1, self.max_attempts + 1):
                logger.info(
                    "Attempt %d/%d: Checking deployment...", attempt, self.max_attempts
                )
                status_code, body = self._fetch(client)

                if status_code != 200:
                    logger.info(
                        "⏳ Website not accessible yet (HTTP %d), retrying in %ss...",
                        status_code,
                        int(self.retry_delay),
                    )
                elif marker in body:
                    log_success(
                        logger, "✅ Correct commit %s is deployed!", self.expected_commit
                    )
                    return True
                else:
                    logger.info(
                        "⏳ Commit %s not found yet, retrying in %ss...",
                        self.expected_commit,
                        int(self.retry_delay),
                    )

                if attempt < self.max_attempts:
                    self._sleep(self.retry_delay)

        logger.error(
            "❌ Timeout: Commit %s was not deployed after %d attempts",
            self.expected_commit,
            self.max_attempts,
        )
        return False
