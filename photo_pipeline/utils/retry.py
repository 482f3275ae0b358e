"""Retry helper for flaky network operations such as git push and fetch."""

import logging
import time
from collections.abc import Callable, Sequence

from ..gitops.process import ProcessError, ProcessResult

logger = logging.getLogger(__name__)

BACKOFF_DELAYS: tuple[float, ...] = (2.0, 4.0, 8.0, 16.0)
NETWORK_ERROR_MARKERS = ("Connection", "timeout", "reset")


def is_network_error(stderr: str) -> bool:
    """Whether a failed command's stderr looks like a transient network issue."""
    return any(marker in stderr for marker in NETWORK_ERROR_MARKERS)


def retry_with_backoff(
    operation: Callable[[], ProcessResult],
    describe: str,
    max_retries: int = 4,
    delays: Sequence[float] = BACKOFF_DELAYS,
    sleep: Callable[[float], None] = time.sleep,
    fatal: Callable[[ProcessResult], str | None] | None = None,
) -> ProcessResult:
    """Run ``operation`` until it succeeds or a non-retryable failure occurs.

    Only failures whose stderr matches :func:`is_network_error` are retried,
    up to ``max_retries`` extra attempts. The wait before retry ``n`` is
    ``delays[n]`` (the last delay is reused if the list is short).

    Args:
        operation: Callable performing one attempt
        describe: Human-readable action name used in log messages
        max_retries: Number of retries after the first attempt
        delays: Seconds to wait before each retry
        sleep: Sleep function, replaceable in tests
        fatal: Optional check returning an error message for failures that
            must not be retried at all

    Returns:
        The successful ProcessResult

    Raises:
        ProcessError: When the operation fails for good
    """
    total = max_retries + 1
    for attempt in range(total):
        logger.info("%s (attempt %d/%d)", describe, attempt + 1, total)
        result = operation()
        if result.success:
            return result

        if fatal is not None:
            message = fatal(result)
            if message:
                logger.error(message)
                raise ProcessError(message, result)

        if is_network_error(result.stderr) and attempt < max_retries:
            delay = delays[min(attempt, len(delays) - 1)] if delays else 0
            logger.warning("%s failed, retrying in %.0fs...", describe, delay)
            sleep(delay)
            continue

        logger.error("%s failed: %s", describe, result.stderr)
        if attempt == max_retries:
            logger.error("All %d attempts failed", total)
        raise ProcessError(f"{describe} failed: {result.stderr}", result)

    raise ProcessError(f"{describe} failed")
