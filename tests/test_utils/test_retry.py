"""Tests for the retry helper."""

from unittest.mock import Mock

import pytest

from photo_pipeline.gitops.process import ProcessError, ProcessResult
from photo_pipeline.utils.retry import is_network_error, retry_with_backoff


class TestIsNetworkError:
    def test_markers(self) -> None:
        assert is_network_error("fatal: unable to access: Connection refused")
        assert is_network_error("operation timeout after 30s")
        assert is_network_error("connection reset by peer")

    def test_other_errors(self) -> None:
        assert not is_network_error("error: failed to push some refs")
        assert not is_network_error("")


class TestRetryWithBackoff:
    """Test retry_with_backoff."""

    def test_first_attempt_succeeds(self) -> None:
        operation = Mock(return_value=ProcessResult(stdout="done"))
        sleep = Mock()

        result = retry_with_backoff(operation, "Pushing", sleep=sleep)

        assert result.stdout == "done"
        operation.assert_called_once()
        sleep.assert_not_called()

    def test_short_delay_list_reuses_last(self) -> None:
        operation = Mock(
            side_effect=[
                ProcessResult(stderr="timeout", exit_code=1),
                ProcessResult(stderr="timeout", exit_code=1),
                ProcessResult(stderr="timeout", exit_code=1),
                ProcessResult(),
            ]
        )
        sleep = Mock()

        retry_with_backoff(operation, "Fetching", max_retries=3, delays=[1.0], sleep=sleep)

        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 1.0, 1.0]

    def test_zero_retries(self) -> None:
        operation = Mock(return_value=ProcessResult(stderr="Connection refused", exit_code=1))
        sleep = Mock()

        with pytest.raises(ProcessError) as exc_info:
            retry_with_backoff(operation, "Pushing", max_retries=0, sleep=sleep)

        assert exc_info.value.result.stderr == "Connection refused"
        sleep.assert_not_called()

    def test_fatal_check_stops_immediately(self) -> None:
        operation = Mock(return_value=ProcessResult(stderr="Connection 403", exit_code=1))

        with pytest.raises(ProcessError, match="rejected"):
            retry_with_backoff(
                operation,
                "Pushing",
                sleep=Mock(),
                fatal=lambda result: "rejected" if "403" in result.stderr else None,
            )

        operation.assert_called_once()
