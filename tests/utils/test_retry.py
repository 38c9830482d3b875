from unittest.mock import MagicMock, patch

import pytest
import requests

from modcatalog.utils.retry import (
    RetryConfig,
    retry_call,
    retry_once,
    should_retry_exception,
)


def http_error(status_code: int) -> requests.HTTPError:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    return requests.HTTPError(response=response)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (http_error(503), True),
        (http_error(429), True),
        (http_error(404), False),
        (requests.Timeout(), True),
        (requests.ConnectionError(), True),
        (ValueError(), False),
    ],
)
def test_should_retry_exception(exc: Exception, expected: bool) -> None:
    assert should_retry_exception(exc, RetryConfig()) is expected


def test_should_retry_respects_config() -> None:
    config = RetryConfig(retry_on_timeout=False, retry_on_connection_error=False)
    assert not should_retry_exception(requests.Timeout(), config)
    assert not should_retry_exception(requests.ConnectionError(), config)


@patch("modcatalog.utils.retry.time.sleep")
def test_retry_call_recovers(mock_sleep: MagicMock) -> None:
    func = MagicMock(side_effect=[requests.Timeout(), http_error(503), "page"])
    func.__name__ = "fetch"

    assert retry_call(RetryConfig(max_retries=3, backoff_factor=0.5))(func)() == "page"
    assert func.call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]


@patch("modcatalog.utils.retry.time.sleep")
def test_retry_call_gives_up(mock_sleep: MagicMock) -> None:
    func = MagicMock(side_effect=requests.ConnectionError())
    func.__name__ = "fetch"

    with pytest.raises(requests.ConnectionError):
        retry_call(RetryConfig(max_retries=2))(func)()
    assert func.call_count == 3


@patch("modcatalog.utils.retry.time.sleep")
def test_retry_call_does_not_retry_client_errors(mock_sleep: MagicMock) -> None:
    func = MagicMock(side_effect=http_error(404))
    func.__name__ = "fetch"

    with pytest.raises(requests.HTTPError):
        retry_call(RetryConfig())(func)()
    assert func.call_count == 1
    mock_sleep.assert_not_called()


def test_retry_once_runs_at_most_twice() -> None:
    step = MagicMock(side_effect=["bad", "bad", "good"])

    assert retry_once(step, lambda result: result == "bad") == "bad"
    assert step.call_count == 2


def test_retry_once_without_need() -> None:
    step = MagicMock(return_value="good")

    assert retry_once(step, lambda result: result == "bad") == "good"
    assert step.call_count == 1
