from botocore.exceptions import ClientError
from botocore.exceptions import EndpointConnectionError
from s3nativefs.errors import RetryExhaustedError
from s3nativefs.errors import StoreClientError
from s3nativefs.errors import StoreConfigurationError
from s3nativefs.errors import StoreInterruptedError
from s3nativefs.errors import StoreTransportError
from s3nativefs.interfaces import IRetryExecutor
from s3nativefs.retry import backoff_delay
from s3nativefs.retry import error_details
from s3nativefs.retry import is_server_fault
from s3nativefs.retry import RetryExecutor

import logging
import pytest
import random


def _client_error(status, code, operation="PutObject"):
    return ClientError(
        {
            "Error": {"Code": code, "Message": "injected"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class Flaky:
    """Callable failing ``failures`` times before returning ``result``."""

    def __init__(self, failures, error, result="ok"):
        self.failures = failures
        self.error = error
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor(sleeps):
    return RetryExecutor(sleep=sleeps.append, rng=random.Random(42))


class TestRetryExecutorInterface:
    def test_interface_provided(self, executor):
        assert IRetryExecutor.providedBy(executor)

    def test_default_budget(self, executor):
        assert executor.max_attempts == 5

    @pytest.mark.parametrize("value", [0, -1, "5", None])
    def test_invalid_budget(self, value):
        with pytest.raises(StoreConfigurationError):
            RetryExecutor(max_attempts=value)


class TestServerFaults:
    def test_success_first_attempt(self, executor, sleeps):
        func = Flaky(0, None)
        assert executor.call("put_object", func) == "ok"
        assert func.calls == 1
        assert sleeps == []

    def test_success_on_last_attempt(self, executor, sleeps):
        func = Flaky(4, _client_error(500, "InternalError"))
        assert executor.call("put_object", func, target="s3://b/k") == "ok"
        assert func.calls == 5
        assert len(sleeps) == 4

    def test_backoff_grows_linearly(self, executor, sleeps):
        func = Flaky(4, _client_error(503, "SlowDown"))
        executor.call("get_object", func)
        for attempt, delay in enumerate(sleeps, start=1):
            assert attempt * 0.3 <= delay < attempt * 0.5

    def test_exhausted(self, executor, sleeps):
        func = Flaky(10, _client_error(500, "InternalError"))
        with pytest.raises(RetryExhaustedError) as exc_info:
            executor.call("put_object", func, target="s3://b/k")
        assert func.calls == 5
        assert len(sleeps) == 4
        err = exc_info.value
        assert err.attempts == 5
        assert err.operation == "put_object"
        assert err.key == "s3://b/k"
        assert "5 / 5" in str(err)
        assert "InternalError" in str(err)
        assert isinstance(err.__cause__, ClientError)

    def test_custom_budget(self, sleeps):
        executor = RetryExecutor(max_attempts=2, sleep=sleeps.append)
        func = Flaky(10, _client_error(502, "BadGateway"))
        with pytest.raises(RetryExhaustedError):
            executor.call("head_object", func)
        assert func.calls == 2
        assert len(sleeps) == 1

    def test_logs_retries_and_terminal_failure(self, executor, caplog):
        func = Flaky(10, _client_error(500, "InternalError"))
        with caplog.at_level(logging.INFO, logger="s3nativefs.retry"):
            with pytest.raises(RetryExhaustedError):
                executor.call("put_object", func)
        levels = [r.levelno for r in caplog.records]
        assert levels.count(logging.INFO) == 4
        assert levels.count(logging.ERROR) == 1


class TestClientFaults:
    def test_not_found_fails_immediately(self, executor, sleeps):
        func = Flaky(1, _client_error(404, "404", "HeadObject"))
        with pytest.raises(StoreClientError) as exc_info:
            executor.call("head_object", func)
        assert func.calls == 1
        assert sleeps == []
        assert exc_info.value.not_found
        assert exc_info.value.status_code == 404

    def test_forbidden_is_not_not_found(self, executor, sleeps):
        func = Flaky(1, _client_error(403, "AccessDenied"))
        with pytest.raises(StoreClientError) as exc_info:
            executor.call("get_object", func)
        assert not exc_info.value.not_found
        assert exc_info.value.error_code == "AccessDenied"
        assert sleeps == []

    def test_client_fault_after_server_fault(self, executor, sleeps):
        outcomes = [
            _client_error(500, "InternalError"),
            _client_error(404, "NoSuchKey"),
        ]

        def func():
            raise outcomes.pop(0)

        with pytest.raises(StoreClientError) as exc_info:
            executor.call("get_object", func)
        assert exc_info.value.attempts == 2
        assert len(sleeps) == 1


class TestTransportErrors:
    def test_transport_error_not_retried(self, executor, sleeps):
        func = Flaky(1, EndpointConnectionError(endpoint_url="http://nowhere"))
        with pytest.raises(StoreTransportError) as exc_info:
            executor.call("list_objects", func)
        assert func.calls == 1
        assert sleeps == []
        assert "nowhere" in str(exc_info.value)

    def test_os_error_wrapped(self, executor):
        func = Flaky(1, ConnectionResetError("reset"))
        with pytest.raises(StoreTransportError):
            executor.call("get_object", func)

    def test_other_exceptions_propagate(self, executor):
        func = Flaky(1, KeyError("bug"))
        with pytest.raises(KeyError):
            executor.call("get_object", func)


class TestInterrupt:
    def test_interrupt_aborts_backoff(self):
        executor = RetryExecutor()
        executor.interrupt()
        func = Flaky(10, _client_error(500, "InternalError"))
        with pytest.raises(StoreInterruptedError) as exc_info:
            executor.call("put_object", func)
        assert func.calls == 1
        assert exc_info.value.attempts == 1

    def test_interrupt_during_wait(self):
        executor = RetryExecutor(sleep=lambda seconds: executor.interrupt())
        func = Flaky(10, _client_error(500, "InternalError"))
        with pytest.raises(StoreInterruptedError):
            executor.call("put_object", func)
        assert func.calls == 1


class TestHelpers:
    @pytest.mark.parametrize("attempt", [1, 2, 3, 4, 5])
    def test_backoff_window(self, attempt):
        rng = random.Random(attempt)
        for _ in range(50):
            delay = backoff_delay(attempt, rng)
            assert attempt * 0.3 <= delay < attempt * 0.5

    def test_error_details(self):
        status, code, message = error_details(_client_error(503, "SlowDown"))
        assert (status, code, message) == (503, "SlowDown", "injected")

    def test_error_details_without_status(self):
        error = ClientError({"Error": {"Code": "500"}}, "GetObject")
        assert error_details(error)[0] == 500
        assert is_server_fault(error)

    @pytest.mark.parametrize(
        "status,expected", [(500, True), (503, True), (404, False), (403, False)]
    )
    def test_is_server_fault(self, status, expected):
        assert is_server_fault(_client_error(status, "X")) is expected
