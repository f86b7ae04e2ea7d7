from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError
from s3nativefs.errors import RetryExhaustedError
from s3nativefs.errors import StoreClientError
from s3nativefs.errors import StoreConfigurationError
from s3nativefs.errors import StoreInterruptedError
from s3nativefs.errors import StoreTransportError
from s3nativefs.interfaces import IRetryExecutor
from s3nativefs.types import MAX_RETRY
from s3nativefs.types import RetryState
from zope.interface import implementer

import enum
import logging
import random
import threading


logger = logging.getLogger(__name__)

# Backoff window per attempt, in milliseconds: [attempt * LEAST, attempt * BOUND)
BACKOFF_LEAST_MS = 300
BACKOFF_BOUND_MS = 500


class StoreOperation(enum.Enum):
    """The store calls the executor knows how to dispatch.

    Each value is the boto3 client method the operation maps to.
    """

    PUT_OBJECT = "put_object"
    HEAD_OBJECT = "head_object"
    DELETE_OBJECT = "delete_object"
    COPY_OBJECT = "copy_object"
    GET_OBJECT = "get_object"
    LIST_OBJECTS = "list_objects"


def error_details(e):
    """Return ``(status_code, error_code, message)`` of a ClientError."""
    response = getattr(e, "response", None) or {}
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    error = response.get("Error", {})
    code = error.get("Code", "Unknown")
    if status is None and str(code).isdigit():
        status = int(code)
    return status, code, error.get("Message", "")


def is_server_fault(e):
    status, _code, _message = error_details(e)
    return status is not None and status // 100 == 5


def backoff_delay(attempt, rng=random):
    """Seconds to wait after ``attempt`` failed.

    Grows linearly with the attempt index and is jittered uniformly.
    """
    least = attempt * BACKOFF_LEAST_MS
    bound = attempt * BACKOFF_BOUND_MS
    return rng.randrange(least, bound) / 1000.0


@implementer(IRetryExecutor)
class RetryExecutor:
    """Runs store calls, retrying server faults with linear jittered backoff."""

    def __init__(self, max_attempts=MAX_RETRY, sleep=None, rng=None):
        if not isinstance(max_attempts, int) or max_attempts < 1:
            raise StoreConfigurationError(
                f"max retry attempts must be a positive integer, got {max_attempts!r}"
            )
        self.max_attempts = max_attempts
        self._interrupted = threading.Event()
        self._sleep = sleep if sleep is not None else self._interrupted.wait
        self._rng = rng or random.Random()

    def interrupt(self):
        self._interrupted.set()

    def call(self, name, func, target=None):
        state = RetryState(max_attempts=self.max_attempts)
        while True:
            try:
                return func()
            except ClientError as e:
                status, code, message = error_details(e)
                if not is_server_fault(e):
                    logger.debug("%s failed for %s: %s", name, target, e)
                    raise StoreClientError(
                        f"{name} failed for {target}: {code}",
                        status_code=status,
                        error_code=code,
                        operation=name,
                        key=target,
                        attempts=state.attempt,
                    ) from e
                err_msg = (
                    f"call {name} failed for {target}, "
                    f"attempt [{state.attempt} / {state.max_attempts}]: "
                    f"{code} {message}".rstrip()
                )
                if state.exhausted:
                    logger.error(err_msg)
                    raise RetryExhaustedError(
                        err_msg, operation=name, key=target, attempts=state.attempt
                    ) from e
                logger.info(err_msg)
                self._sleep(backoff_delay(state.attempt, self._rng))
                if self._interrupted.is_set():
                    raise StoreInterruptedError(
                        f"{name} for {target} interrupted during retry backoff",
                        operation=name,
                        key=target,
                        attempts=state.attempt,
                    ) from e
                state.attempt += 1
            except (BotoCoreError, OSError) as e:
                logger.error("call %s failed for %s: %s", name, target, e)
                raise StoreTransportError(
                    f"{name} failed for {target}: {e}",
                    operation=name,
                    key=target,
                    attempts=state.attempt,
                ) from e
