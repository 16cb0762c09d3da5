"""
Bounded retry with exponential backoff for endpoint calls.

Every attempt is settled into an ``Outcome`` (``Ok``, ``TransientErr`` or
``FatalErr``) and an explicit loop decides whether to wait and try again.
"""
import errno
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar, Union

import requests
from web3.exceptions import TimeExhausted

from .exceptions import RetriesExhaustedError, TransientEndpointError

T = TypeVar('T')

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 2.0  # seconds

_TRANSIENT_CODES = {"ECONNRESET", "ETIMEDOUT"}
_TRANSIENT_ERRNOS = {errno.ECONNRESET, errno.ETIMEDOUT}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class TransientErr:
    error: BaseException


@dataclass(frozen=True)
class FatalErr:
    error: BaseException


Outcome = Union[Ok, TransientErr, FatalErr]


def classify_error(error: BaseException) -> bool:
    """
    Decide whether an error is transient.

    Transient errors are rate limiting ("Too Many Requests" / HTTP 429),
    connection resets and timeouts. Everything else is fatal.

    Args:
        error: The exception raised by a call attempt

    Returns:
        True if the call may be retried
    """
    if isinstance(error, TransientEndpointError):
        return True

    if "too many requests" in str(error).lower():
        return True

    if isinstance(error, requests.HTTPError):
        response = getattr(error, "response", None)
        return response is not None and response.status_code == 429

    if isinstance(error, (requests.ConnectionError, requests.Timeout,
                          ConnectionResetError, TimeoutError, TimeExhausted)):
        return True

    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in _TRANSIENT_CODES:
        return True

    return getattr(error, "errno", None) in _TRANSIENT_ERRNOS


def attempt(operation: Callable[[], T]) -> Outcome:
    """Run one attempt and settle it into an Outcome."""
    try:
        return Ok(operation())
    except Exception as e:
        if classify_error(e):
            return TransientErr(e)
        return FatalErr(e)


def backoff_delay(base_delay: float, attempt_index: int) -> float:
    """Delay before the retry that follows zero-based attempt ``attempt_index``."""
    return base_delay * (2 ** attempt_index)


def execute(
    operation: Callable[[], T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: Optional[Callable[[float], Any]] = None,
    label: Optional[str] = None,
) -> T:
    """
    Run ``operation`` with bounded retry on transient errors.

    Args:
        operation: Zero-argument callable performing one remote call
        max_attempts: Total number of attempts (default 5)
        base_delay: Delay after the first failed attempt, in seconds (default 2)
        sleep: Sleep function, defaults to time.sleep
        label: Name of the call for log messages

    Returns:
        The operation's result

    Raises:
        The first fatal error, or the last transient error once the budget is spent.
        RetriesExhaustedError if no attempt was made at all.
    """
    sleep = sleep or time.sleep
    name = label or getattr(operation, "__name__", "call")
    last_error: Optional[BaseException] = None

    for index in range(max_attempts):
        outcome = attempt(operation)

        if isinstance(outcome, Ok):
            return outcome.value

        if isinstance(outcome, FatalErr):
            raise outcome.error

        last_error = outcome.error
        if index == max_attempts - 1:
            break

        delay = backoff_delay(base_delay, index)
        logger.warning(
            f"{name}: transient error ({outcome.error}), retrying in {delay:g}s "
            f"(attempt {index + 1}/{max_attempts})"
        )
        sleep(delay)

    if last_error is not None:
        logger.error(f"{name}: giving up after {max_attempts} attempts")
        raise last_error
    raise RetriesExhaustedError(f"{name}: max retries exceeded")
