"""
Opt-in retries around session initialization.

``ClientTransaction.initialize()`` fails fast. Callers that talk to a flaky
network wrap it here; extraction errors other than ``InitializationFailed``
are never retried.
"""

import logging
from typing import Tuple, Type

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from client_transaction.errors import InitializationFailed

logger = logging.getLogger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    cause = getattr(error, "cause", None) or error
    logger.warning(
        f"Initialization attempt {retry_state.attempt_number} failed "
        f"({type(cause).__name__}: {cause}), retrying in {retry_state.next_action.sleep:.1f}s"
    )


def _policy(
    max_attempts: int,
    min_wait: float,
    max_wait: float,
    exception_types: Tuple[Type[BaseException], ...]
) -> dict:
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    return dict(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exception_types),
        before_sleep=_log_retry,
        reraise=True,
    )


def retry_with_backoff(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    exception_types: Tuple[Type[BaseException], ...] = (InitializationFailed,)
):
    """
    Decorator retrying a plain or async callable with exponential backoff.

    Args:
        max_attempts: Attempts including the first
        min_wait: Lower bound of the wait between attempts, in seconds
        max_wait: Upper bound of the wait between attempts, in seconds
        exception_types: Exceptions that trigger another attempt

    Returns:
        Decorator; the last error is re-raised once attempts run out
    """
    return retry(**_policy(max_attempts, min_wait, max_wait, exception_types))


async def initialize_with_retry(
    transaction,
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0
):
    """
    Initialize a ClientTransaction, retrying failed attempts.

    Returns:
        The session context of the first successful attempt

    Raises:
        InitializationFailed: From the last attempt
    """
    async for attempt in AsyncRetrying(**_policy(max_attempts, min_wait, max_wait, (InitializationFailed,))):
        with attempt:
            context = await transaction.initialize()
    if attempt.retry_state.attempt_number > 1:
        logger.info(f"Initialized after {attempt.retry_state.attempt_number} attempts")
    return context
