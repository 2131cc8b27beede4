# Copyright 2024 Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import time
from typing import Callable, Optional, TypeVar
from common.constants import (
    ACTIVATION_POLL_INTERVAL_SECONDS,
    ACTIVATION_MAX_ATTEMPTS,
    INVOCATION_SAFETY_MARGIN_SECONDS,
)
from customLogging.logger import safeLogger
from models.common import ActivationFailedError, ActivationTimeoutError

logger = safeLogger(service="ActivationPoller")

T = TypeVar("T")


def invocation_deadline(context, clock_fn: Callable[[], float] = time.monotonic,
                        margin_seconds: float = INVOCATION_SAFETY_MARGIN_SECONDS) -> Optional[float]:
    """
    Clock reading by which polling must give up, leaving margin_seconds of the
    Lambda invocation for reporting. None when there is no Lambda context.
    """
    if context is None:
        return None
    remaining_seconds = context.get_remaining_time_in_millis() / 1000
    if remaining_seconds < 2 * margin_seconds:
        logger.warning(f"Low remaining execution time: {remaining_seconds}s")
    return clock_fn() + max(remaining_seconds - margin_seconds, 0)


def wait_until_ready(
    name: str,
    fetch_fn: Callable[[], Optional[T]],
    is_ready: Callable[[T], bool],
    is_pending: Callable[[T], bool],
    status_of: Callable[[T], str] = str,
    interval_seconds: float = ACTIVATION_POLL_INTERVAL_SECONDS,
    max_attempts: int = ACTIVATION_MAX_ATTEMPTS,
    sleep_fn: Callable[[float], None] = time.sleep,
    deadline: Optional[float] = None,
    clock_fn: Callable[[], float] = time.monotonic
) -> T:
    """
    Poll a resource until it reports a ready state.

    Every attempt re-fetches the resource; only the attempt counter is kept between polls.
    A resource that disappears or reaches a status that is neither ready nor pending
    fails immediately. Sleeps happen between attempts, never after the last one, and
    never past the deadline.

    Args:
        name: Resource name, for logging and errors
        fetch_fn: Returns the current resource view, or None if it does not exist
        is_ready: True when the view is in the terminal success state
        is_pending: True when the view may still become ready
        status_of: Renders the view's status for logs and errors
        interval_seconds: Delay between attempts
        max_attempts: Attempt budget before giving up
        sleep_fn: Injected sleep, so tests do not wait on the wall clock
        deadline: clock_fn reading after which no further attempt is made
        clock_fn: Monotonic clock the deadline is measured against

    Returns:
        The first ready view

    Raises:
        ActivationFailedError: resource missing or in a terminal non-ready status
        ActivationTimeoutError: attempt budget or deadline exhausted
    """
    for attempt in range(1, max_attempts + 1):
        current = fetch_fn()
        if current is None:
            raise ActivationFailedError(name, None)
        if is_ready(current):
            logger.info(f"{name} ready after {attempt} attempt(s)")
            return current
        if not is_pending(current):
            raise ActivationFailedError(name, status_of(current))

        logger.info(f"{name} in status {status_of(current)} on attempt {attempt} of {max_attempts}")
        if attempt < max_attempts:
            if deadline is not None and clock_fn() + interval_seconds > deadline:
                logger.warning(f"{name} not ready before the invocation deadline, giving up after {attempt} attempt(s)")
                raise ActivationTimeoutError(name, attempt)
            sleep_fn(interval_seconds)

    raise ActivationTimeoutError(name, max_attempts)
