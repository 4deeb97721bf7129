"""
Fixed-interval polling and the transient apply loop.

poll_immediate checks a condition right away and then once per interval
until it returns True, raises, or the budget runs out. The apply loop is
built on it: transient apply failures mean "not yet", anything else stops
the loop immediately.
"""

import logging
import time
from typing import Callable, Optional

from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from ..error_handling import (
    ApplyError,
    ApplyTimeoutError,
    PollTimeoutError,
    is_transient_apply_error,
    validate_poll_budget,
)
from .executor import ManifestExecutor

logger = logging.getLogger(__name__)


def max_attempts(interval: float, timeout: float) -> int:
    """Number of checks a budget allows, counting the immediate one."""
    if timeout <= 0:
        return 1
    return int(timeout // interval) + 1


def poll_immediate(
    interval: float,
    timeout: float,
    condition: Callable[[], bool],
    operation: str = "condition",
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Poll a condition until it holds.

    The first check runs immediately. A non-positive timeout means exactly
    one check. Exceptions raised by the condition are not retried.

    Args:
        interval: Seconds between checks
        timeout: Total budget in seconds
        condition: Returns True when done, False to keep polling
        operation: Description used in the timeout error
        sleep: Sleep function, replaceable in tests

    Raises:
        PollTimeoutError: If the budget is exhausted
    """
    validate_poll_budget(interval, max(timeout, 0))

    retrying = Retrying(
        retry=retry_if_result(lambda done: not done),
        stop=stop_after_attempt(max_attempts(interval, timeout))
        | stop_after_delay(max(timeout, 0)),
        wait=wait_fixed(interval),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
    )

    try:
        retrying(condition)
    except RetryError as e:
        raise PollTimeoutError(operation, timeout) from e


class TransientApplyLoop:
    """Apply a manifest until the cluster accepts it.

    Transient failures (API server not accepting connections, resource types
    not registered yet, target namespace not created yet) are retried every
    ``interval`` seconds for up to ``timeout`` seconds. Any other failure is
    raised on the attempt that produced it.
    """

    def __init__(
        self,
        executor: ManifestExecutor,
        interval: float,
        timeout: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self.attempts = 0

    def run(self, manifest: str) -> None:
        """Drive the apply to success.

        Raises:
            ApplyError: On the first non-transient failure
            ApplyTimeoutError: If transient failures outlast the budget
        """
        self.attempts = 0
        last_error: Optional[ApplyError] = None

        def attempt() -> bool:
            nonlocal last_error
            self.attempts += 1
            logger.debug("Waiting for kubectl apply (attempt %d)...", self.attempts)
            try:
                self.executor.apply(manifest)
            except ApplyError as e:
                if not is_transient_apply_error(e):
                    raise
                logger.debug(
                    "Waiting for kubectl apply... cluster not ready (%s): %s",
                    e.kind.value,
                    e,
                )
                last_error = e
                return False
            return True

        try:
            poll_immediate(
                self.interval,
                self.timeout,
                attempt,
                operation="kubectl apply",
                sleep=self._sleep,
            )
        except PollTimeoutError as e:
            raise ApplyTimeoutError("kubectl apply", self.timeout, last_error) from e

        logger.info("Manifest applied after %d attempt(s)", self.attempts)
