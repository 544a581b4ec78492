"""
Settle strategies for the pause before the final message lookup.

The API stores message records asynchronously, so a lookup made right after
sending can miss. The default is one flat wait; PollUntilReady can replace it
without touching the workflow steps.
"""

import logging
import time
from typing import Callable, Optional, Union

from tenacity import retry, retry_if_result, stop_after_attempt, stop_after_delay, wait_fixed

logger = logging.getLogger(__name__)

ReadinessCheck = Callable[[], bool]


class FixedDelay:
    """Sleep once for a fixed number of seconds."""

    def __init__(self, seconds: float = 3.0, sleep: Callable[[float], None] = time.sleep):
        self.seconds = seconds
        self.sleep = sleep

    def wait(self, check: Optional[ReadinessCheck] = None) -> None:
        logger.info(f"⏳ Waiting {self.seconds:g}s for message data to be stored...")
        if self.seconds > 0:
            self.sleep(self.seconds)


class PollUntilReady:
    """Poll ``check`` until it returns True or the timeout elapses. Never raises."""

    def __init__(self, timeout: float = 30.0, interval: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        self.timeout = timeout
        self.interval = interval
        self.sleep = sleep

    def wait(self, check: Optional[ReadinessCheck] = None) -> None:
        if check is None:
            FixedDelay(self.interval, sleep=self.sleep).wait()
            return

        max_attempts = max(1, int(self.timeout / self.interval)) + 1 if self.interval > 0 else 1
        logger.info(f"⏳ Polling for message data (timeout {self.timeout:g}s)...")

        poll = retry(
            stop=stop_after_delay(self.timeout) | stop_after_attempt(max_attempts),
            wait=wait_fixed(self.interval),
            retry=retry_if_result(lambda ready: not ready),
            retry_error_callback=lambda state: False,
            sleep=self.sleep,
        )(check)

        if poll():
            logger.info("✅ Message data is available")
        else:
            logger.warning(f"⚠️ Message data not available after {self.timeout:g}s, continuing anyway")


def build_settle_strategy(workflow_config) -> Union[FixedDelay, PollUntilReady]:
    """Pick the settle strategy named in the workflow configuration."""
    if workflow_config.settle_strategy == 'poll':
        return PollUntilReady(
            timeout=workflow_config.settle_timeout_seconds,
            interval=workflow_config.settle_poll_interval_seconds,
        )
    return FixedDelay(workflow_config.settle_delay_seconds)
