"""Shared helper functions for step definitions."""

import time
from typing import Callable, Optional


def split_values(values: str) -> list[str]:
    """Split a comma separated feature-file list, ignoring blanks."""
    return [v.strip() for v in values.split(",") if v.strip()]


def wait_until(
    condition: Callable[[], bool],
    timeout: float = 2.0,
    interval: float = 0.05,
    sleep: Optional[Callable[[float], None]] = None,
) -> bool:
    """Poll ``condition`` until it holds or ``timeout`` seconds pass.

    Page events (dialogs, page errors) are delivered asynchronously. With the
    sync Playwright API they are only dispatched while a Playwright call is
    running, so pass ``sleep`` that waits through the page.
    """
    sleep = sleep or time.sleep
    deadline = time.monotonic() + timeout
    while True:
        if condition():
            return True
        if time.monotonic() >= deadline:
            return False
        sleep(interval)


def page_sleep(page) -> Callable[[float], None]:
    """Sleep function that keeps the page's event loop running."""
    return lambda seconds: page.wait_for_timeout(seconds * 1000)
