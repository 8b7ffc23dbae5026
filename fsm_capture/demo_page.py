"""Base page object for standalone HTML demo pages.

Demos are generated, so the same control can appear as ``#value``,
``input[name="value"]`` or an unlabelled text box depending on the page.
The helpers here try several candidate selectors and fall back gracefully
instead of pinning one exact DOM structure.

Usage in step definitions:
    demo = DemoPage(page)
    demo.goto("tests/fixtures/html/queue_demo.html")
    demo.enter_value("42", submit="Enqueue")
    assert demo.item_values(".queue", ".item") == ["42"]
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from playwright.sync_api import Locator, Page

from fsm_capture.page_monitor import PageMonitor

logger = logging.getLogger(__name__)

INPUT_SELECTORS = (
    'input[type="text"]',
    'input[type="number"]',
    'input[aria-label="Value"]',
    'input[name="value"]',
    "input#value",
    "textarea",
)

MESSAGE_SELECTORS = (
    "[data-message]",
    ".message",
    "#message",
    '[role="status"]',
    '[aria-live="polite"]',
)

STATE_HOLDER_SELECTORS = ("#app[data-state]", "[data-state]", "body")


def to_page_url(target: str | Path) -> str:
    """Return an URL for ``target``; local paths become ``file://`` URIs."""
    text = str(target)
    if re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", text):
        return text
    return Path(text).resolve().as_uri()


class DemoPage:
    """Resilient interactions with a generated demo page.

    Args:
        page: Playwright (sync API) Page object
        monitor: Optional PageMonitor attached to the page
        timeout: Default wait timeout in milliseconds
    """

    def __init__(self, page: Page, monitor: Optional[PageMonitor] = None, timeout: int = 5000):
        self.page = page
        self.monitor = monitor
        self.timeout = timeout

    def goto(self, target: str | Path) -> None:
        url = to_page_url(target)
        logger.info("Opening demo page %s", url)
        self.page.goto(url, wait_until="domcontentloaded", timeout=self.timeout * 3)

    def first_present(self, *selectors: str) -> Locator:
        """Return the first candidate that matches at least one element.

        When nothing matches, the last candidate's locator is returned so
        callers get Playwright's own timeout/visibility errors.
        """
        if not selectors:
            raise ValueError("At least one selector is required")
        for selector in selectors:
            locator = self.page.locator(selector)
            if locator.count() > 0:
                return locator.first
        return self.page.locator(selectors[-1]).first

    def button(self, label: str) -> Locator:
        return self.page.get_by_role("button", name=re.compile(re.escape(label), re.IGNORECASE)).first

    def has_button(self, label: str) -> bool:
        return self.page.get_by_role("button", name=re.compile(re.escape(label), re.IGNORECASE)).count() > 0

    def input_field(self) -> Locator:
        return self.first_present(*INPUT_SELECTORS)

    def click_button(self, label: str) -> None:
        self.button(label).click(timeout=self.timeout)

    def fill_input(self, value: str) -> None:
        field = self.input_field()
        field.fill("", timeout=self.timeout)
        field.fill(value, timeout=self.timeout)

    def enter_value(self, value: str, submit: Optional[str] = None) -> None:
        """Type ``value`` and submit it with a button or the Enter key.

        Args:
            value: Text to type
            submit: Label of the submit button; Enter is pressed when the
                label is None or no such button exists
        """
        self.fill_input(value)
        if submit and self.has_button(submit):
            self.click_button(submit)
        else:
            self.input_field().press("Enter")

    def text_of(self, *selectors: str) -> str:
        """Trimmed text content of the first present selector, or ''."""
        selectors = selectors or MESSAGE_SELECTORS
        locator = self.first_present(*selectors)
        if locator.count() == 0:
            return ""
        return (locator.text_content(timeout=self.timeout) or "").strip()

    def message(self) -> str:
        return self.text_of(*MESSAGE_SELECTORS)

    def item_values(self, container: str, item_selector: str = ".item, [data-value]") -> list[str]:
        """Values of the items rendered inside ``container``, in DOM order.

        ``data-value`` is preferred over the item text.
        """
        items = self.page.locator(container).first.locator(item_selector)
        values = []
        for index in range(items.count()):
            item = items.nth(index)
            data_value = item.get_attribute("data-value")
            if data_value:
                values.append(data_value)
            else:
                values.append((item.text_content() or "").strip())
        return values

    def current_state(self) -> str:
        """FSM state the demo publishes through a ``data-state`` attribute."""
        for selector in STATE_HOLDER_SELECTORS:
            locator = self.page.locator(selector)
            if locator.count() > 0:
                state = locator.first.get_attribute("data-state")
                if state:
                    return state
        return ""

    def wait_for_state(self, state: str, timeout: Optional[int] = None) -> None:
        self.page.wait_for_function(
            """(expected) => {
                const holder = document.querySelector("[data-state]");
                return holder !== null && holder.getAttribute("data-state") === expected;
            }""",
            arg=state,
            timeout=timeout or self.timeout,
        )
