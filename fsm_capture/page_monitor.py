"""Collection of console messages, page errors and dialogs for one page.

Demo checks treat these as pass/fail signals: a demo that logs console
errors or throws uncaught exceptions during an interaction is broken even
when its DOM looks right. The collected lists live only as long as the
monitor instance.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)

# Browsers log a missing favicon as a console error on file:// and dev servers.
DEFAULT_IGNORE_PATTERNS = (r"favicon\.ico",)


@dataclass
class ConsoleEntry:
    type: str
    text: str


@dataclass
class DialogEntry:
    type: str
    message: str
    default_value: str = ""


@dataclass
class PageMonitor:
    """Records what a page reports while it is being exercised.

    Works with both the sync and async Playwright APIs: the dialog handler
    returns whatever ``accept()``/``dismiss()`` returns, which the async API
    schedules as a coroutine and the sync API has already completed.

    Args:
        dialog_action: "accept", "dismiss" or None to leave dialogs to
            another handler
        ignore_patterns: Regexes; matching console errors are not counted
    """

    dialog_action: Optional[str] = "accept"
    ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS
    console_messages: list[ConsoleEntry] = field(default_factory=list)
    page_errors: list[str] = field(default_factory=list)
    dialogs: list[DialogEntry] = field(default_factory=list)

    def __post_init__(self):
        self.set_dialog_action(self.dialog_action)
        self._ignore = [re.compile(p) for p in self.ignore_patterns]

    def set_dialog_action(self, action: Optional[str]) -> None:
        """Change how later dialogs are closed; None hands them to another handler."""
        if action not in ("accept", "dismiss", None):
            raise ValueError(f"Unsupported dialog action: {action!r}")
        self.dialog_action = action

    def attach(self, page: Any) -> "PageMonitor":
        """Register console, pageerror and dialog listeners on ``page``."""
        page.on("console", self._on_console)
        page.on("pageerror", self._on_page_error)
        page.on("dialog", self._on_dialog)
        return self

    def detach(self, page: Any) -> None:
        """Remove the listeners added by :meth:`attach`; collected data is kept."""
        page.remove_listener("console", self._on_console)
        page.remove_listener("pageerror", self._on_page_error)
        page.remove_listener("dialog", self._on_dialog)

    def _on_console(self, message: Any) -> None:
        entry = ConsoleEntry(type=message.type, text=message.text)
        self.console_messages.append(entry)
        if entry.type == "error":
            logger.debug("Console error: %s", entry.text)

    def _on_page_error(self, error: Any) -> None:
        text = getattr(error, "message", None) or str(error)
        self.page_errors.append(text)
        logger.debug("Page error: %s", text)

    def _on_dialog(self, dialog: Any) -> Any:
        self.dialogs.append(
            DialogEntry(
                type=dialog.type,
                message=dialog.message,
                default_value=getattr(dialog, "default_value", "") or "",
            )
        )
        logger.info("Dialog (%s): %s", dialog.type, dialog.message)
        if self.dialog_action == "accept":
            return dialog.accept()
        if self.dialog_action == "dismiss":
            return dialog.dismiss()
        return None

    @property
    def console_errors(self) -> list[str]:
        return [
            m.text
            for m in self.console_messages
            if m.type == "error" and not any(p.search(m.text) for p in self._ignore)
        ]

    @property
    def dialog_messages(self) -> list[str]:
        return [d.message for d in self.dialogs]

    def clear(self) -> None:
        self.console_messages.clear()
        self.page_errors.clear()
        self.dialogs.clear()

    def assert_no_errors(self) -> None:
        """Fail when the page logged console errors or threw uncaught errors.

        Raises:
            AssertionError: Listing every offending message
        """
        problems = [f"console error: {text}" for text in self.console_errors]
        problems.extend(f"page error: {text}" for text in self.page_errors)
        if problems:
            raise AssertionError("Page reported errors:\n  " + "\n  ".join(problems))

    def summary(self) -> dict[str, Any]:
        return {
            "console_messages": len(self.console_messages),
            "console_errors": self.console_errors,
            "page_errors": list(self.page_errors),
            "dialogs": self.dialog_messages,
        }
