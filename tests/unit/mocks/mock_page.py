"""Mock Playwright page objects for unit testing.

Only the event surface used by PageMonitor is modelled: ``page.on`` stores
handlers and ``emit`` plays an event back through them.
"""

from typing import Any, Callable


class MockConsoleMessage:
    """Mock of a Playwright ConsoleMessage."""

    def __init__(self, type: str, text: str):
        self.type = type
        self.text = text


class MockPageError:
    """Mock of the Error object passed to ``pageerror`` handlers."""

    def __init__(self, message: str):
        self.message = message

    def __str__(self) -> str:
        return self.message


class MockDialog:
    """Mock of a sync-API Dialog that records how it was closed."""

    def __init__(self, message: str, type: str = "alert", default_value: str = ""):
        self.message = message
        self.type = type
        self.default_value = default_value
        self.accepted = False
        self.dismissed = False

    def accept(self, prompt_text: str = "") -> None:
        self.accepted = True

    def dismiss(self) -> None:
        self.dismissed = True


class MockPage:
    """Mock page that records event handlers registered with ``on``."""

    def __init__(self):
        self.handlers: dict[str, list[Callable[[Any], Any]]] = {}

    def on(self, event: str, handler: Callable[[Any], Any]) -> None:
        self.handlers.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable[[Any], Any]) -> None:
        self.handlers[event].remove(handler)

    def emit(self, event: str, payload: Any) -> list[Any]:
        """Deliver ``payload`` to every handler of ``event``; returns their results."""
        return [handler(payload) for handler in self.handlers.get(event, [])]
