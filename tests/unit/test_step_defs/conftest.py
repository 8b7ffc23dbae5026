"""Unit test conftest for step definitions.

Overrides the browser-backed fixtures of the root conftest.py with mocks so
step functions can be called directly.
"""

from unittest.mock import MagicMock

import pytest

from fsm_capture.page_monitor import PageMonitor


class MockDemoContext:
    """Stand-in for the scenario context with a mocked DemoPage."""

    def __init__(self):
        self.demo = MagicMock()
        self.monitor = PageMonitor()
        self.html_file = ""
        self.notes: dict = {}


@pytest.fixture
def demo_context() -> MockDemoContext:
    return MockDemoContext()
