"""Shared fixtures for the unit tests.

Nothing here starts a browser: pages are MockPage/MagicMock objects and
discovered elements are built directly.
"""

import pytest

from fsm_capture.discovery import DiscoveredElements, ElementInfo
from fsm_capture.interaction_map import load_interaction_map
from tests.unit.mocks import MockPage


@pytest.fixture
def interaction_map():
    return load_interaction_map()


@pytest.fixture
def mock_page() -> MockPage:
    return MockPage()


@pytest.fixture
def queue_elements() -> DiscoveredElements:
    """Controls of a typical queue demo: value input and three buttons."""
    return DiscoveredElements(
        buttons=[
            ElementInfo(selector="button", text="Enqueue", id="enqueue", tag_name="BUTTON"),
            ElementInfo(selector="button", text="Dequeue", id="dequeue", tag_name="BUTTON"),
            ElementInfo(selector="button", text="Clear", id="clear", tag_name="BUTTON"),
        ],
        inputs=[
            ElementInfo(
                selector='input[type="text"]',
                id="value",
                type="text",
                tag_name="INPUT",
                placeholder="Enter a value",
            ),
        ],
    )
