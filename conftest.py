"""Root conftest.py - browser fixtures and step definition registration for pytest-bdd.

Feature scenarios get a fresh headless Chromium per test. When Playwright or
its browser binaries are not installed the browser fixture skips them; the
unit tests under tests/unit never need a browser.
"""

from pathlib import Path
from typing import Any, Iterator

import pytest

# Step definition modules are loaded as plugins so pytest-bdd sees their fixtures.
pytest_plugins = ["tests.step_defs.demo_page_steps"]

FIXTURES_DIR = Path(__file__).parent / "tests" / "fixtures"
HTML_FIXTURES_DIR = FIXTURES_DIR / "html"


class DemoContext:
    """Scenario-scoped state shared between step definitions."""

    def __init__(self):
        self.demo = None
        self.monitor = None
        self.html_file: str = ""
        self.notes: dict[str, Any] = {}


@pytest.fixture(scope="session")
def html_fixtures_dir() -> Path:
    return HTML_FIXTURES_DIR


@pytest.fixture
def chromium_browser() -> Iterator[Any]:
    """Headless Chromium through the sync API; skips when it cannot be launched.

    Function scoped: the sync API keeps its event loop marked as running
    until stopped, which would break asyncio.run() in later tests.
    """
    try:
        from playwright.sync_api import sync_playwright
    except ImportError as e:
        pytest.skip(f"Playwright not installed: {e}")

    playwright = sync_playwright().start()
    try:
        browser = playwright.chromium.launch(headless=True)
    except Exception as e:
        playwright.stop()
        pytest.skip(f"Chromium not available: {e}")

    yield browser

    browser.close()
    playwright.stop()


@pytest.fixture
def page(chromium_browser) -> Iterator[Any]:
    """Fresh page in an isolated context for every test."""
    context = chromium_browser.new_context(viewport={"width": 1280, "height": 800})
    page = context.new_page()
    yield page
    context.close()


@pytest.fixture
def demo_context() -> DemoContext:
    return DemoContext()
