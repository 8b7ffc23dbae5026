"""Step definitions for standalone HTML demo pages.

Each scenario opens a demo from tests/fixtures/html, drives it through the
DemoPage page object and checks DOM text, FSM state attributes, dialogs and
console/page errors collected by PageMonitor.
"""

from pathlib import Path
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from fsm_capture.demo_page import DemoPage
from fsm_capture.page_monitor import PageMonitor

from .helpers import page_sleep, split_values, wait_until


# ============================================================================
# Setup Steps
# ============================================================================

@given(parsers.parse('the "{html_file}" demo page is open'))
def demo_page_is_open(page: Any, html_fixtures_dir: Path, demo_context: Any, html_file: str) -> None:
    """Open a fixture demo with a PageMonitor attached before navigation."""
    html_path = html_fixtures_dir / html_file
    if not html_path.exists():
        pytest.fail(f"Demo fixture not found: {html_path}")

    demo_context.monitor = PageMonitor(dialog_action="accept").attach(page)
    demo_context.demo = DemoPage(page, monitor=demo_context.monitor)
    demo_context.html_file = html_file
    demo_context.demo.goto(html_path)
    print(f"✓ Opened demo page {html_file}")


# ============================================================================
# Interaction Steps
# ============================================================================

@when(parsers.parse('the user enters "{value}" and clicks "{label}"'))
def user_enters_value_and_clicks(demo_context: Any, value: str, label: str) -> None:
    demo_context.demo.enter_value(value, submit=label)


@when(parsers.parse('the user enters "{value}" and presses Enter'))
def user_enters_value_and_presses_enter(demo_context: Any, value: str) -> None:
    demo_context.demo.enter_value(value)


@when(parsers.parse('the user clicks "{label}"'))
def user_clicks_button(demo_context: Any, label: str) -> None:
    demo_context.demo.click_button(label)


# ============================================================================
# Verification Steps
# ============================================================================

@then(parsers.parse('the "{container}" container shows "{values}"'))
def container_shows_values(demo_context: Any, container: str, values: str) -> None:
    expected = split_values(values)
    actual = demo_context.demo.item_values(container)
    assert actual == expected, f"Expected items {expected} in {container}, found {actual}"


@then(parsers.parse('the "{container}" container is empty'))
def container_is_empty(demo_context: Any, container: str) -> None:
    actual = demo_context.demo.item_values(container)
    assert actual == [], f"Expected {container} to be empty, found {actual}"


@then(parsers.parse('the status message is "{text}"'))
def status_message_is(demo_context: Any, text: str) -> None:
    message = demo_context.demo.message()
    assert message == text, f"Expected status message '{text}', got '{message}'"


@then(parsers.parse('the demo is in state "{state}"'))
def demo_is_in_state(demo_context: Any, state: str) -> None:
    demo_context.demo.wait_for_state(state)
    assert demo_context.demo.current_state() == state


@then(parsers.parse('a dialog with message "{text}" was shown'))
def dialog_was_shown(demo_context: Any, text: str) -> None:
    monitor = demo_context.monitor
    assert wait_until(lambda: text in monitor.dialog_messages, sleep=page_sleep(demo_context.demo.page)), (
        f"No dialog with message '{text}' (dialogs seen: {monitor.dialog_messages})"
    )


@then("no console or page errors were reported")
def no_errors_reported(demo_context: Any) -> None:
    demo_context.monitor.assert_no_errors()


@then(parsers.parse('the page reported an error containing "{text}"'))
def page_reported_error(demo_context: Any, text: str) -> None:
    monitor = demo_context.monitor
    assert wait_until(
        lambda: any(text in e for e in monitor.page_errors), sleep=page_sleep(demo_context.demo.page)
    ), (
        f"No page error containing '{text}' (page errors: {monitor.page_errors})"
    )
    with pytest.raises(AssertionError):
        monitor.assert_no_errors()
