"""Unit tests for demo page step definitions."""

from unittest.mock import MagicMock

import pytest

from fsm_capture.page_monitor import ConsoleEntry, DialogEntry
from tests.step_defs.demo_page_steps import (
    container_is_empty,
    container_shows_values,
    demo_is_in_state,
    demo_page_is_open,
    dialog_was_shown,
    no_errors_reported,
    page_reported_error,
    status_message_is,
    user_clicks_button,
    user_enters_value_and_clicks,
    user_enters_value_and_presses_enter,
)
from tests.step_defs.helpers import page_sleep, split_values, wait_until


def test_demo_page_is_open_attaches_monitor(tmp_path, demo_context):
    (tmp_path / "demo.html").write_text("<html></html>", encoding="utf-8")
    page = MagicMock()

    demo_page_is_open(page, tmp_path, demo_context, "demo.html")

    registered = [c.args[0] for c in page.on.call_args_list]
    assert registered == ["console", "pageerror", "dialog"]
    assert demo_context.html_file == "demo.html"
    page.goto.assert_called_once()
    assert page.goto.call_args.args[0].endswith("/demo.html")


def test_demo_page_is_open_missing_fixture(tmp_path, demo_context):
    with pytest.raises(pytest.fail.Exception):
        demo_page_is_open(MagicMock(), tmp_path, demo_context, "missing.html")


def test_interaction_steps_delegate_to_demo_page(demo_context):
    user_enters_value_and_clicks(demo_context, "42", "Enqueue")
    user_enters_value_and_presses_enter(demo_context, "7")
    user_clicks_button(demo_context, "Dequeue")

    demo = demo_context.demo
    assert demo.enter_value.call_args_list[0].args == ("42",)
    assert demo.enter_value.call_args_list[0].kwargs == {"submit": "Enqueue"}
    assert demo.enter_value.call_args_list[1].args == ("7",)
    demo.click_button.assert_called_once_with("Dequeue")


def test_container_shows_values(demo_context):
    demo_context.demo.item_values.return_value = ["10", "20"]

    container_shows_values(demo_context, "#queue", "10, 20")

    with pytest.raises(AssertionError, match="Expected items"):
        container_shows_values(demo_context, "#queue", "20, 10")


def test_container_is_empty(demo_context):
    demo_context.demo.item_values.return_value = []
    container_is_empty(demo_context, "#queue")

    demo_context.demo.item_values.return_value = ["1"]
    with pytest.raises(AssertionError):
        container_is_empty(demo_context, "#queue")


def test_status_message_is(demo_context):
    demo_context.demo.message.return_value = "Sorted"
    status_message_is(demo_context, "Sorted")
    with pytest.raises(AssertionError, match="Expected status message 'Ready'"):
        status_message_is(demo_context, "Ready")


def test_demo_is_in_state_waits_first(demo_context):
    demo_context.demo.current_state.return_value = "done"

    demo_is_in_state(demo_context, "done")

    demo_context.demo.wait_for_state.assert_called_once_with("done")


def test_dialog_was_shown(demo_context):
    demo_context.monitor.dialogs.append(DialogEntry(type="alert", message="Queue is empty"))
    dialog_was_shown(demo_context, "Queue is empty")


def test_error_steps(demo_context):
    no_errors_reported(demo_context)

    demo_context.monitor.console_messages.append(ConsoleEntry(type="error", text="Comparator missing"))
    demo_context.monitor.page_errors.append("swap is not defined")

    with pytest.raises(AssertionError):
        no_errors_reported(demo_context)
    page_reported_error(demo_context, "swap is not defined")


def test_split_values():
    assert split_values("10, 20 ,30") == ["10", "20", "30"]
    assert split_values(" , ") == []


def test_wait_until_times_out():
    assert wait_until(lambda: True) is True
    assert wait_until(lambda: False, timeout=0.1, interval=0.02) is False


def test_wait_until_uses_given_sleep():
    calls = []
    results = iter([False, False, True])

    assert wait_until(lambda: next(results), timeout=5, interval=0.25, sleep=calls.append)
    assert calls == [0.25, 0.25]


def test_page_sleep_waits_through_page():
    page = MagicMock()

    page_sleep(page)(0.5)

    page.wait_for_timeout.assert_called_once_with(500.0)
