"""Unit tests for FSM extraction and element discovery."""

import asyncio
from unittest.mock import AsyncMock

from fsm_capture.discovery import (
    DiscoveredElements,
    ElementInfo,
    FSMConfig,
    discover_interactive_elements,
    extract_fsm_from_page,
)


def test_extract_fsm_returns_document():
    async def run_test():
        page = AsyncMock()
        page.evaluate.return_value = {"topic": "Stack", "states": [], "events": []}

        fsm = await extract_fsm_from_page(page)

        assert fsm == {"topic": "Stack", "states": [], "events": []}

    asyncio.run(run_test())


def test_extract_fsm_without_script():
    async def run_test():
        page = AsyncMock()
        page.evaluate.return_value = None

        assert await extract_fsm_from_page(page) is None

    asyncio.run(run_test())


def test_extract_fsm_ignores_non_object_json():
    async def run_test():
        page = AsyncMock()
        page.evaluate.return_value = ["idle", "done"]

        assert await extract_fsm_from_page(page) is None

    asyncio.run(run_test())


def test_discover_passes_selector_tables(interaction_map):
    async def run_test():
        page = AsyncMock()
        page.evaluate.return_value = {
            "buttons": [
                {"selector": "button", "text": "Sort", "id": "sort-btn", "className": "btn", "tagName": "button"},
            ],
            "inputs": [
                {"selector": "select", "text": "", "id": "", "class_name": "", "tag_name": "SELECT", "name": "mode"},
            ],
            "interactive": [],
        }

        elements = await discover_interactive_elements(page, interaction_map)

        assert page.evaluate.await_args.args[1] == interaction_map.to_dict()
        assert elements.counts() == {"buttons": 1, "inputs": 1, "interactive": 0}
        button = elements.buttons[0]
        assert button.id == "sort-btn"
        assert button.class_name == "btn"
        assert button.tag_name == "BUTTON"
        assert elements.inputs[0].name == "mode"

    asyncio.run(run_test())


def test_discover_handles_empty_result(interaction_map):
    async def run_test():
        page = AsyncMock()
        page.evaluate.return_value = None

        elements = await discover_interactive_elements(page, interaction_map)

        assert elements.counts() == {"buttons": 0, "inputs": 0, "interactive": 0}

    asyncio.run(run_test())


def test_element_info_defaults_missing_fields():
    info = ElementInfo.from_dict({"selector": "button", "text": None, "tag_name": "button"})

    assert info.text == ""
    assert info.id == ""
    assert info.tag_name == "BUTTON"


def test_discovered_elements_to_dict(queue_elements):
    data = queue_elements.to_dict()

    assert [b["text"] for b in data["buttons"]] == ["Enqueue", "Dequeue", "Clear"]
    assert DiscoveredElements.from_dict(data) == queue_elements


def test_fsm_config_from_array_states():
    fsm = FSMConfig.from_dict({
        "topic": "Queue (FIFO)",
        "states": [{"id": "idle"}, {"id": "inserting"}],
        "events": ["CLICK_INSERT", "CLICK_DELETE"],
    })

    assert fsm.topic == "Queue (FIFO)"
    assert len(fsm.states) == 2
    assert fsm.events == ["CLICK_INSERT", "CLICK_DELETE"]
    assert not fsm.auto_discovered


def test_fsm_config_topic_from_meta_and_object_states():
    fsm = FSMConfig.from_dict({
        "meta": {"concept": "Stack"},
        "states": {"idle": {}, "pushing": {}},
    })

    assert fsm.topic == "Stack"
    assert fsm.states == ["idle", "pushing"]
    assert fsm.events == []


def test_fsm_config_unknown_topic():
    assert FSMConfig.from_dict({}).topic == "Unknown Topic"


def test_fsm_config_fallback():
    fsm = FSMConfig.fallback()

    assert fsm.auto_discovered
    assert fsm.topic == "Auto-discovered interactions"
    assert fsm.events == ["AUTO_CLICK", "AUTO_INPUT", "AUTO_INTERACTION"]
    assert fsm.to_dict()["events"] == fsm.events
