"""Unit tests for the interaction vocabulary loader."""

import pytest

from fsm_capture.interaction_map import DEFAULT_MAP_PATH, InteractionMap, load_interaction_map


def test_default_map_is_packaged():
    assert DEFAULT_MAP_PATH.exists()


def test_default_vocabulary(interaction_map):
    assert "Enqueue" in interaction_map.button_events["CLICK_INSERT"]
    assert "Dequeue" in interaction_map.button_events["CLICK_DELETE"]
    assert interaction_map.keywords_for("CLICK_SORT") == ["Sort", "Order", "排序"]
    assert interaction_map.keywords_for("CLICK_UNKNOWN") == []
    assert interaction_map.test_data["numbers"][:3] == [1, 5, 10]
    assert interaction_map.test_data["invalid_inputs"][:3] == ["", "abc", "!@#"]
    assert "button" in interaction_map.button_selectors
    assert "textarea" in interaction_map.input_selectors


def test_override_replaces_top_level_keys(tmp_path):
    override = tmp_path / "map.yaml"
    override.write_text(
        "button_events:\n  CLICK_TOGGLE: [Toggle, Switch]\n"
        "test_data:\n  numbers: [7]\n"
        "unrelated_key: 1\n",
        encoding="utf-8",
    )

    loaded = load_interaction_map(override)

    assert loaded.button_events == {"CLICK_TOGGLE": ["Toggle", "Switch"]}
    assert loaded.test_data == {"numbers": [7]}
    # Keys not in the override keep their defaults
    assert "button" in loaded.button_selectors


def test_missing_override_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_interaction_map(tmp_path / "absent.yaml")


def test_non_mapping_override_raises(tmp_path):
    override = tmp_path / "list.yaml"
    override.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must be a YAML mapping"):
        load_interaction_map(override)


def test_loaded_maps_are_independent():
    first = load_interaction_map()
    first.button_events["CLICK_INSERT"].append("Mutated")

    assert "Mutated" not in load_interaction_map().button_events["CLICK_INSERT"]


def test_to_dict_round_trip(interaction_map):
    data = interaction_map.to_dict()
    assert set(data) == {
        "button_events",
        "input_events",
        "input_selectors",
        "button_selectors",
        "interactive_selectors",
        "test_data",
    }
    assert InteractionMap(**data) == interaction_map
