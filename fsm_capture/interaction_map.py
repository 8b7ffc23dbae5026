"""Interaction vocabulary for mapping FSM events onto demo page controls.

The vocabulary (event keywords, element selectors and canned test data) is
kept in YAML so it can be tuned without touching code, the same way UI
selectors are maintained for hand-written page helpers.
"""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MAP_PATH = Path(__file__).parent / "interaction_map.yaml"


@dataclass
class InteractionMap:
    """Keyword and selector tables used by discovery and event mapping.

    Attributes:
        button_events: Event pattern (e.g. ``CLICK_INSERT``) -> button label keywords
        input_events: Input event pattern -> descriptive keywords
        input_selectors: CSS selectors used to find text-like inputs
        button_selectors: CSS selectors used to find clickable buttons
        interactive_selectors: CSS selectors for other clickable elements
        test_data: Named value sets replayed into inputs
    """

    button_events: dict[str, list[str]] = field(default_factory=dict)
    input_events: dict[str, list[str]] = field(default_factory=dict)
    input_selectors: list[str] = field(default_factory=list)
    button_selectors: list[str] = field(default_factory=list)
    interactive_selectors: list[str] = field(default_factory=list)
    test_data: dict[str, list[Any]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def keywords_for(self, pattern: str) -> list[str]:
        return self.button_events.get(pattern, [])


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Interaction map {path} must be a YAML mapping, got {type(data).__name__}")
    return data


def load_interaction_map(path: str | Path | None = None) -> InteractionMap:
    """Load the interaction vocabulary.

    Args:
        path: Optional YAML override. Top-level keys it defines replace the
            packaged defaults; keys it omits keep their default value.

    Returns:
        InteractionMap instance

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the YAML document is not a mapping
    """
    data = _read_yaml(DEFAULT_MAP_PATH)

    if path is not None:
        override_path = Path(path)
        if not override_path.exists():
            raise FileNotFoundError(f"Interaction map not found: {override_path}")
        data.update(_read_yaml(override_path))

    known = InteractionMap.__dataclass_fields__.keys()
    return InteractionMap(**{k: copy.deepcopy(v) for k, v in data.items() if k in known})
