"""Heuristic mapping of FSM event names onto discovered page elements.

An event such as ``CLICK_INSERT_VALUE`` is matched against the button
event patterns of the interaction map (``CLICK_INSERT`` -> ``INSERT``), and
every visible button whose label contains one of the pattern's keywords
becomes a candidate click. Events mentioning INPUT, ENTER or TYPE target
every discovered input. Each candidate carries a static confidence score.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

from fsm_capture.discovery import DiscoveredElements, ElementInfo
from fsm_capture.interaction_map import InteractionMap

EXACT_MATCH_CONFIDENCE = 0.95
KEYWORD_MATCH_CONFIDENCE = 0.8
EVENT_NAME_MATCH_CONFIDENCE = 0.7
BASE_CONFIDENCE = 0.5
INPUT_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.8

INPUT_EVENT_MARKERS = ("INPUT", "ENTER", "TYPE")

# Ids usable after "#" without escaping
CSS_IDENTIFIER = re.compile(r"-?[A-Za-z_][A-Za-z0-9_-]*")


@dataclass
class EventMapping:
    """A candidate interaction for one FSM event.

    Attributes:
        event: FSM event name as declared by the page
        action: "click", "input" or "select"
        element: Element the action targets
        selector: Playwright selector built for the element
        confidence: Static score in [0, 1]
    """

    event: str
    action: str
    element: ElementInfo
    selector: str
    confidence: float

    @property
    def state_name(self) -> str:
        return f"{self.action}_{self.event}".lower()

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.event,
            "action": self.action,
            "element": self.element.to_dict(),
            "selector": self.selector,
            "confidence": self.confidence,
        }


def construct_selector(element: ElementInfo) -> str:
    """Build a Playwright selector for a discovered element.

    Preference order: ``#id`` (``[id="..."]`` when the id is not a plain CSS
    identifier), ``button:has-text("...")`` for labelled buttons, then
    ``tag[type="..."]`` with the first CSS class appended.
    """
    if element.id:
        if CSS_IDENTIFIER.fullmatch(element.id):
            return f"#{element.id}"
        escaped = element.id.replace("\\", "\\\\").replace('"', '\\"')
        return f'[id="{escaped}"]'

    tag = element.tag_name.upper()
    selector = tag.lower()

    if element.type:
        selector += f'[type="{element.type}"]'

    if element.text and tag == "BUTTON":
        text = element.text.replace('"', '\\"')
        return f'button:has-text("{text}")'

    classes = [c for c in element.class_name.split(" ") if c.strip()]
    if classes:
        selector += "." + classes[0]

    return selector


def _input_action(element: ElementInfo) -> str:
    return "select" if element.tag_name.upper() == "SELECT" else "input"


def calculate_confidence(event: str, element_text: str, keywords: Iterable[str]) -> float:
    """Score how well a button label matches an event's keywords.

    Returns:
        0.95 for an exact keyword match, 0.8 when a keyword is contained in
        the label, 0.7 when the label contains the event name itself, else 0.5
    """
    keywords = [k.lower() for k in keywords]
    text_lower = element_text.lower()

    if any(text_lower == keyword for keyword in keywords):
        return EXACT_MATCH_CONFIDENCE
    if any(keyword in text_lower for keyword in keywords):
        return KEYWORD_MATCH_CONFIDENCE

    # Only the first "click_" and the first remaining "_" are dropped.
    event_token = event.lower().replace("click_", "", 1).replace("_", "", 1)
    if event_token in text_lower:
        return EVENT_NAME_MATCH_CONFIDENCE
    return BASE_CONFIDENCE


def map_fsm_events_to_elements(
    events: Iterable[str],
    elements: DiscoveredElements,
    interaction_map: InteractionMap,
) -> list[EventMapping]:
    """Map FSM events onto candidate element interactions.

    Args:
        events: Event names declared by the page FSM
        elements: Elements discovered on the page
        interaction_map: Keyword tables

    Returns:
        Candidate mappings, highest confidence first (ties keep discovery order)
    """
    mappings: list[EventMapping] = []

    for event in events:
        event_name = event.upper()

        for pattern, keywords in interaction_map.button_events.items():
            if pattern.replace("CLICK_", "", 1) not in event_name:
                continue
            lowered = [k.lower() for k in keywords]
            for button in elements.buttons:
                button_text = button.text.lower()
                if any(keyword in button_text for keyword in lowered):
                    mappings.append(
                        EventMapping(
                            event=event,
                            action="click",
                            element=button,
                            selector=construct_selector(button),
                            confidence=calculate_confidence(event, button.text, keywords),
                        )
                    )

        if any(marker in event_name for marker in INPUT_EVENT_MARKERS):
            for input_el in elements.inputs:
                mappings.append(
                    EventMapping(
                        event=event,
                        action=_input_action(input_el),
                        element=input_el,
                        selector=construct_selector(input_el),
                        confidence=INPUT_CONFIDENCE,
                    )
                )

    mappings.sort(key=lambda m: m.confidence, reverse=True)
    return mappings


def build_fallback_mappings(elements: DiscoveredElements) -> list[EventMapping]:
    """Create one mapping per discovered button and input.

    Used when no FSM event could be matched, so every control on the page
    is still exercised.
    """
    mappings = [
        EventMapping(
            event=f"AUTO_BUTTON_{index}",
            action="click",
            element=button,
            selector=construct_selector(button),
            confidence=FALLBACK_CONFIDENCE,
        )
        for index, button in enumerate(elements.buttons)
    ]
    mappings.extend(
        EventMapping(
            event=f"AUTO_INPUT_{index}",
            action=_input_action(input_el),
            element=input_el,
            selector=construct_selector(input_el),
            confidence=FALLBACK_CONFIDENCE,
        )
        for index, input_el in enumerate(elements.inputs)
    )
    return mappings
