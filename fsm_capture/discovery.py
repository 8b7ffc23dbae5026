"""Discovery of embedded FSM definitions and interactive elements on demo pages.

Demo pages may embed their intended state machine as JSON, either in a
``<script id="fsm">`` block or in the first ``script[type="application/json"]``.
Interactive controls are found by walking a list of heuristic CSS selectors
in the page and keeping only visible elements.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from playwright.async_api import Page

from fsm_capture.interaction_map import InteractionMap

logger = logging.getLogger(__name__)

# Runs inside the page. Returns None when there is no FSM block or it is not valid JSON.
_EXTRACT_FSM_JS = """
() => {
    const fsmScript =
        document.getElementById("fsm") ||
        document.querySelector('script[type="application/json"]');
    if (!fsmScript) return null;
    try {
        return JSON.parse(fsmScript.textContent);
    } catch (error) {
        console.error("Failed to parse FSM JSON:", error);
        return null;
    }
}
"""

# Runs inside the page. `offsetParent !== null` is used as the visibility test.
_DISCOVER_ELEMENTS_JS = """
(selectors) => {
    const elements = { buttons: [], inputs: [], interactive: [] };
    const visible = (el) => el.offsetParent !== null;
    const className = (el) => (typeof el.className === "string" ? el.className : "");

    selectors.button_selectors.forEach((selector) => {
        try {
            document.querySelectorAll(selector).forEach((btn) => {
                if (!visible(btn)) return;
                elements.buttons.push({
                    selector: selector,
                    text:
                        (btn.textContent || "").trim() ||
                        btn.value ||
                        btn.getAttribute("aria-label") ||
                        "",
                    id: btn.id || "",
                    class_name: className(btn),
                    type: btn.type || "",
                    tag_name: btn.tagName,
                });
            });
        } catch (e) {
            console.warn(`Error with selector ${selector}:`, e);
        }
    });

    selectors.input_selectors.forEach((selector) => {
        try {
            document.querySelectorAll(selector).forEach((input) => {
                if (!visible(input)) return;
                elements.inputs.push({
                    selector: selector,
                    id: input.id || "",
                    name: input.name || "",
                    type: input.type || "",
                    placeholder: input.placeholder || "",
                    class_name: className(input),
                    tag_name: input.tagName,
                });
            });
        } catch (e) {
            console.warn(`Error with selector ${selector}:`, e);
        }
    });

    selectors.interactive_selectors.forEach((selector) => {
        try {
            document.querySelectorAll(selector).forEach((el) => {
                if (!visible(el)) return;
                elements.interactive.push({
                    selector: selector,
                    text: (el.textContent || "").trim(),
                    id: el.id || "",
                    class_name: className(el),
                    tag_name: el.tagName,
                });
            });
        } catch (e) {
            console.warn(`Error with selector ${selector}:`, e);
        }
    });

    return elements;
}
"""


@dataclass
class ElementInfo:
    """Snapshot of one visible DOM element found by a discovery selector."""

    selector: str = ""
    text: str = ""
    id: str = ""
    class_name: str = ""
    type: str = ""
    tag_name: str = ""
    name: str = ""
    placeholder: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ElementInfo":
        return cls(
            selector=data.get("selector", ""),
            text=data.get("text") or "",
            id=data.get("id") or "",
            class_name=data.get("class_name") or data.get("className") or "",
            type=data.get("type") or "",
            tag_name=(data.get("tag_name") or data.get("tagName") or "").upper(),
            name=data.get("name") or "",
            placeholder=data.get("placeholder") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DiscoveredElements:
    buttons: list[ElementInfo] = field(default_factory=list)
    inputs: list[ElementInfo] = field(default_factory=list)
    interactive: list[ElementInfo] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscoveredElements":
        return cls(
            buttons=[ElementInfo.from_dict(b) for b in data.get("buttons", [])],
            inputs=[ElementInfo.from_dict(i) for i in data.get("inputs", [])],
            interactive=[ElementInfo.from_dict(e) for e in data.get("interactive", [])],
        )

    def counts(self) -> dict[str, int]:
        return {
            "buttons": len(self.buttons),
            "inputs": len(self.inputs),
            "interactive": len(self.interactive),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "buttons": [b.to_dict() for b in self.buttons],
            "inputs": [i.to_dict() for i in self.inputs],
            "interactive": [e.to_dict() for e in self.interactive],
        }


@dataclass
class FSMConfig:
    """The FSM a demo page declares about itself.

    Only ``topic``, ``states`` and ``events`` drive the capture run; the
    full document is kept in ``raw`` so it can be written to the report.
    """

    topic: str = "Unknown Topic"
    states: list[Any] = field(default_factory=list)
    events: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)
    auto_discovered: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FSMConfig":
        meta = data.get("meta") or {}
        topic = data.get("topic") or meta.get("topic") or meta.get("concept") or "Unknown Topic"
        states = data.get("states") or []
        if isinstance(states, dict):
            states = list(states.keys())
        events = [str(e) for e in (data.get("events") or [])]
        return cls(topic=topic, states=list(states), events=events, raw=data)

    @classmethod
    def fallback(cls) -> "FSMConfig":
        events = ["AUTO_CLICK", "AUTO_INPUT", "AUTO_INTERACTION"]
        raw = {"topic": "Auto-discovered interactions", "states": [], "events": events}
        return cls(
            topic=raw["topic"],
            states=[],
            events=list(events),
            raw=raw,
            auto_discovered=True,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.raw or {"topic": self.topic, "states": self.states, "events": self.events}


async def extract_fsm_from_page(page: Page) -> Optional[dict[str, Any]]:
    """Read the FSM JSON embedded in the current page.

    Args:
        page: Playwright Page object

    Returns:
        Parsed FSM document, or None when the page embeds none (or it is invalid)
    """
    fsm = await page.evaluate(_EXTRACT_FSM_JS)
    if fsm is not None and not isinstance(fsm, dict):
        logger.warning("Embedded FSM is not a JSON object (got %s), ignoring it", type(fsm).__name__)
        return None
    return fsm


async def discover_interactive_elements(
    page: Page,
    interaction_map: InteractionMap,
) -> DiscoveredElements:
    """Find visible buttons, inputs and other clickable elements.

    An element matched by more than one selector is reported once per
    matching selector.

    Args:
        page: Playwright Page object
        interaction_map: Selector tables to walk

    Returns:
        DiscoveredElements grouped by kind
    """
    raw = await page.evaluate(_DISCOVER_ELEMENTS_JS, interaction_map.to_dict())
    elements = DiscoveredElements.from_dict(raw or {})
    logger.debug("Discovered elements: %s", elements.counts())
    return elements
