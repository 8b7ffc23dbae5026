"""Playwright tooling for standalone HTML demo pages.

Modules:
    capture: Universal FSM capture (event replay, screenshots, JSON report)
    discovery / mapping: FSM extraction and event-to-element heuristics
    page_monitor / demo_page: Console, error and dialog collection; page object base
    fsm_similarity / batch_eval: FSM comparison against ideal FSMs
    pass_rate: Pass rate distribution of Playwright results
"""

__all__ = [
    "batch_eval",
    "capture",
    "demo_page",
    "discovery",
    "fsm_similarity",
    "interaction_map",
    "mapping",
    "page_monitor",
    "pass_rate",
]
