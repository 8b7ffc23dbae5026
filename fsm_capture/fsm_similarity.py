"""Similarity scoring between two FSM definitions.

Compares an FSM produced for a demo page with a reference ("ideal") FSM
for the same concept. Both documents are first normalized into a graph of
nodes (states) and edges (transitions), then scored along three axes:

- Structural: node/edge counts, degree distribution, graph density
- Semantic: state categories, event types, action overlap, metadata
- Isomorphism: equality of a canonical graph signature

The combined score weights structural and semantic similarity 40% each
and isomorphism 20%.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

logger = logging.getLogger(__name__)

STRUCTURAL_WEIGHT = 0.4
SEMANTIC_WEIGHT = 0.4
ISOMORPHISM_WEIGHT = 0.2
MAX_COMPLEXITY = 10


class FSMComparisonError(ValueError):
    """Raised when two FSM documents cannot be compared."""


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def categorize_state(state_name: str) -> str:
    """Guess the role of a state from its name."""
    name = (state_name or "").lower()
    if "idle" in name or "initial" in name or "start" in name:
        return "initial"
    if "error" in name or "alert" in name or "fail" in name:
        return "error"
    if "validating" in name or "input" in name:
        return "validation"
    if "inserting" in name or "adding" in name or "removing" in name:
        return "action"
    if "drawing" in name or "updating" in name or "display" in name:
        return "display"
    if "resetting" in name or "done" in name or "complete" in name:
        return "final"
    return "atomic"


def classify_event(event_name: str) -> str:
    if not event_name:
        return "unknown"
    name = event_name.lower()
    if "click" in name or "user" in name:
        return "user_action"
    if "complete" in name or "success" in name or "fail" in name:
        return "system_event"
    if "timeout" in name or "timer" in name:
        return "timer_event"
    return "unknown"


def state_complexity(state: dict[str, Any]) -> float:
    score = 1.0
    score += len(_as_list(state.get("entry_actions"))) * 0.5
    score += len(_as_list(state.get("exit_actions"))) * 0.5
    return min(score, MAX_COMPLEXITY)


def transition_complexity(transition: dict[str, Any]) -> float:
    score = 1.0
    if transition.get("guard"):
        score += 1
    score += len(_as_list(transition.get("actions"))) * 0.5
    score += len(_as_list(transition.get("expected_observables"))) * 0.3
    return min(score, MAX_COMPLEXITY)


def _collect_states(fsm_data: dict[str, Any]) -> list[dict[str, Any]]:
    states = fsm_data.get("states")
    if isinstance(states, list):
        return [s if isinstance(s, dict) else {"id": str(s)} for s in states]
    if isinstance(states, dict):
        collected = []
        for key, state in states.items():
            state = state or {}
            merged = {
                "id": key,
                "label": (state.get("meta") or {}).get("label", key),
                "type": state.get("type", "atomic"),
                "entry_actions": state.get("onEnter") or state.get("entry_actions") or [],
                "exit_actions": state.get("onExit") or state.get("exit_actions") or [],
            }
            merged.update(state)
            collected.append(merged)
        return collected
    return []


def _collect_transitions(fsm_data: dict[str, Any]) -> list[dict[str, Any]]:
    transitions = fsm_data.get("transitions")
    if isinstance(transitions, list):
        return transitions

    states = fsm_data.get("states")
    if isinstance(states, list):
        entries = [(s.get("id"), s) for s in states if isinstance(s, dict)]
    elif isinstance(states, dict):
        entries = [(k, v or {}) for k, v in states.items()]
    else:
        return []

    collected = []
    for state_key, state in entries:
        state_transitions = state.get("on") or state.get("transitions") or {}
        if not isinstance(state_transitions, dict):
            continue
        for event, target in state_transitions.items():
            if isinstance(target, str):
                collected.append({"from": state_key, "to": target, "event": event,
                                  "guard": "", "actions": [], "timeout": 0})
            elif isinstance(target, dict):
                collected.append({
                    "from": state_key,
                    "to": target.get("target") or target.get("to"),
                    "event": event,
                    "guard": target.get("cond") or target.get("guard") or "",
                    "actions": target.get("actions") or [],
                    "timeout": target.get("timeout") or 0,
                })
    return collected


def normalize_fsm(fsm_data: dict[str, Any]) -> dict[str, Any]:
    """Convert an FSM document into a graph of nodes and edges.

    Accepts both the array form (``states: [...]``, ``transitions: [...]``)
    and the object form where each state carries an ``on`` map of
    ``event -> target`` (string or ``{target, cond, actions}``).

    Returns:
        Dictionary with ``nodes``, ``edges`` and ``metadata``
    """
    if not isinstance(fsm_data, dict):
        raise FSMComparisonError(f"FSM must be a JSON object, got {type(fsm_data).__name__}")

    meta = fsm_data.get("meta") or {}
    metadata = {
        "concept": meta.get("concept") or fsm_data.get("concept") or "",
        "topic": meta.get("topic") or fsm_data.get("topic") or "",
        "educational_goal": meta.get("educational_goal") or "",
        "expected_interactions": meta.get("expected_interactions") or [],
    }

    nodes = []
    for state in _collect_states(fsm_data):
        node_id = state.get("id") or state.get("name") or state.get("label")
        label = state.get("label") or state.get("name") or state.get("id") or ""
        entry_actions = _as_list(state.get("entry_actions") or state.get("onEnter"))
        exit_actions = _as_list(state.get("exit_actions") or state.get("onExit"))
        nodes.append({
            "id": node_id,
            "label": str(label),
            "type": state.get("type") or "atomic",
            "entry_actions": entry_actions,
            "exit_actions": exit_actions,
            "attributes": {
                "semantic_category": categorize_state(str(state.get("label") or state.get("id") or "")),
                "action_count": len(_as_list(state.get("entry_actions"))) + len(_as_list(state.get("exit_actions"))),
                "has_guards": False,
                "complexity_score": state_complexity(state),
            },
        })

    edges = []
    for transition in _collect_transitions(fsm_data):
        edges.append({
            "from": transition.get("from"),
            "to": transition.get("to"),
            "event": transition.get("event") or "",
            "guard": transition.get("guard") or "",
            "actions": _as_list(transition.get("actions")),
            "expected_observables": _as_list(transition.get("expected_observables")),
            "timeout": transition.get("timeout") or 0,
            "attributes": {
                "event_type": classify_event(transition.get("event") or ""),
                "has_guard": bool(transition.get("guard")),
                "action_count": len(_as_list(transition.get("actions"))),
                "complexity_score": transition_complexity(transition),
            },
        })

    for node in nodes:
        incoming = [e for e in edges if e["to"] == node["id"]]
        outgoing = [e for e in edges if e["from"] == node["id"]]
        attrs = node["attributes"]
        attrs["has_guards"] = any(e["attributes"]["has_guard"] for e in outgoing)
        attrs["in_degree"] = len(incoming)
        attrs["out_degree"] = len(outgoing)
        attrs["centrality_score"] = (len(incoming) + len(outgoing)) / max(1, len(edges))

    return {"nodes": nodes, "edges": edges, "metadata": metadata}


def _count_similarity(count1: int, count2: int) -> float:
    return 1 - abs(count1 - count2) / max(count1, count2, 1)


def _distribution_overlap(dist1: Counter, dist2: Counter) -> float:
    """Mean per-key min/max ratio of two frequency tables."""
    keys = set(dist1) | set(dist2)
    total = sum(min(dist1[k], dist2[k]) / max(dist1[k], dist2[k], 1) for k in keys)
    return total / len(keys)


def degree_distribution_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> float:
    def distribution(fsm):
        return Counter(
            n["attributes"]["in_degree"] + n["attributes"]["out_degree"] for n in fsm["nodes"]
        )

    dist1, dist2 = distribution(fsm1), distribution(fsm2)
    degrees = set(dist1) | set(dist2)
    if not degrees:
        return 1.0
    total_nodes = max(len(fsm1["nodes"]), len(fsm2["nodes"]), 1)
    similarity = sum(1 - abs(dist1[d] - dist2[d]) / total_nodes for d in degrees)
    return similarity / len(degrees)


def _density(fsm: dict[str, Any]) -> float:
    n = len(fsm["nodes"])
    return len(fsm["edges"]) / max(1, n * (n - 1))


def structural_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> dict[str, float]:
    node_count_sim = _count_similarity(len(fsm1["nodes"]), len(fsm2["nodes"]))
    edge_count_sim = _count_similarity(len(fsm1["edges"]), len(fsm2["edges"]))
    degree_sim = degree_distribution_similarity(fsm1, fsm2)
    density_sim = 1 - abs(_density(fsm1) - _density(fsm2))
    return {
        "node_count_similarity": node_count_sim,
        "edge_count_similarity": edge_count_sim,
        "degree_distribution_similarity": degree_sim,
        "density_similarity": density_sim,
        "overall": (node_count_sim + edge_count_sim + degree_sim + density_sim) / 4,
    }


def category_distribution(fsm: dict[str, Any]) -> dict[str, int]:
    return dict(Counter(n["attributes"]["semantic_category"] for n in fsm["nodes"]))


def state_category_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> float:
    cat1 = Counter(category_distribution(fsm1))
    cat2 = Counter(category_distribution(fsm2))
    if not cat1 and not cat2:
        return 1.0
    return _distribution_overlap(cat1, cat2)


def event_type_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> float:
    types1 = Counter(e["attributes"]["event_type"] for e in fsm1["edges"])
    types2 = Counter(e["attributes"]["event_type"] for e in fsm2["edges"])
    if not types1 and not types2:
        return 1.0
    return _distribution_overlap(types1, types2)


def _all_actions(fsm: dict[str, Any]) -> set[str]:
    actions = set()
    for node in fsm["nodes"]:
        for action in node["entry_actions"] + node["exit_actions"]:
            actions.add(str(action).lower().strip())
    for edge in fsm["edges"]:
        for action in edge["actions"]:
            actions.add(str(action).lower().strip())
    return actions


def jaccard(set1: set, set2: set) -> float:
    union = set1 | set2
    if not union:
        return 1.0
    return len(set1 & set2) / len(union)


def action_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> float:
    return jaccard(_all_actions(fsm1), _all_actions(fsm2))


def edit_distance(str1: str, str2: str) -> int:
    """Levenshtein distance."""
    previous = list(range(len(str1) + 1))
    for i, ch2 in enumerate(str2, start=1):
        current = [i]
        for j, ch1 in enumerate(str1, start=1):
            if ch1 == ch2:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def string_similarity(str1: str, str2: str) -> float:
    if str1 == str2:
        return 1.0
    if not str1 or not str2:
        return 0.0
    max_len = max(len(str1), len(str2))
    return 1 - edit_distance(str1.lower(), str2.lower()) / max_len


def metadata_similarity(meta1: dict[str, Any], meta2: dict[str, Any]) -> float:
    concept_sim = string_similarity(meta1.get("concept") or "", meta2.get("concept") or "")
    topic_sim = string_similarity(meta1.get("topic") or "", meta2.get("topic") or "")
    goal_sim = string_similarity(meta1.get("educational_goal") or "", meta2.get("educational_goal") or "")
    interaction_sim = jaccard(
        {str(i) for i in meta1.get("expected_interactions") or []},
        {str(i) for i in meta2.get("expected_interactions") or []},
    )
    return (concept_sim + topic_sim + goal_sim + interaction_sim) / 4


def semantic_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> dict[str, float]:
    category_sim = state_category_similarity(fsm1, fsm2)
    event_sim = event_type_similarity(fsm1, fsm2)
    action_sim = action_similarity(fsm1, fsm2)
    meta_sim = metadata_similarity(fsm1["metadata"], fsm2["metadata"])
    return {
        "state_category_similarity": category_sim,
        "event_type_similarity": event_sim,
        "action_similarity": action_sim,
        "metadata_similarity": meta_sim,
        "overall": (category_sim + event_sim + action_sim + meta_sim) / 4,
    }


def canonical_form(fsm: dict[str, Any]) -> str:
    """Label-independent signature of the graph shape.

    Nodes are ordered by total degree (descending) then label.
    """
    def degree(node):
        return node["attributes"]["in_degree"] + node["attributes"]["out_degree"]

    sorted_nodes = sorted(fsm["nodes"], key=lambda n: (-degree(n), n["label"]))
    node_signature = ",".join(
        f"{n['attributes']['semantic_category']}:{n['attributes']['in_degree']}-{n['attributes']['out_degree']}"
        for n in sorted_nodes
    )
    edge_signature = ",".join(
        sorted(
            f"{e['attributes']['event_type']}:{str(e['attributes']['has_guard']).lower()}"
            for e in fsm["edges"]
        )
    )
    return f"{node_signature}|{edge_signature}"


def isomorphism_similarity(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> float:
    return 1.0 if canonical_form(fsm1) == canonical_form(fsm2) else 0.0


def interpret_similarity(score: float) -> str:
    if score >= 0.9:
        return "Very High - FSMs are nearly identical"
    if score >= 0.7:
        return "High - FSMs are quite similar"
    if score >= 0.5:
        return "Medium - FSMs have some similarities"
    if score >= 0.3:
        return "Low - FSMs have few similarities"
    return "Very Low - FSMs are quite different"


def key_differences(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> list[str]:
    differences = []
    if abs(len(fsm1["nodes"]) - len(fsm2["nodes"])) > 2:
        differences.append(
            f"State count differs significantly: {len(fsm1['nodes'])} vs {len(fsm2['nodes'])}"
        )
    if abs(len(fsm1["edges"]) - len(fsm2["edges"])) > 2:
        differences.append(
            f"Transition count differs significantly: {len(fsm1['edges'])} vs {len(fsm2['edges'])}"
        )
    cat2 = category_distribution(fsm2)
    missing = [cat for cat in category_distribution(fsm1) if cat not in cat2]
    if missing:
        differences.append(f"Missing state categories: {', '.join(missing)}")
    return differences


def recommendations(structural: dict[str, float], semantic: dict[str, float]) -> list[str]:
    result = []
    if structural["overall"] < 0.5:
        result.append("Consider adjusting the number of states and transitions to match the ideal structure")
    if semantic["state_category_similarity"] < 0.5:
        result.append("Review state categorization - some important state types may be missing")
    if semantic["action_similarity"] < 0.5:
        result.append("Actions and behaviors could be more aligned with the ideal FSM")
    if semantic["event_type_similarity"] < 0.5:
        result.append("Event types and interactions could better match the expected pattern")
    return result


def compare_fsms(fsm1: dict[str, Any], fsm2: dict[str, Any]) -> dict[str, Any]:
    """Compare two FSM documents.

    Args:
        fsm1: FSM under evaluation
        fsm2: Reference FSM

    Returns:
        Dictionary with per-axis scores, ``combined_similarity``, a
        human-readable ``summary`` and normalized ``details``

    Raises:
        FSMComparisonError: If either document cannot be normalized
    """
    try:
        normalized1 = normalize_fsm(fsm1)
        normalized2 = normalize_fsm(fsm2)
    except FSMComparisonError:
        raise
    except (AttributeError, TypeError, KeyError) as e:
        raise FSMComparisonError(f"FSM comparison failed: {e}") from e

    structural = structural_similarity(normalized1, normalized2)
    semantic = semantic_similarity(normalized1, normalized2)
    isomorphism = isomorphism_similarity(normalized1, normalized2)

    combined = (
        structural["overall"] * STRUCTURAL_WEIGHT
        + semantic["overall"] * SEMANTIC_WEIGHT
        + isomorphism * ISOMORPHISM_WEIGHT
    )
    logger.debug(
        "FSM similarity: structural=%.3f semantic=%.3f isomorphism=%.1f combined=%.3f",
        structural["overall"], semantic["overall"], isomorphism, combined,
    )

    return {
        "structural_similarity": structural,
        "semantic_similarity": semantic,
        "isomorphism_similarity": isomorphism,
        "combined_similarity": combined,
        "summary": {
            "score": int(combined * 100 + 0.5),
            "interpretation": interpret_similarity(combined),
            "key_differences": key_differences(normalized1, normalized2),
            "recommendations": recommendations(structural, semantic),
        },
        "details": {
            "fsm1_stats": {
                "nodes": len(normalized1["nodes"]),
                "edges": len(normalized1["edges"]),
                "concept": normalized1["metadata"]["concept"],
                "categories": category_distribution(normalized1),
            },
            "fsm2_stats": {
                "nodes": len(normalized2["nodes"]),
                "edges": len(normalized2["edges"]),
                "concept": normalized2["metadata"]["concept"],
                "categories": category_distribution(normalized2),
            },
            "raw_fsm1": normalized1,
            "raw_fsm2": normalized2,
        },
    }
