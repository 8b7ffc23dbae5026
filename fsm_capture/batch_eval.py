#!/usr/bin/env python3
"""
Batch FSM Similarity Evaluation

Compares every generated FSM in ``<workspace>/fsm/*.json`` with the ideal
FSM for the same concept in ``<workspace>/ideal-fsm/`` and writes all
results to ``<workspace>/fsm-similarity-results.json``.

The ideal FSM is located by concept name: exact file name candidates are
tried first (CamelCase -> Snake_Case, space replacements, a table of well
known algorithm names), then fuzzy matching on shared words.

Usage:
    python -m fsm_capture.batch_eval workspace/batch-1207
    python -m fsm_capture.batch_eval workspace/batch-1207 --categories concept-categories.json
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fsm_capture.fsm_similarity import FSMComparisonError, compare_fsms

logger = logging.getLogger(__name__)

RESULTS_FILE_NAME = "fsm-similarity-results.json"

SPECIAL_MAPPINGS: Dict[str, List[str]] = {
    "LinkedList": ["Linked_List.json"],
    "BinarySearchTree": ["Binary_Search_Tree__BST_.json"],
    "BinarySearch": ["Binary_Search.json"],
    "BinaryTree": ["Binary_Tree.json"],
    "BubbleSort": ["Bubble_Sort.json"],
    "InsertionSort": ["Insertion_Sort.json"],
    "SelectionSort": ["Selection_Sort.json"],
    "MergeSort": ["Merge_Sort.json"],
    "QuickSort": ["Quick_Sort.json"],
    "HeapSort": ["Heap_Sort.json"],
    "RadixSort": ["Radix_Sort.json"],
    "CountingSort": ["Counting_Sort.json"],
    "TopologicalSort": ["Topological_Sort.json"],
    "DepthFirstSearch": ["Depth_First_Search__DFS_.json"],
    "BreadthFirstSearch": ["Breadth_First_Search__BFS_.json"],
    "DijkstraAlgorithm": ["Dijkstra_s_Algorithm.json"],
    "BellmanFordAlgorithm": ["Bellman_Ford_Algorithm.json"],
    "FloydWarshallAlgorithm": ["Floyd_Warshall_Algorithm.json"],
    "KruskalAlgorithm": ["Kruskal_s_Algorithm.json"],
    "PrimAlgorithm": ["Prim_s_Algorithm.json"],
    "HashTable": ["Hash_Table.json"],
    "HashMap": ["Hash_Map.json"],
    "PriorityQueue": ["Priority_Queue.json"],
    "UnionFind": ["Union_Find__Disjoint_Set_.json"],
    "DisjointSet": ["Union_Find__Disjoint_Set_.json"],
    "RedBlackTree": ["Red_Black_Tree.json"],
    "AdjacencyList": ["Adjacency_List.json"],
    "AdjacencyMatrix": ["Adjacency_Matrix.json"],
    "WeightedGraph": ["Weighted_Graph.json"],
    "DirectedGraph": ["Graph__Directed_Undirected_.json"],
    "UndirectedGraph": ["Graph__Directed_Undirected_.json"],
    "Graph": ["Graph__Directed_Undirected_.json"],
    "MinHeap": ["Heap__Min_Max_.json"],
    "MaxHeap": ["Heap__Min_Max_.json"],
    "Heap": ["Heap__Min_Max_.json"],
    "KNearestNeighbors": ["K_Nearest_Neighbors__KNN_.json"],
    "KNN": ["K_Nearest_Neighbors__KNN_.json"],
    "KMeansClustering": ["K_Means_Clustering.json"],
    "LinearRegression": ["Linear_Regression.json"],
    "LinearSearch": ["Linear_Search.json"],
    "TwoPointers": ["Two_Pointers.json"],
    "SlidingWindow": ["Sliding_Window.json"],
    "DivideAndConquer": ["Divide_and_Conquer.json"],
    "FibonacciSequence": ["Fibonacci_Sequence.json"],
    "HuffmanCoding": ["Huffman_Coding.json"],
    "KnapsackProblem": ["Knapsack_Problem.json"],
    "LongestCommonSubsequence": ["Longest_Common_Subsequence.json"],
}


class ConceptNotFoundError(ValueError):
    """The FSM document names no concept."""


class IdealFSMNotFoundError(LookupError):
    """No ideal FSM file matches the concept."""


def extract_concept(fsm_data: Any) -> str:
    """Concept named by an FSM document.

    Raises:
        ConceptNotFoundError: If the document is not an object or names no concept
    """
    if not isinstance(fsm_data, dict):
        raise ConceptNotFoundError(f"FSM must be a JSON object, got {type(fsm_data).__name__}")
    meta = fsm_data.get("meta")
    if not isinstance(meta, dict):
        meta = {}
    concept = (
        meta.get("concept")
        or fsm_data.get("concept")
        or meta.get("topic")
        or fsm_data.get("topic")
        or meta.get("educational_goal")
    )
    if not concept:
        raise ConceptNotFoundError("FSM has no concept field")
    return str(concept)


def load_concept_categories(path: Optional[Path]) -> Dict[str, str]:
    """Load ``{category: [concepts]}`` and invert it to ``{concept: category}``.

    A missing or unreadable file yields an empty mapping.
    """
    if path is None or not path.exists():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            categories = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Cannot load concept categories from %s: %s", path, e)
        return {}
    if not isinstance(categories, dict):
        logger.warning("Ignoring concept categories in %s: not a JSON object", path)
        return {}
    return {
        str(concept).lower(): category
        for category, concepts in categories.items()
        if isinstance(concepts, list)
        for concept in concepts
    }


def category_for_concept(concept: str, categories: Dict[str, str]) -> str:
    return categories.get(concept.lower().strip(), "Other")


def camel_to_snake(text: str) -> str:
    return re.sub(r"([a-z])([A-Z])", r"\1_\2", text)


def snake_to_camel(text: str) -> str:
    return re.sub(r"_([a-z])", lambda m: m.group(1).upper(), text)


def words_match(str1: str, str2: str) -> bool:
    """True when the strings share a word (longer than two characters),
    or one such word contains the other."""
    words1 = [w for w in re.split(r"[^a-z0-9]+", str1) if len(w) > 2]
    words2 = [w for w in re.split(r"[^a-z0-9]+", str2) if len(w) > 2]
    return any(w1 == w2 or w1 in w2 or w2 in w1 for w1 in words1 for w2 in words2)


def candidate_file_names(concept: str) -> List[str]:
    """Exact file names an ideal FSM for ``concept`` may have, most specific first."""
    concept = concept.strip()
    lower = concept.lower()
    stems = [
        concept,
        camel_to_snake(concept),
        camel_to_snake(concept).lower(),
        snake_to_camel(concept),
        snake_to_camel(lower),
    ]
    stems.extend(re.sub(r"\s+", sep, concept) for sep in ("_", "", "-"))
    stems.append(lower)
    stems.extend(re.sub(r"\s+", sep, lower) for sep in ("_", "", "-"))
    names = [f"{stem}.json" for stem in stems]
    names.extend(SPECIAL_MAPPINGS.get(concept, []))
    return list(dict.fromkeys(names))


def find_ideal_fsm_file(ideal_fsm_dir: Path, concept: str) -> Path:
    """Locate the ideal FSM file for a concept.

    Raises:
        IdealFSMNotFoundError: If neither exact nor fuzzy matching finds a file
    """
    available = sorted(p.name for p in ideal_fsm_dir.iterdir() if p.is_file())
    available_set = set(available)

    for name in candidate_file_names(concept):
        if name in available_set:
            logger.debug("Exact ideal FSM match: %s", name)
            return ideal_fsm_dir / name

    concept_lower = concept.strip().lower()
    concept_snake = camel_to_snake(concept.strip()).lower()
    concept_alnum = re.sub(r"[^a-z0-9]", "", concept_lower)

    for name in available:
        if not name.endswith(".json"):
            continue
        base = name[: -len(".json")].lower()
        if (
            base == concept_lower
            or base == concept_snake
            or concept_lower in base
            or base in concept_lower
            or concept_snake in base
            or base in concept_snake
            or re.sub(r"[^a-z0-9]", "", base) == concept_alnum
            or words_match(concept_lower, base)
        ):
            logger.debug("Fuzzy ideal FSM match: %s -> %s", concept, name)
            return ideal_fsm_dir / name

    raise IdealFSMNotFoundError(f"No ideal FSM file matches concept '{concept}'")


def _read_json(path: Path) -> Any:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def read_task_metadata(data_path: Path, concept: str, categories: Dict[str, str]) -> Tuple[str, str]:
    """Model and category of the task that generated an FSM.

    Both stay unknown unless the task's data file can be read.
    """
    model, category = "unknown", "Unknown"
    if not data_path.exists():
        return model, category
    try:
        data = _read_json(data_path)
    except (OSError, ValueError) as e:
        logger.warning("Cannot read data file %s: %s", data_path, e)
        return model, category
    if isinstance(data, dict):
        model = str(data.get("model") or "unknown")
    return model, category_for_concept(concept, categories)


def evaluate_fsm_file(
    task_id: str,
    fsm_path: Path,
    fsm_data: Dict[str, Any],
    ideal_path: Path,
    data_dir: Path,
    categories: Dict[str, str],
) -> Dict[str, Any]:
    """Compare one generated FSM with the ideal FSM found for its concept.

    Raises:
        ConceptNotFoundError, FSMComparisonError, OSError, ValueError
    """
    concept = extract_concept(fsm_data)
    model, category = read_task_metadata(data_dir / fsm_path.name, concept, categories)
    result = compare_fsms(fsm_data, _read_json(ideal_path))

    return {
        "taskId": task_id,
        "fsmFileName": fsm_path.name,
        "concept": concept,
        "model": model,
        "category": category,
        "idealFsmFileName": ideal_path.name,
        "matched": True,
        "success": True,
        "similarityResult": result,
        "summary": {
            "combined_similarity": result["combined_similarity"],
            "structural_similarity": result["structural_similarity"]["overall"],
            "semantic_similarity": result["semantic_similarity"]["overall"],
            "isomorphism_similarity": result["isomorphism_similarity"],
            "score": result["summary"]["score"],
            "interpretation": result["summary"]["interpretation"],
        },
    }


def similarity_distribution(scores: List[float]) -> Dict[str, int]:
    return {
        "excellent": sum(1 for s in scores if s >= 0.9),
        "good": sum(1 for s in scores if 0.7 <= s < 0.9),
        "fair": sum(1 for s in scores if 0.5 <= s < 0.7),
        "poor": sum(1 for s in scores if s < 0.5),
    }


def _ranking_entry(result: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "fsmFileName": result["fsmFileName"],
        "concept": result["concept"],
        "similarity": result["summary"]["score"],
        "interpretation": result["summary"]["interpretation"],
    }


def run_batch_eval(workspace: str | Path, categories_path: Optional[str | Path] = None) -> Dict[str, Any]:
    """Evaluate all generated FSMs of a workspace.

    Args:
        workspace: Workspace folder containing ``fsm/`` and ``ideal-fsm/``
        categories_path: Optional concept category JSON; defaults to
            ``<workspace>/concept-categories.json``

    Returns:
        The final report, also written to ``fsm-similarity-results.json``

    Raises:
        FileNotFoundError: If a required folder is missing or holds no FSM files
    """
    workspace = Path(workspace)
    fsm_dir = workspace / "fsm"
    ideal_fsm_dir = workspace / "ideal-fsm"
    data_dir = workspace / "data"
    output_file = workspace / RESULTS_FILE_NAME

    if not fsm_dir.is_dir():
        raise FileNotFoundError(f"FSM folder not found: {fsm_dir}")
    if not ideal_fsm_dir.is_dir():
        raise FileNotFoundError(f"Ideal FSM folder not found: {ideal_fsm_dir}")

    fsm_files = sorted(fsm_dir.glob("*.json"))
    if not fsm_files:
        raise FileNotFoundError(f"No JSON files in FSM folder: {fsm_dir}")

    categories = load_concept_categories(
        Path(categories_path) if categories_path else workspace / "concept-categories.json"
    )

    logger.info("Evaluating %d FSM files in %s", len(fsm_files), workspace)

    start = time.monotonic()
    stats = {
        "total": len(fsm_files),
        "completed": 0,
        "success": 0,
        "failed": 0,
        "matched": 0,
        "unmatched": 0,
    }
    results: List[Dict[str, Any]] = []

    for index, fsm_path in enumerate(fsm_files, start=1):
        task_id = f"Task-{index:03d}"
        try:
            fsm_data = _read_json(fsm_path)
            ideal_path = find_ideal_fsm_file(ideal_fsm_dir, extract_concept(fsm_data))
            stats["matched"] += 1
            result = evaluate_fsm_file(task_id, fsm_path, fsm_data, ideal_path, data_dir, categories)
            stats["success"] += 1
            results.append(result)
            logger.info(
                "[%s] %s -> %s: %d%%",
                task_id, fsm_path.name, result["idealFsmFileName"], result["summary"]["score"],
            )
        except IdealFSMNotFoundError as e:
            stats["unmatched"] += 1
            logger.warning("[%s] %s: %s", task_id, fsm_path.name, e)
            results.append(_failed_result(task_id, fsm_path, str(e), matched=False))
        except (ConceptNotFoundError, FSMComparisonError, OSError, ValueError) as e:
            stats["failed"] += 1
            logger.error("[%s] %s failed: %s", task_id, fsm_path.name, e)
            results.append(_failed_result(task_id, fsm_path, str(e), matched=True))
        finally:
            stats["completed"] += 1

    successful = [r for r in results if r["success"]]
    scores = [r["summary"]["combined_similarity"] for r in successful]
    ranked = sorted(successful, key=lambda r: r["summary"]["combined_similarity"], reverse=True)

    report = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "workspace": str(workspace),
        "type": "fsm-similarity-batch-evaluation",
        "stats": {
            **stats,
            "avgSimilarity": sum(scores) / len(scores) if scores else 0,
            "similarityDistribution": similarity_distribution(scores),
            "totalTime": round((time.monotonic() - start) * 1000),
        },
        "results": results,
        "summary": {
            "topSimilar": [_ranking_entry(r) for r in ranked[:5]],
            "bottomSimilar": [_ranking_entry(r) for r in list(reversed(ranked))[:5]],
        },
    }

    with output_file.open("w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, ensure_ascii=False)
    logger.info("Results saved to %s", output_file)

    return report


def _failed_result(task_id: str, fsm_path: Path, error: str, matched: bool) -> Dict[str, Any]:
    return {
        "taskId": task_id,
        "fsmFileName": fsm_path.name,
        "concept": None,
        "idealFsmFileName": None,
        "matched": matched,
        "success": False,
        "error": error,
        "similarityResult": None,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Compare generated FSMs with ideal FSMs for the same concept"
    )
    parser.add_argument("workspace", help="Workspace folder containing fsm/ and ideal-fsm/")
    parser.add_argument(
        "--categories",
        help="Concept category JSON (default: <workspace>/concept-categories.json)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    report = run_batch_eval(args.workspace, args.categories)

    stats = report["stats"]
    logger.info("Batch evaluation complete:")
    logger.info("  - Files: %d", stats["total"])
    logger.info("  - Matched: %d, unmatched: %d", stats["matched"], stats["unmatched"])
    logger.info("  - Succeeded: %d, failed: %d", stats["success"], stats["failed"])
    logger.info("  - Average similarity: %.1f%%", stats["avgSimilarity"] * 100)
    for band, count in stats["similarityDistribution"].items():
        logger.info("      %s: %d", band, count)


if __name__ == "__main__":
    main()
