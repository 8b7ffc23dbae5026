#!/usr/bin/env python3
"""
Pass Rate Distribution Analysis

Reads the Playwright JSON reporter output of a workspace
(``<workspace>/test-results/results.json``), computes the pass rate of
every demo test file and describes how the pass rates are distributed.
The statistics are saved as JSON and rendered into a standalone HTML
report (stat cards, Chart.js histogram and CDF, bin and low pass rate
tables).

Usage:
    python -m fsm_capture.pass_rate workspace/baseline-html2test
"""

from __future__ import annotations

import argparse
import json
import logging
import math
from html import escape
from pathlib import Path
from string import Template
from typing import Any, Iterable

logger = logging.getLogger(__name__)

RESULTS_RELATIVE_PATH = Path("test-results") / "results.json"
ANALYSIS_FILE_NAME = "pass-rate-analysis.json"
REPORT_FILE_NAME = "pass-rate-analysis-report.html"
LOW_PASS_RATE = 0.5
BIN_SIZE = 0.1


def calculate_pass_rate(test_results: list[dict[str, Any]]) -> float:
    """Fraction of results whose status is "passed"; 0 for no results."""
    if not test_results:
        return 0.0
    passed = sum(1 for r in test_results if r.get("status") == "passed")
    return passed / len(test_results)


def extract_pass_rates(report: dict[str, Any]) -> list[dict[str, Any]]:
    """One entry per describe block of every spec file in the report.

    Playwright nests results as
    ``suites[file].suites[describe].specs[].tests[].results[]``.
    """
    details = []
    for suite in report.get("suites") or []:
        file_name = Path(suite.get("file") or suite.get("title") or "").name
        for sub_suite in suite.get("suites") or []:
            results = [
                result
                for spec in sub_suite.get("specs") or []
                for test in spec.get("tests") or []
                for result in test.get("results") or []
            ]
            if not results:
                continue
            details.append({
                "file_name": file_name,
                "topic": sub_suite.get("title", ""),
                "pass_rate": calculate_pass_rate(results),
                "passed": sum(1 for r in results if r.get("status") == "passed"),
                "total": len(results),
            })
    return details


def mean(values: list[float]) -> float:
    return sum(values) / len(values)


def standard_deviation(values: list[float]) -> float:
    """Population standard deviation."""
    avg = mean(values)
    return math.sqrt(mean([(v - avg) ** 2 for v in values]))


def normal_pdf(x: float, mu: float, sigma: float) -> float:
    if sigma == 0:
        return 0.0
    exponent = -((x - mu) ** 2) / (2 * sigma ** 2)
    return (1 / (sigma * math.sqrt(2 * math.pi))) * math.exp(exponent)


def score_bins(scores: list[float], bin_size: float = BIN_SIZE) -> dict[str, dict[str, Any]]:
    """Histogram of scores in [0, 1]; a score of exactly 1 lands in bin "1.0"."""
    bin_count = int(round(1 / bin_size))
    bins = {}
    for i in range(bin_count + 1):
        start = i * bin_size
        bins[f"{start:.1f}"] = {
            "range": f"{start * 100:.0f}-{(start + bin_size) * 100:.0f}%",
            "count": 0,
            "percentage": 0.0,
            "scores": [],
        }

    for score in scores:
        # round() absorbs float noise such as 0.3 / 0.1 == 2.9999999999999996
        index = min(int(math.floor(round(score / bin_size, 9))), bin_count)
        key = f"{index * bin_size:.1f}"
        bins[key]["count"] += 1
        bins[key]["scores"].append(score)

    total = len(scores)
    for entry in bins.values():
        entry["percentage"] = round(entry["count"] / total * 100, 2) if total else 0.0
    return bins


def chi_square(observed: Iterable[float], expected: Iterable[float]) -> float:
    return sum((o - e) ** 2 / e for o, e in zip(observed, expected) if e > 0)


def percentile(sorted_values: list[float], p: float) -> float:
    """Nearest-rank percentile of an ascending list."""
    index = math.ceil(p / 100 * len(sorted_values)) - 1
    return sorted_values[max(0, index)]


def describe_distribution(scores: list[float]) -> dict[str, Any]:
    """Summary statistics, histogram and normality indicators of the scores.

    Raises:
        ValueError: If ``scores`` is empty
    """
    if not scores:
        raise ValueError("No scores to describe")

    ordered = sorted(scores)
    n = len(scores)
    avg = mean(scores)
    std_dev = standard_deviation(scores)

    if std_dev > 0:
        m3 = sum((x - avg) ** 3 for x in scores) / n
        m4 = sum((x - avg) ** 4 for x in scores) / n
        skewness = m3 / std_dev ** 3
        kurtosis = m4 / std_dev ** 4 - 3
    else:
        skewness = 0.0
        kurtosis = 0.0

    bins = score_bins(scores)
    expected_normal = [
        normal_pdf(float(key) + BIN_SIZE / 2, avg, std_dev) * BIN_SIZE * n
        for key in bins
    ]
    chi = chi_square([b["count"] for b in bins.values()], expected_normal)

    cdf = {"labels": [], "values": []}
    for pct in range(0, 101, 5):
        threshold = pct / 100
        cdf["labels"].append(f"{pct}%")
        cdf["values"].append(sum(1 for s in ordered if s <= threshold) / n * 100)

    skewness_score = max(0.0, 1 - abs(skewness) / 2)
    kurtosis_score = max(0.0, 1 - abs(kurtosis) / 3)
    chi_square_score = max(0.0, 1 - chi / 30)

    return {
        "total": n,
        "mean": avg,
        "median": ordered[n // 2],
        "std_dev": std_dev,
        "min": ordered[0],
        "max": ordered[-1],
        "percentiles": {
            "p25": percentile(ordered, 25),
            "p50": ordered[n // 2],
            "p75": percentile(ordered, 75),
            "p90": percentile(ordered, 90),
        },
        "skewness": skewness,
        "kurtosis": kurtosis,
        "chi_square": chi,
        "normality_score": (skewness_score + kurtosis_score + chi_square_score) / 3,
        "bins": bins,
        "expected_normal": expected_normal,
        "cdf": cdf,
    }


def analyze_pass_rates(workspace: str | Path) -> dict[str, Any]:
    """Analyze the Playwright results of a workspace.

    Raises:
        FileNotFoundError: If the results file does not exist
        ValueError: If the report holds no suites or no results
    """
    results_path = Path(workspace) / RESULTS_RELATIVE_PATH
    if not results_path.exists():
        raise FileNotFoundError(f"Test results file not found: {results_path}")

    with results_path.open(encoding="utf-8") as f:
        report = json.load(f)

    if not report.get("suites"):
        raise ValueError(f"No test suite data found in {results_path}")

    details = extract_pass_rates(report)
    if not details:
        raise ValueError(f"No test results found in {results_path}")

    logger.info("Analyzing pass rate of %d test files", len(details))

    stats = describe_distribution([d["pass_rate"] for d in details])
    stats["low_pass_rate_tests"] = sorted(
        (d for d in details if d["pass_rate"] < LOW_PASS_RATE),
        key=lambda d: d["pass_rate"],
    )
    stats["tests"] = details
    return stats


REPORT_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Test Pass Rate Distribution Analysis</title>
    <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
    <style>
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            padding: 20px;
            min-height: 100vh;
        }
        .container { max-width: 1400px; margin: 0 auto; }
        h1 {
            color: white;
            text-align: center;
            margin-bottom: 30px;
            font-size: 2.5rem;
            text-shadow: 0 2px 4px rgba(0, 0, 0, 0.3);
        }
        .stats-grid {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(250px, 1fr));
            gap: 20px;
            margin-bottom: 30px;
        }
        .stat-card, .chart-container, .analysis-section {
            background: white;
            padding: 20px;
            border-radius: 15px;
            box-shadow: 0 8px 25px rgba(0, 0, 0, 0.1);
            margin-bottom: 30px;
        }
        .stat-label { color: #666; font-size: 0.9rem; margin-bottom: 8px; }
        .stat-value { color: #333; font-size: 2rem; font-weight: bold; }
        .chart-title, .analysis-title { font-size: 1.3rem; font-weight: 600; color: #333; margin-bottom: 20px; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 10px; text-align: left; border-bottom: 1px solid #eee; }
        th { background: #f5f5f5; color: #333; }
        .pass-rate-low { color: #f44336; font-weight: bold; }
        .percentile-info { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 15px; margin-top: 20px; }
        .percentile-card { background: #f8f9ff; padding: 15px; border-radius: 10px; text-align: center; }
        .percentile-label { color: #666; font-size: 0.85rem; }
        .percentile-value { color: #667eea; font-size: 1.5rem; font-weight: bold; }
        .conclusion {
            margin-top: 20px;
            padding: 20px;
            border-radius: 10px;
            background: #e8f5e9;
            border-left: 5px solid #4caf50;
        }
        .conclusion.warning { background: #fff8e1; border-left-color: #ff9800; }
        .conclusion.error { background: #ffebee; border-left-color: #f44336; }
    </style>
</head>
<body>
    <div class="container">
        <h1>Test Pass Rate Distribution Analysis</h1>
        <div class="stats-grid">
$stat_cards
        </div>
        <div class="chart-container">
            <div class="chart-title">Pass Rate Distribution vs Normal Distribution</div>
            <canvas id="histogramChart"></canvas>
        </div>
        <div class="chart-container">
            <div class="chart-title">Cumulative Distribution Function</div>
            <canvas id="cdfChart"></canvas>
        </div>
        <div class="analysis-section">
            <div class="analysis-title">Pass Rate Bins</div>
            <table>
                <thead>
                    <tr><th>Range</th><th>File Count</th><th>Percentage</th></tr>
                </thead>
                <tbody>
$bin_rows
                </tbody>
            </table>
        </div>
        <div class="analysis-section">
            <div class="analysis-title">Low Pass Rate Test Files (Pass Rate &lt; $low_threshold%)</div>
$low_pass_rate_table
        </div>
        <div class="analysis-section">
            <div class="analysis-title">Distribution Characteristics Analysis</div>
            <p><strong>Skewness:</strong> $skewness</p>
            <p style="margin-top: 10px;">$skewness_text</p>
            <p style="margin-top: 15px;"><strong>Kurtosis:</strong> $kurtosis</p>
            <p style="margin-top: 10px;">$kurtosis_text</p>
            <p style="margin-top: 15px;"><strong>Chi-square Test Statistic:</strong> $chi_square</p>
            <p style="margin-top: 10px;">$chi_square_text</p>
            <div class="percentile-info">
$percentile_cards
            </div>
            <div class="conclusion $conclusion_class">
                <strong>Normality Score: $normality_score</strong>
                <p style="margin-top: 10px;">$conclusion_text</p>
            </div>
        </div>
    </div>
    <script>
        new Chart(document.getElementById('histogramChart').getContext('2d'), {
            type: 'bar',
            data: {
                labels: $bin_labels,
                datasets: [{
                    label: 'Actual Distribution',
                    data: $bin_counts,
                    backgroundColor: 'rgba(102, 126, 234, 0.6)',
                    borderColor: 'rgba(102, 126, 234, 1)',
                    borderWidth: 2
                }, {
                    label: 'Theoretical Normal Distribution',
                    data: $expected_normal,
                    type: 'line',
                    borderColor: 'rgba(244, 67, 54, 0.8)',
                    backgroundColor: 'rgba(244, 67, 54, 0.1)',
                    borderWidth: 2,
                    fill: true,
                    tension: 0.4
                }]
            },
            options: {
                responsive: true,
                plugins: { legend: { display: true, position: 'top' }, tooltip: { mode: 'index', intersect: false } },
                scales: {
                    y: { beginAtZero: true, title: { display: true, text: 'File Count' } },
                    x: { title: { display: true, text: 'Pass Rate Range' } }
                }
            }
        });
        new Chart(document.getElementById('cdfChart').getContext('2d'), {
            type: 'line',
            data: {
                labels: $cdf_labels,
                datasets: [{
                    label: 'Cumulative Distribution',
                    data: $cdf_values,
                    borderColor: 'rgba(102, 126, 234, 1)',
                    backgroundColor: 'rgba(102, 126, 234, 0.1)',
                    borderWidth: 3,
                    fill: true,
                    tension: 0.4
                }]
            },
            options: {
                responsive: true,
                plugins: { legend: { display: true } },
                scales: {
                    y: { beginAtZero: true, max: 100, title: { display: true, text: 'Cumulative Percentage (%)' } },
                    x: { title: { display: true, text: 'Pass Rate' } }
                }
            }
        });
    </script>
</body>
</html>
""")


NORMALITY_ADVICE = {
    "": "test results are reliable.",
    "warning": "suggest further optimizing test cases.",
    "error": "suggest reviewing test design and implementation quality.",
}


def normality_conclusion(score: float) -> tuple[str, str]:
    """Severity class ("", "warning" or "error") and verdict for a normality score."""
    if score >= 0.8:
        return "", "Pass rate distribution basically follows normal distribution"
    if score >= 0.6:
        return "warning", "Pass rate distribution partially follows normal distribution"
    return "error", "Pass rate distribution deviates significantly from normal distribution"


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def _card(css_class: str, label: str, value: str) -> str:
    return (
        f'            <div class="{css_class}-card">\n'
        f'                <div class="{css_class}-label">{escape(label)}</div>\n'
        f'                <div class="{css_class}-value">{escape(value)}</div>\n'
        f"            </div>"
    )


def _low_pass_rate_table(tests: list[dict[str, Any]]) -> str:
    if not tests:
        return f"            <p>No test files with pass rate below {LOW_PASS_RATE * 100:.0f}%</p>"
    rows = "\n".join(
        "                    <tr>"
        f"<td>{escape(t['file_name'])}</td>"
        f"<td>{escape(t.get('topic') or 'N/A')}</td>"
        f'<td class="pass-rate-low">{_pct(t["pass_rate"])}</td>'
        f"<td>{t['passed']}/{t['total']}</td>"
        "</tr>"
        for t in tests
    )
    return (
        "            <table>\n"
        "                <thead>\n"
        "                    <tr><th>File Name</th><th>Topic</th><th>Pass Rate</th><th>Passed/Total</th></tr>\n"
        "                </thead>\n"
        "                <tbody>\n"
        f"{rows}\n"
        "                </tbody>\n"
        "            </table>"
    )


def render_html_report(stats: dict[str, Any]) -> str:
    """Standalone HTML page with stat cards, Chart.js charts and tables."""
    bins = stats["bins"]
    stat_cards = [
        ("Test Files", str(stats["total"])),
        ("Mean Pass Rate", _pct(stats["mean"])),
        ("Median", _pct(stats["median"])),
        ("Standard Deviation", _pct(stats["std_dev"])),
        ("Minimum", _pct(stats["min"])),
        ("Maximum", _pct(stats["max"])),
    ]
    percentile_cards = [
        ("25th Percentile", _pct(stats["percentiles"]["p25"])),
        ("50th Percentile (Median)", _pct(stats["percentiles"]["p50"])),
        ("75th Percentile", _pct(stats["percentiles"]["p75"])),
        ("90th Percentile", _pct(stats["percentiles"]["p90"])),
    ]

    skewness, kurtosis, chi = stats["skewness"], stats["kurtosis"], stats["chi_square"]
    if abs(skewness) < 0.5:
        skewness_text = "Close to symmetric distribution (characteristic of normal distribution)"
    elif skewness > 0:
        skewness_text = "Right-skewed distribution (more low pass rates, fewer high pass rates)"
    else:
        skewness_text = "Left-skewed distribution (more high pass rates, fewer low pass rates)"
    if abs(kurtosis) < 0.5:
        kurtosis_text = "Close to normal distribution kurtosis"
    elif kurtosis > 0:
        kurtosis_text = "Leptokurtic distribution (high concentration of pass rates)"
    else:
        kurtosis_text = "Platykurtic distribution (high dispersion of pass rates)"
    # 15.507 and 20.09: chi-square critical values for 8 degrees of freedom at p = 0.05 and 0.01
    if chi < 15.507:
        chi_square_text = "Passes normality test (p > 0.05)"
    elif chi < 20.09:
        chi_square_text = "Marginal pass (p ≈ 0.05)"
    else:
        chi_square_text = "Does not pass normality test (p < 0.05)"

    conclusion_class, conclusion_text = normality_conclusion(stats["normality_score"])

    return REPORT_TEMPLATE.substitute(
        stat_cards="\n".join(_card("stat", label, value) for label, value in stat_cards),
        bin_rows="\n".join(
            f"                    <tr><td>{escape(b['range'])}</td><td>{b['count']}</td><td>{b['percentage']}%</td></tr>"
            for b in bins.values()
        ),
        low_threshold=f"{LOW_PASS_RATE * 100:.0f}",
        low_pass_rate_table=_low_pass_rate_table(stats.get("low_pass_rate_tests", [])),
        skewness=f"{skewness:.3f}",
        skewness_text=skewness_text,
        kurtosis=f"{kurtosis:.3f}",
        kurtosis_text=kurtosis_text,
        chi_square=f"{chi:.3f}",
        chi_square_text=escape(chi_square_text),
        percentile_cards="\n".join(_card("percentile", label, value) for label, value in percentile_cards),
        conclusion_class=conclusion_class,
        normality_score=_pct(stats["normality_score"]),
        conclusion_text=f"{conclusion_text}, {NORMALITY_ADVICE[conclusion_class]}",
        bin_labels=json.dumps([b["range"] for b in bins.values()]),
        bin_counts=json.dumps([b["count"] for b in bins.values()]),
        expected_normal=json.dumps(stats["expected_normal"]),
        cdf_labels=json.dumps(stats["cdf"]["labels"]),
        cdf_values=json.dumps(stats["cdf"]["values"]),
    )


def write_html_report(stats: dict[str, Any], output_path: str | Path) -> Path:
    output_path = Path(output_path)
    with output_path.open("w", encoding="utf-8") as f:
        f.write(render_html_report(stats))
    return output_path


def main():
    parser = argparse.ArgumentParser(
        description="Analyze the pass rate distribution of Playwright demo tests"
    )
    parser.add_argument("workspace", help="Workspace folder containing test-results/results.json")
    parser.add_argument(
        "--output",
        help=f"Output JSON file (default: <workspace>/{ANALYSIS_FILE_NAME})",
    )
    parser.add_argument(
        "--report",
        help=f"Output HTML report (default: <workspace>/{REPORT_FILE_NAME})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    stats = analyze_pass_rates(args.workspace)

    output_path = Path(args.output) if args.output else Path(args.workspace) / ANALYSIS_FILE_NAME
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(stats, f, indent=2)

    logger.info("Basic statistics:")
    logger.info("  - Test files: %d", stats["total"])
    logger.info("  - Mean pass rate: %.2f%%", stats["mean"] * 100)
    logger.info("  - Median: %.2f%%", stats["median"] * 100)
    logger.info("  - Standard deviation: %.2f%%", stats["std_dev"] * 100)
    logger.info("  - Range: %.2f%% - %.2f%%", stats["min"] * 100, stats["max"] * 100)
    logger.info("Distribution:")
    logger.info("  - Skewness: %.3f, kurtosis: %.3f", stats["skewness"], stats["kurtosis"])
    logger.info("  - Chi-square: %.3f, normality score: %.1f%%",
                stats["chi_square"], stats["normality_score"] * 100)
    logger.info("  - Files below %d%%: %d", LOW_PASS_RATE * 100, len(stats["low_pass_rate_tests"]))
    logger.info("Analysis saved to %s", output_path)

    report_path = write_html_report(
        stats, args.report or Path(args.workspace) / REPORT_FILE_NAME
    )
    logger.info("Analysis report generated: %s", report_path)

    logger.info("Normality conclusion: %s", normality_conclusion(stats["normality_score"])[1])


if __name__ == "__main__":
    main()
