"""Universal FSM capture for standalone HTML demo pages.

For every demo page this tool:
1. Extracts the FSM the page embeds (or falls back to auto-discovery)
2. Discovers visible buttons, inputs and other interactive elements
3. Maps FSM events onto those elements with confidence scores
4. Replays the mapped interactions (single actions, input data sets and
   pairwise button combinations), taking a screenshot of each state
5. Writes a JSON report next to the screenshots

Usage:
    python -m fsm_capture.capture --html-dir html --visuals-dir visuals
    TARGET_HTML_FILE=bubble-sort.html python -m fsm_capture.capture
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Dialog, Page, async_playwright

from fsm_capture.discovery import (
    DiscoveredElements,
    FSMConfig,
    discover_interactive_elements,
    extract_fsm_from_page,
)
from fsm_capture.interaction_map import InteractionMap, load_interaction_map
from fsm_capture.mapping import (
    EventMapping,
    build_fallback_mappings,
    map_fsm_events_to_elements,
)
from fsm_capture.page_monitor import PageMonitor

logger = logging.getLogger(__name__)

REPORT_FILE_NAME = "universal_test_report.json"

MIN_REPLAY_CONFIDENCE = 0.6
MIN_COMBINATION_CONFIDENCE = 0.7
MAX_COMBINATION_BUTTONS = 5
VALUES_PER_DATA_SET = 3
REPLAYED_DATA_SETS = (("numbers", "numbers"), ("strings", "strings"), ("invalid_inputs", "invalid"))


class UniversalFSMCapture:
    """Replays FSM events against demo pages and captures each state.

    Args:
        html_folder: Folder holding the demo ``*.html`` files
        visuals_folder: Output root; one sub-folder per demo page
        interaction_map: Keyword/selector tables (packaged default if None)
        headless: Run browser in headless mode
        timeout: Default page timeout in milliseconds
        navigation_timeout: Timeout for loading a demo page in milliseconds
        action_timeout: Timeout for a single click/fill in milliseconds
        screenshot_timeout: Timeout for a screenshot in milliseconds
        settle_ms: Wait after page load before discovery, in milliseconds
    """

    def __init__(
        self,
        html_folder: str | Path,
        visuals_folder: str | Path,
        interaction_map: Optional[InteractionMap] = None,
        headless: bool = True,
        timeout: int = 20000,
        navigation_timeout: int = 15000,
        action_timeout: int = 5000,
        screenshot_timeout: int = 10000,
        settle_ms: int = 2000,
    ):
        self.html_folder = Path(html_folder)
        self.visuals_folder = Path(visuals_folder)
        self.interaction_map = interaction_map or load_interaction_map()
        self.headless = headless
        self.timeout = timeout
        self.navigation_timeout = navigation_timeout
        self.action_timeout = action_timeout
        self.screenshot_timeout = screenshot_timeout
        self.settle_ms = settle_ms

    def html_file_url(self, html_file_name: str) -> str:
        """file:/// URL of a demo page, with forward slashes on every platform."""
        html_path = (self.html_folder / html_file_name).resolve()
        return "file:///" + str(html_path).replace("\\", "/").lstrip("/")

    def list_html_files(self) -> list[str]:
        try:
            return sorted(p.name for p in self.html_folder.iterdir() if p.suffix == ".html")
        except OSError as e:
            logger.error("Cannot read HTML folder %s: %s", self.html_folder, e)
            return []

    @staticmethod
    async def wait_for_stable(page: Page, timeout: int = 1000) -> None:
        await page.wait_for_timeout(timeout)

    async def capture_state_screenshot(
        self,
        page: Page,
        state_name: str,
        screenshot_folder: Path,
        state_index: int,
        description: str = "",
    ) -> Optional[Path]:
        """Save a full-page PNG named ``NN_<state>[_<description>].png``.

        Returns:
            Path of the screenshot, or None when it could not be taken
        """
        prefix = f"{state_index:02d}_{state_name}"
        filename = f"{prefix}_{description}.png" if description else f"{prefix}.png"
        screenshot_path = Path(screenshot_folder) / filename

        try:
            await page.screenshot(
                path=str(screenshot_path),
                full_page=True,
                type="png",
                timeout=self.screenshot_timeout,
            )
            logger.info("Screenshot: %s", filename)
            return screenshot_path
        except Exception as e:
            logger.error("Screenshot failed for %s: %s", filename, e)
            return None

    async def execute_interaction(
        self,
        page: Page,
        mapping: EventMapping,
        test_value: Any = None,
    ) -> bool:
        """Perform one mapped interaction.

        Input and select actions are skipped (but still count as executed)
        when no ``test_value`` is given.

        Returns:
            True if the interaction ran without error
        """
        logger.debug("Executing %s on %s", mapping.action, mapping.selector)
        try:
            if mapping.action == "click":
                await page.click(mapping.selector, timeout=self.action_timeout)
            elif mapping.action == "input":
                if test_value is not None:
                    await page.fill(mapping.selector, str(test_value), timeout=self.action_timeout)
            elif mapping.action == "select":
                if test_value is not None:
                    await page.select_option(mapping.selector, str(test_value), timeout=self.action_timeout)
            else:
                logger.warning("Unknown action type: %s", mapping.action)

            await self.wait_for_stable(page, 500)
            return True
        except Exception as e:
            logger.error("Interaction %s on %s failed: %s", mapping.action, mapping.selector, e)
            return False

    async def simulate(
        self,
        page: Page,
        fsm: FSMConfig,
        mappings: list[EventMapping],
        screenshot_folder: Path,
    ) -> int:
        """Replay mapped interactions and screenshot every resulting state.

        Args:
            page: Playwright Page object, already on the demo
            fsm: FSM declared by the page (or the fallback)
            mappings: Candidate interactions, highest confidence first
            screenshot_folder: Where screenshots are written

        Returns:
            Final state index, i.e. the number of captured states
        """
        state_index = 0
        executed_states: set[str] = set()

        logger.info("Simulating FSM '%s' with %d event mappings", fsm.topic, len(mappings))

        async def on_dialog(dialog: Dialog) -> None:
            nonlocal state_index
            logger.info("Dialog: %s", dialog.message)
            await self.wait_for_stable(page, 200)
            state_index += 1
            await self.capture_state_screenshot(page, "alert_active", screenshot_folder, state_index, "dialog")
            await dialog.accept()

        page.on("dialog", on_dialog)
        try:
            # Initial state
            state_index += 1
            logger.info("State %d: initial", state_index)
            await self.capture_state_screenshot(page, "initial", screenshot_folder, state_index)

            # Single interactions
            for mapping in mappings:
                if mapping.confidence < MIN_REPLAY_CONFIDENCE:
                    continue
                if mapping.state_name in executed_states:
                    continue
                executed_states.add(mapping.state_name)

                state_index += 1
                logger.info("State %d: %s (confidence %.2f)", state_index, mapping.event, mapping.confidence)

                if mapping.action in ("input", "select"):
                    for data_label, values in await self.replay_values(page, mapping):
                        for i, test_value in enumerate(values):
                            logger.debug("Trying %s value %r", data_label, test_value)
                            if await self.execute_interaction(page, mapping, test_value):
                                state_index += 1
                                await self.capture_state_screenshot(
                                    page,
                                    mapping.event.lower(),
                                    screenshot_folder,
                                    state_index,
                                    f"{data_label}_{i}",
                                )
                elif await self.execute_interaction(page, mapping):
                    await self.capture_state_screenshot(page, mapping.event.lower(), screenshot_folder, state_index)

                await self.wait_for_stable(page, 800)

            # Pairwise button combinations
            button_mappings = [
                m for m in mappings if m.action == "click" and m.confidence > MIN_COMBINATION_CONFIDENCE
            ]
            limit = min(MAX_COMBINATION_BUTTONS, len(button_mappings))
            for i in range(limit):
                for j in range(i + 1, limit):
                    first, second = button_mappings[i], button_mappings[j]
                    state_index += 1
                    logger.info("State %d: combination %s + %s", state_index, first.event, second.event)

                    await self.execute_interaction(page, first)
                    await self.wait_for_stable(page, 300)
                    await self.execute_interaction(page, second)

                    await self.capture_state_screenshot(
                        page,
                        "combination",
                        screenshot_folder,
                        state_index,
                        f"{first.event}_{second.event}".lower(),
                    )

            # Final state
            state_index += 1
            logger.info("State %d: final", state_index)
            await self.capture_state_screenshot(page, "final", screenshot_folder, state_index)
        finally:
            page.remove_listener("dialog", on_dialog)

        return state_index

    async def replay_values(self, page: Page, mapping: EventMapping) -> list[tuple[str, list[Any]]]:
        """Labelled value lists replayed into an input or select mapping.

        Inputs get the first values of each test data set. Selects get the
        values of their own ``<option>`` elements, since any other value
        would only wait out the action timeout.
        """
        if mapping.action == "select":
            options = await self.select_option_values(page, mapping.selector)
            return [("option", options[:VALUES_PER_DATA_SET])]
        return [
            (data_label, list(self.interaction_map.test_data.get(data_key, [])[:VALUES_PER_DATA_SET]))
            for data_key, data_label in REPLAYED_DATA_SETS
        ]

    @staticmethod
    async def select_option_values(page: Page, selector: str) -> list[str]:
        """Values of the options of the select at ``selector``; [] when unreadable."""
        try:
            values = await page.eval_on_selector(
                selector, "el => Array.from(el.options || []).map(o => o.value)"
            )
        except Exception as e:
            logger.warning("Cannot read options of %s: %s", selector, e)
            return []
        return [str(v) for v in values or []]

    async def run_for_file(self, page: Page, html_file_name: str) -> dict[str, Any]:
        """Run the whole capture flow for one demo page.

        Returns:
            The report dictionary that was written to disk
        """
        file_base_name = Path(html_file_name).stem
        logger.info("Starting universal FSM capture: %s", html_file_name)

        page.set_default_timeout(self.timeout)
        page.set_default_navigation_timeout(self.timeout)

        screenshot_folder = self.visuals_folder / file_base_name
        screenshot_folder.mkdir(parents=True, exist_ok=True)

        # Dialogs raised while loading or before replay are dismissed here;
        # simulate() takes them over for screenshots.
        monitor = PageMonitor(dialog_action="dismiss").attach(page)
        try:
            report = await self._capture(page, html_file_name, screenshot_folder, monitor)
        finally:
            monitor.detach(page)

        report_path = screenshot_folder / REPORT_FILE_NAME
        with report_path.open("w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        logger.info("Capture complete: %d states, report %s", report["total_screenshots"], report_path)
        return report

    async def _capture(
        self,
        page: Page,
        html_file_name: str,
        screenshot_folder: Path,
        monitor: PageMonitor,
    ) -> dict[str, Any]:
        html_url = self.html_file_url(html_file_name)
        logger.info("Navigating to %s", html_url)
        await page.goto(html_url, wait_until="domcontentloaded", timeout=self.navigation_timeout)
        await self.wait_for_stable(page, self.settle_ms)

        fsm_data = await extract_fsm_from_page(page)
        if fsm_data is None:
            logger.warning("No FSM found in page, running interaction discovery only")
            fsm = FSMConfig.fallback()
        else:
            fsm = FSMConfig.from_dict(fsm_data)
            logger.info(
                "FSM found: topic=%s, states=%d, events=%d",
                fsm.topic, len(fsm.states), len(fsm.events),
            )

        elements = await discover_interactive_elements(page, self.interaction_map)
        counts = elements.counts()
        logger.info(
            "Discovered %d buttons, %d inputs, %d other interactive elements",
            counts["buttons"], counts["inputs"], counts["interactive"],
        )

        mappings = map_fsm_events_to_elements(fsm.events, elements, self.interaction_map)
        if not mappings:
            logger.warning("No event mappings found, exercising every discovered control")
            mappings = build_fallback_mappings(elements)
        logger.info("Generated %d interaction mappings", len(mappings))

        # simulate() registers its dialog handler before its first await
        monitor.set_dialog_action(None)
        total_screenshots = await self.simulate(page, fsm, mappings, screenshot_folder)

        return self.build_report(
            html_file_name, fsm, elements, mappings, total_screenshots, screenshot_folder, monitor
        )

    @staticmethod
    def build_report(
        html_file_name: str,
        fsm: FSMConfig,
        elements: DiscoveredElements,
        mappings: list[EventMapping],
        total_screenshots: int,
        screenshot_folder: Path,
        monitor: Optional[PageMonitor] = None,
    ) -> dict[str, Any]:
        report = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "html_file": html_file_name,
            "fsm_config": fsm.to_dict(),
            "discovered_elements": elements.to_dict(),
            "event_mappings": [m.to_dict() for m in mappings],
            "total_screenshots": total_screenshots,
            "screenshot_folder": str(screenshot_folder),
        }
        if monitor is not None:
            report["page_monitor"] = monitor.summary()
        return report

    async def run(self, target: Optional[str] = None, limit: int = 3) -> list[dict[str, Any]]:
        """Capture one demo page, or the first ``limit`` pages of the folder.

        Args:
            target: Demo file name; defaults to $TARGET_HTML_FILE
            limit: Number of pages captured when no target is given

        Returns:
            One report per successfully captured page
        """
        target = target or os.environ.get("TARGET_HTML_FILE")
        self.visuals_folder.mkdir(parents=True, exist_ok=True)

        if target:
            html_files = [target]
        else:
            html_files = self.list_html_files()
            logger.info("Found %d HTML files", len(html_files))
            html_files = html_files[:limit]

        reports: list[dict[str, Any]] = []
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            page = await browser.new_page()
            try:
                for html_file in html_files:
                    try:
                        reports.append(await self.run_for_file(page, html_file))
                    except Exception as e:
                        if target:
                            raise
                        logger.error("Capture of %s failed: %s", html_file, e)
            finally:
                await browser.close()

        return reports


def main():
    """Command-line interface for the universal FSM capture tool."""
    parser = argparse.ArgumentParser(
        description="Replay FSM events against HTML demo pages and capture each state"
    )
    parser.add_argument(
        "--html-dir",
        default=os.environ.get("FSM_CAPTURE_HTML_DIR", "html"),
        help="Folder containing the demo HTML files (default: $FSM_CAPTURE_HTML_DIR or ./html)",
    )
    parser.add_argument(
        "--visuals-dir",
        default=os.environ.get("FSM_CAPTURE_VISUALS_DIR", "visuals"),
        help="Output folder for screenshots and reports (default: $FSM_CAPTURE_VISUALS_DIR or ./visuals)",
    )
    parser.add_argument(
        "--target",
        help="Single HTML file to capture (default: $TARGET_HTML_FILE)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=3,
        help="Number of HTML files captured when no target is given (default: 3)",
    )
    parser.add_argument(
        "--interaction-map",
        help="YAML file overriding the default interaction vocabulary",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        default=True,
        help="Run browser in headless mode (default: True)",
    )
    parser.add_argument(
        "--no-headless",
        action="store_false",
        dest="headless",
        help="Run browser with GUI",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=20000,
        help="Default page timeout in milliseconds (default: 20000)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    tool = UniversalFSMCapture(
        html_folder=args.html_dir,
        visuals_folder=args.visuals_dir,
        interaction_map=load_interaction_map(args.interaction_map),
        headless=args.headless,
        timeout=args.timeout,
    )

    reports = asyncio.run(tool.run(target=args.target, limit=args.limit))

    logger.info("Captured %d demo page(s)", len(reports))
    for report in reports:
        logger.info(
            "  - %s: %d states, %d mappings",
            report["html_file"], report["total_screenshots"], len(report["event_mappings"]),
        )


if __name__ == "__main__":
    main()
