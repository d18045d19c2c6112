"""CLI entry point for browsing live test-run results."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from live_test_runs.announcer import Announcer
from live_test_runs.config import PanelConfig
from live_test_runs.panel import TestRunsPanel
from live_test_runs.presentation import (
    TONE_SYMBOLS,
    format_success_rate,
    render_panel,
    status_tone,
)


def log_runs_summary(log: logging.Logger, panel: TestRunsPanel) -> None:
    """Log a formatted summary of the loaded runs."""
    log.info("=" * 80)
    log.info("Test Runs Summary:")
    log.info("=" * 80)

    for run in panel.summaries.runs:
        tone = status_tone(run.status, run.results.passed, run.results.failed)
        log.info(
            "%s %s: %s (passed=%d, failed=%d, success rate %s)",
            TONE_SYMBOLS[tone],
            run.id,
            run.project,
            run.results.passed,
            run.results.failed,
            format_success_rate(run.results),
        )
        if (message := panel.details.run_error(run.id)) is not None:
            log.info("  Message: %s", message)


def parse_expand_ids(values: Sequence[str]) -> Sequence[str]:
    """Flatten repeated and comma-separated run IDs, dropping blanks."""
    ids: list[str] = []
    for value in values:
        ids.extend(s.strip() for s in value.split(",") if s.strip())
    return tuple(dict.fromkeys(ids))


def build_config(config_json: str | None, base_url: str | None) -> PanelConfig:
    """Build the panel configuration from CLI arguments."""
    config_dict: dict[str, Any] = json.loads(config_json) if config_json else {}
    if base_url:
        config_dict["api_base_url"] = base_url
    return PanelConfig(**config_dict)


async def run(
    config: PanelConfig,
    pages: int = 1,
    expand_ids: Sequence[str] = (),
) -> int:
    """Load runs, expand the requested ones and return exit code."""
    log = logging.getLogger("live_test_runs")

    announcer = Announcer(clear_delay=config.announcement_delay)
    announcer.subscribe(
        lambda text: log.info("Announcement: %s", text) if text else None
    )

    log.info("Loading test runs from %s", config.api_base_url)
    async with TestRunsPanel.from_config(config, announcer=announcer) as panel:
        for _ in range(pages - 1):
            if not await panel.request_more():
                break

        if expand_ids:
            log.info("Expanding %d run(s)...", len(expand_ids))
            await asyncio.gather(*(panel.toggle(run_id) for run_id in expand_ids))

        log_runs_summary(log, panel)
        print(render_panel(panel), file=sys.stderr)

        output = format_output(panel)
        print(json.dumps(output, indent=2))

        has_failures = panel.summaries.error is not None or any(
            panel.details.run_error(run_id) is not None for run_id in expand_ids
        )

    return 1 if has_failures else 0


def format_output(panel: TestRunsPanel) -> dict[str, Any]:
    """Format the panel state for JSON output."""
    runs = [
        run.model_dump(mode="json", by_alias=True, exclude_none=True)
        for run in panel.summaries.runs
    ]
    details = {
        run_id: detail.model_dump(mode="json", by_alias=True, exclude_none=True)
        for run_id, detail in panel.details.cached.items()
    }

    return {
        "total": len(runs),
        "limit": panel.summaries.limit,
        "passed": sum(run.results.passed for run in panel.summaries.runs),
        "failed": sum(run.results.failed for run in panel.summaries.runs),
        "error": panel.error,
        "runs": runs,
        "details": details,
    }


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Browse live test-run results")
    parser.add_argument(
        "--config",
        default=None,
        help="JSON configuration for the panel",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Base URL of the results API (overrides --config)",
    )
    parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Number of pages of runs to load",
    )
    parser.add_argument(
        "--expand",
        action="append",
        default=[],
        help="Run ID to expand (repeatable or comma-separated)",
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
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            config=build_config(args.config, args.base_url),
            pages=max(args.pages, 1),
            expand_ids=parse_expand_ids(args.expand),
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
