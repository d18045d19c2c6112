"""Formatting helpers and a plain-text view of the panel."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Literal

from live_test_runs.models.run import RunResults, TestRunSummary

if TYPE_CHECKING:
    from live_test_runs.panel import TestRunsPanel

type StatusTone = Literal["success", "mixed", "failure", "neutral"]

TONE_SYMBOLS: dict[StatusTone, str] = {
    "success": "✅",
    "mixed": "⚠️",
    "failure": "❌",
    "neutral": "⚪",
}

DEFAULT_BROWSER = "chromium"

FINISHED_STATUSES = frozenset({"completed", "passed"})


@dataclass(frozen=True, kw_only=True)
class TestRow:
    """One test, in a shape shared by the flat and grouped result payloads."""

    __test__ = False

    suite: str
    name: str
    status: str
    browser: str
    duration: float | None
    error: str | None = None


def status_tone(status: str, passed: int, failed: int) -> StatusTone:
    """Classify a run for colouring.

    Only finished runs (``completed`` or ``passed``) get a coloured tone;
    anything else, including finished runs with no counted tests, is neutral.
    """
    if status in FINISHED_STATUSES:
        if failed == 0 and passed > 0:
            return "success"
        if failed > 0 and passed > 0:
            return "mixed"
        if failed > 0 and passed == 0:
            return "failure"
    return "neutral"


def format_duration(milliseconds: float | None) -> str:
    """Format a millisecond duration as seconds with two decimals."""
    if milliseconds is None:
        return "N/A"
    return f"{milliseconds / 1000:.2f}s"


def format_timestamp(value: datetime | None) -> str:
    """Format a timestamp like ``Jan 02, 2025, 03:04:05 PM UTC``."""
    if value is None:
        return "N/A"
    formatted = value.strftime("%b %d, %Y, %I:%M:%S %p")
    zone = value.tzname()
    return f"{formatted} {zone}" if zone else formatted


def format_success_rate(results: RunResults) -> str:
    rate = results.success_rate
    return "N/A" if rate is None else f"{rate}%"


def browser_icon(browser: str | None) -> str:
    return "🌐" if (browser or DEFAULT_BROWSER) == DEFAULT_BROWSER else "📱"


def iter_test_rows(results: RunResults) -> Iterator[TestRow]:
    """Yield flat entries first, then every test of every grouped suite."""
    for entry in results.tests or ():
        yield TestRow(
            suite=entry.suite or "",
            name=entry.title or "",
            status=entry.status,
            browser=entry.browser or DEFAULT_BROWSER,
            duration=entry.duration,
            error=entry.error,
        )
    for group in results.details or ():
        for test in group.tests:
            yield TestRow(
                suite=group.suite,
                name=test.name,
                status=test.status,
                browser=test.browser or DEFAULT_BROWSER,
                duration=test.duration or None,
                error=test.error,
            )


def render_run_header(run: TestRunSummary, *, expanded: bool) -> str:
    chevron = "▼" if expanded else "▶"
    tone = status_tone(run.status, run.results.passed, run.results.failed)
    symbol = TONE_SYMBOLS[tone]
    return (
        f"{chevron} {symbol} {run.project} "
        f"[passed {run.results.passed}, failed {run.results.failed}] "
        f"{format_timestamp(run.started_at)}"
    )


def render_panel(panel: "TestRunsPanel") -> str:
    """Render the panel's current state as plain text."""
    lines: list[str] = ["Live Test Automation"]
    summaries = panel.summaries

    if summaries.loading:
        lines.append("Loading test runs...")
        return "\n".join(lines)

    if summaries.error:
        lines.append(summaries.error)
        return "\n".join(lines)

    if panel.details.error:
        lines.append(panel.details.error)

    for run in summaries.runs:
        expanded = panel.details.is_expanded(run.id)
        lines.append(render_run_header(run, expanded=expanded))
        detail = panel.details.detail(run.id)
        if detail is not None:
            lines.extend(_render_detail_lines(detail.duration, detail.results))
        elif expanded:
            lines.append("    Loading details...")

    if summaries.loading_more:
        lines.append("Loading more test runs...")

    return "\n".join(lines)


def _render_detail_lines(duration: float, results: RunResults) -> Sequence[str]:
    lines = [
        f"    Duration: {format_duration(duration)}",
        f"    Success Rate: {format_success_rate(results)}",
        f"    Passed: {results.passed}  Failed: {results.failed}  "
        f"Skipped: {results.skipped}  Blocked: {results.blocked}",
    ]
    for row in iter_test_rows(results):
        lines.append(
            f"      [{row.status}] {row.suite} > {row.name} "
            f"({browser_icon(row.browser)} {row.browser}, "
            f"{format_duration(row.duration)})"
        )
        if row.error:
            lines.append(f"        {row.error}")
    return lines
