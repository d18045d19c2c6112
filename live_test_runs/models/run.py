"""Models for test runs returned by the results API."""

import logging
import math
from collections.abc import Sequence
from datetime import datetime
from typing import Annotated, Any

from pydantic import BeforeValidator, Field, TypeAdapter, ValidationError

from live_test_runs.models.base import Model

log = logging.getLogger(__name__)

_datetime_adapter: TypeAdapter[datetime] = TypeAdapter(datetime)


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse a wire timestamp, degrading blank or malformed values to None."""
    if value is None or value == "":
        return None
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        log.warning("Ignoring malformed timestamp %r", value)
        return None


Timestamp = Annotated[datetime | None, BeforeValidator(_parse_timestamp)]


class TestEntry(Model):
    """A single test in the flat results shape."""

    __test__ = False

    suite: str | None = Field(default=None, description="Suite the test belongs to")
    title: str | None = Field(default=None, description="Test title")
    status: str = Field(default="unknown", description="Test outcome")
    browser: str | None = Field(default=None, description="Browser the test ran in")
    duration: float = Field(default=0, ge=0, description="Duration in ms")
    error: str | None = Field(default=None, description="Failure message")


class SuiteTest(Model):
    """A single test inside a grouped suite."""

    __test__ = False

    name: str = Field(default="", description="Test name")
    status: str = Field(default="unknown", description="Test outcome")
    browser: str | None = Field(default=None, description="Browser, if reported")
    duration: float | None = Field(
        default=None, ge=0, description="Duration in ms, if reported"
    )
    error: str | None = Field(default=None, description="Failure message")


class SuiteGroup(Model):
    """A suite with its own ordered tests (grouped results shape)."""

    suite: str = Field(default="", description="Suite name")
    tests: Sequence[SuiteTest] = Field(default_factory=tuple)


class RunResults(Model):
    """Aggregate counts plus the optional per-test payload of a run.

    A payload may carry the flat ``tests`` shape, the grouped ``details``
    shape, both, or neither.
    """

    passed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    blocked: int = Field(default=0, ge=0)
    tests: Sequence[TestEntry] | None = None
    details: Sequence[SuiteGroup] | None = None

    @property
    def total_executed(self) -> int:
        """Denominator for success-rate calculations."""
        return self.passed + self.failed

    @property
    def success_rate(self) -> int | None:
        """Percentage of passed tests rounded half up, None when nothing ran."""
        if self.total_executed == 0:
            return None
        return math.floor(self.passed / self.total_executed * 100 + 0.5)


class TestRunSummary(Model):
    """Lightweight run record shown in the list."""

    __test__ = False

    id: str = Field(..., alias="_id", description="Opaque run identifier")
    project: str = Field(default="", description="Project the run belongs to")
    status: str = Field(default="unknown", description="Run status")
    started_at: Timestamp = Field(default=None, alias="startedAt")
    finished_at: Timestamp = Field(default=None, alias="finishedAt")
    results: RunResults = Field(default_factory=RunResults)


class TestRunDetail(TestRunSummary):
    """Full per-test breakdown of one run, fetched on demand."""

    __test__ = False

    duration: float = Field(default=0, ge=0, description="Total duration in ms")


summary_list_adapter: TypeAdapter[list[TestRunSummary]] = TypeAdapter(
    list[TestRunSummary]
)
