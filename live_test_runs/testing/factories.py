"""Test factories for generating test data."""

from polyfactory import Use
from polyfactory.factories.pydantic_factory import ModelFactory

from live_test_runs.models.run import RunResults, TestRunDetail, TestRunSummary


class RunResultsFactory(ModelFactory[RunResults]):
    """Factory for RunResults without per-test payloads."""

    tests = None
    details = None


class RunSummaryFactory(ModelFactory[TestRunSummary]):
    """Factory for TestRunSummary."""

    status = "passed"
    results = Use(RunResultsFactory.build)


class RunDetailFactory(ModelFactory[TestRunDetail]):
    """Factory for TestRunDetail."""

    status = "completed"
    results = Use(RunResultsFactory.build)
