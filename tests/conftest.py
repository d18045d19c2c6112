"""Shared fixtures."""

from collections.abc import Generator

import pytest
from aioresponses import aioresponses as aioresponses_cls

from live_test_runs.announcer import Announcer
from live_test_runs.config import PanelConfig
from live_test_runs.testing.gateways import FakeGateway

API_BASE_URL = "http://results.test/api"


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls, None, None]:
    """Intercept every aiohttp request made during the test."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def config() -> PanelConfig:
    """Panel configuration pointing at a test API."""
    return PanelConfig(api_base_url=API_BASE_URL, announcement_delay=0.05)


@pytest.fixture
def gateway() -> FakeGateway:
    """In-memory gateway with no queued responses."""
    return FakeGateway()


@pytest.fixture
def announcer(config: PanelConfig) -> Generator[Announcer, None, None]:
    """Announcer with a short clear delay, closed after the test."""
    live_region = Announcer(clear_delay=config.announcement_delay)
    yield live_region
    live_region.close()
