"""Tests for the summary list store."""

import asyncio

import pytest

from live_test_runs.config import PanelConfig
from live_test_runs.errors import RequestError
from live_test_runs.stores.summary import SummaryListStore
from live_test_runs.testing import payloads
from live_test_runs.testing.gateways import FakeGateway


@pytest.fixture
def store(gateway: FakeGateway, config: PanelConfig) -> SummaryListStore:
    """Create store backed by the fake gateway."""
    return SummaryListStore(gateway=gateway, config=config)


def limits_requested(gateway: FakeGateway) -> list[int]:
    """Return the limit query parameter of every request made."""
    return [int(params["limit"]) for _, params in gateway.calls if params]


class TestLoad:
    """Tests for load."""

    async def test_loads_first_page(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Replaces the list with the response and clears both flags."""
        gateway.add(
            f"{config.summary_url}?limit=5",
            [
                {
                    "_id": "r1",
                    "project": "Alpha",
                    "status": "passed",
                    "results": {"passed": 10, "failed": 0},
                }
            ],
        )

        await store.load(5)

        assert len(store.runs) == 1
        assert store.runs[0].project == "Alpha"
        assert store.loading is False
        assert store.loading_more is False
        assert store.error is None
        assert gateway.calls == [(config.summary_url, {"limit": "5"})]

    async def test_defaults_to_current_limit(
        self, store: SummaryListStore, gateway: FakeGateway
    ) -> None:
        """Uses the store's limit when none is given."""
        gateway.add(store.config.summary_url, [])

        await store.load()

        assert limits_requested(gateway) == [5]

    async def test_first_page_sets_initial_loading_only(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Marks the initial load, not the trailing one, while in flight."""
        release = asyncio.Event()
        gateway.add(config.summary_url, release, payloads.summary_list(5))

        task = asyncio.create_task(store.load(5))
        await asyncio.sleep(0)

        assert store.loading is True
        assert store.loading_more is False

        release.set()
        await task

        assert store.loading is False
        assert store.loading_more is False

    async def test_later_page_sets_loading_more_only(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Marks the trailing load, not the initial one, while in flight."""
        release = asyncio.Event()
        gateway.add(config.summary_url, release, payloads.summary_list(10))

        task = asyncio.create_task(store.load(10))
        await asyncio.sleep(0)

        assert store.loading is False
        assert store.loading_more is True

        release.set()
        await task

        assert store.loading_more is False
        assert len(store.runs) == 10

    async def test_failure_sets_error(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Stores a prefixed message and clears the flags."""
        gateway.add(config.summary_url, RequestError("Internal Error", status=500))

        await store.load(5)

        assert store.error == "Failed to load test runs: Internal Error"
        assert store.loading is False
        assert store.loading_more is False

    async def test_failure_keeps_previous_list(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Leaves already loaded runs in place when a reload fails."""
        gateway.add(
            config.summary_url,
            payloads.summary_list(5),
            RequestError("Service Unavailable", status=503),
        )

        await store.load(5)
        await store.load(10)

        assert len(store.runs) == 5
        assert store.error == "Failed to load test runs: Service Unavailable"

    async def test_success_clears_previous_error(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """A later successful load removes the stored error."""
        gateway.add(
            config.summary_url, RequestError("boom"), payloads.summary_list(2)
        )

        await store.load(5)
        await store.load(5)

        assert store.error is None
        assert len(store.runs) == 2

    async def test_invalid_payload_is_an_error(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Treats payloads that are not summary lists as failures."""
        gateway.add(config.summary_url, {"unexpected": "object"})

        await store.load(5)

        assert store.runs == ()
        assert store.error is not None
        assert store.error.startswith("Failed to load test runs: ")

    async def test_last_response_wins_by_default(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Without the stale guard a slower, older response overwrites."""
        slow = asyncio.Event()
        gateway.add(f"{config.summary_url}?limit=5", slow, payloads.summary_list(5))
        gateway.add(f"{config.summary_url}?limit=10", payloads.summary_list(10))

        older = asyncio.create_task(store.load(5))
        await asyncio.sleep(0)
        await store.load(10)
        slow.set()
        await older

        assert len(store.runs) == 5

    async def test_discards_stale_responses_when_enabled(
        self, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """With the stale guard only the newest load is applied."""
        store = SummaryListStore(
            gateway=gateway,
            config=config.model_copy(update={"discard_stale_responses": True}),
        )
        slow = asyncio.Event()
        gateway.add(f"{config.summary_url}?limit=5", slow, payloads.summary_list(5))
        gateway.add(f"{config.summary_url}?limit=10", payloads.summary_list(10))

        older = asyncio.create_task(store.load(5))
        await asyncio.sleep(0)
        await store.load(10)
        slow.set()
        await older

        assert len(store.runs) == 10

    async def test_stale_completion_keeps_newest_spinner(
        self, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """A discarded load leaves the flags of the newest load alone."""
        store = SummaryListStore(
            gateway=gateway,
            config=config.model_copy(update={"discard_stale_responses": True}),
        )
        gate_10 = asyncio.Event()
        gate_15 = asyncio.Event()
        gateway.add(
            f"{config.summary_url}?limit=10", gate_10, payloads.summary_list(10)
        )
        gateway.add(
            f"{config.summary_url}?limit=15", gate_15, payloads.summary_list(15)
        )

        older = asyncio.create_task(store.load(10))
        newer = asyncio.create_task(store.load(15))
        await asyncio.sleep(0)

        gate_10.set()
        await older
        assert store.loading_more is True
        assert store.runs == ()

        gate_15.set()
        await newer
        assert store.loading_more is False
        assert len(store.runs) == 15

    async def test_blank_timestamp_does_not_reject_list(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """One run with an empty finishedAt still loads with the others."""
        gateway.add(
            config.summary_url,
            [
                payloads.run_summary(run_id="r1"),
                payloads.run_summary(run_id="r2", finished_at=""),
            ],
        )

        await store.load(5)

        assert store.error is None
        assert [run.id for run in store.runs] == ["r1", "r2"]
        assert store.runs[1].finished_at is None

    async def test_ignores_results_after_detach(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Outstanding loads do not touch a detached store."""
        release = asyncio.Event()
        gateway.add(config.summary_url, release, payloads.summary_list(5))

        task = asyncio.create_task(store.load(5))
        await asyncio.sleep(0)
        store.detach()
        release.set()
        await task

        assert store.runs == ()


class TestRequestMore:
    """Tests for request_more."""

    async def test_grows_in_page_steps_up_to_cap(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Requests 5, 10, ... 30 and never more."""
        gateway.add(config.summary_url, payloads.summary_list(30))
        await store.load()

        issued = [await store.request_more() for _ in range(8)]

        assert limits_requested(gateway) == [5, 10, 15, 20, 25, 30]
        assert issued == [True] * 5 + [False] * 3
        assert store.limit == 30

    async def test_from_25_to_30_then_stays(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Caps the final step at the maximum and stops there."""
        gateway.add(config.summary_url, payloads.summary_list(30))
        store.limit = 25
        await store.load(25)

        assert await store.request_more() is True
        assert store.limit == 30

        assert await store.request_more() is False
        assert store.limit == 30

    async def test_cap_that_is_not_a_page_multiple(
        self, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Clamps the last step when the cap is not a multiple of a page."""
        store = SummaryListStore(
            gateway=gateway, config=config.model_copy(update={"max_limit": 12})
        )
        gateway.add(config.summary_url, payloads.summary_list(12))
        await store.load()

        while await store.request_more():
            pass

        assert limits_requested(gateway) == [5, 10, 12]

    async def test_noop_when_server_returned_fewer_than_limit(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Does not ask again when the last page was short."""
        gateway.add(config.summary_url, payloads.summary_list(3))
        await store.load()

        assert store.can_request_more is False
        assert await store.request_more() is False
        assert store.limit == 5
        assert len(gateway.calls) == 1

    async def test_limit_never_decreases(
        self, store: SummaryListStore, gateway: FakeGateway, config: PanelConfig
    ) -> None:
        """Keeps the raised limit even if the reload fails."""
        gateway.add(
            config.summary_url, payloads.summary_list(5), RequestError("boom")
        )
        await store.load()

        await store.request_more()

        assert store.limit == 10
        assert store.error == "Failed to load test runs: boom"
