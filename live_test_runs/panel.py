"""Controller tying together the list store, detail cache and announcer."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from live_test_runs.announcer import Announcer
from live_test_runs.config import PanelConfig
from live_test_runs.gateway.base import DataGateway
from live_test_runs.gateway.http import HttpGateway
from live_test_runs.stores.details import DetailCache
from live_test_runs.stores.summary import SummaryListStore

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class TestRunsPanel:
    """Headless controller for the live test-run results panel.

    The panel owns its stores; the announcer is injected so that a view (or a
    test) can subscribe to it before anything is announced.
    """

    __test__ = False

    gateway: DataGateway
    config: PanelConfig = field(default_factory=PanelConfig)
    announcer: Announcer | None = None

    summaries: SummaryListStore = field(init=False)
    details: DetailCache = field(init=False)
    mounted: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        if self.announcer is None:
            self.announcer = Announcer(clear_delay=self.config.announcement_delay)
        self.summaries = SummaryListStore(gateway=self.gateway, config=self.config)
        self.details = DetailCache(
            gateway=self.gateway, announcer=self.announcer, config=self.config
        )

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: PanelConfig, announcer: Announcer | None = None
    ) -> AsyncGenerator["TestRunsPanel", None]:
        """Create a mounted panel backed by an HTTP gateway."""
        async with HttpGateway.from_config(config) as gateway:
            panel = cls(gateway=gateway, config=config, announcer=announcer)
            await panel.mount()
            try:
                yield panel
            finally:
                panel.unmount()

    @property
    def error(self) -> str | None:
        """The user-visible error, list failures taking precedence."""
        return self.summaries.error or self.details.error

    async def mount(self) -> None:
        """Load the first page of runs."""
        self.mounted = True
        await self.reload()

    async def reload(self) -> None:
        """Refetch the list at the current limit."""
        self.details.clear_error()
        await self.summaries.load(self.summaries.limit)
        self.details.prune(self.summaries.run_ids)

    async def request_more(self) -> bool:
        """Ask for one more page of runs, if the list may hold more."""
        requested = await self.summaries.request_more()
        if requested:
            self.details.prune(self.summaries.run_ids)
        return requested

    async def toggle(self, run_id: str) -> None:
        """Expand or collapse a run from the loaded list."""
        run = self.summaries.find(run_id)
        if run is None:
            log.warning("Ignoring toggle for run %s which is not in the list", run_id)
            return
        await self.details.toggle(run_id, project=run.project)

    def unmount(self) -> None:
        """Discard outstanding work and silence the live region."""
        if not self.mounted:
            return
        self.mounted = False
        self.summaries.detach()
        self.details.detach()
        if self.announcer is not None:
            self.announcer.close()
