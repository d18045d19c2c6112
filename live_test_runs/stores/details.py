"""Lazily populated cache of run details with per-run load state."""

import enum
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pydantic import ValidationError

from live_test_runs.announcer import Announcer
from live_test_runs.config import PanelConfig
from live_test_runs.errors import RequestError
from live_test_runs.gateway.base import DataGateway
from live_test_runs.models.run import TestRunDetail

log = logging.getLogger(__name__)

DETAIL_ERROR_MESSAGE = "Failed to load test run details. Please try again."


class RunState(enum.Enum):
    """Load state of a single run's detail."""

    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True, kw_only=True)
class RunSlot:
    """Snapshot of one run's detail state.

    A slot is replaced, never mutated, on every transition, so a run is in
    exactly one state at any instant.
    """

    state: RunState
    detail: TestRunDetail | None = None
    error: str | None = None


IDLE_SLOT = RunSlot(state=RunState.IDLE)


@dataclass(kw_only=True)
class DetailCache:
    """Toggle-driven cache of run details.

    Toggling a loaded run collapses it, toggling a run that is loading does
    nothing, and toggling any other run fetches its detail. Each run id has
    its own slot; there is no lock shared between ids.
    """

    gateway: DataGateway
    announcer: Announcer
    config: PanelConfig = field(default_factory=PanelConfig)

    error: str | None = field(default=None, init=False)

    _slots: dict[str, RunSlot] = field(default_factory=dict, init=False, repr=False)
    _attached: bool = field(default=True, init=False, repr=False)

    @property
    def cached(self) -> Mapping[str, TestRunDetail]:
        """Read-only view of loaded details by run id."""
        return MappingProxyType(
            {
                run_id: slot.detail
                for run_id, slot in self._slots.items()
                if slot.state is RunState.LOADED and slot.detail is not None
            }
        )

    @property
    def in_flight(self) -> frozenset[str]:
        """Run ids with an outstanding detail request."""
        return frozenset(
            run_id
            for run_id, slot in self._slots.items()
            if slot.state is RunState.LOADING
        )

    def state(self, run_id: str) -> RunState:
        return self._slots.get(run_id, IDLE_SLOT).state

    def detail(self, run_id: str) -> TestRunDetail | None:
        return self._slots.get(run_id, IDLE_SLOT).detail

    def run_error(self, run_id: str) -> str | None:
        return self._slots.get(run_id, IDLE_SLOT).error

    def is_expanded(self, run_id: str) -> bool:
        """Whether the run's detail area is open (loading or loaded)."""
        return self.state(run_id) in {RunState.LOADING, RunState.LOADED}

    def clear_error(self) -> None:
        self.error = None

    async def toggle(self, run_id: str, project: str | None = None) -> None:
        """Collapse a loaded run or fetch the detail of a collapsed one.

        Args:
            run_id: Identifier of the run
            project: Project name used in announcements (defaults to the id)

        """
        label = project or run_id

        if self.collapse(run_id, project=label):
            return

        if self.state(run_id) is RunState.LOADING:
            log.debug("Details for run %s already loading", run_id)
            return

        pending = RunSlot(state=RunState.LOADING)
        self._slots[run_id] = pending
        log.info("Loading details for run %s", run_id)
        self.announcer.announce(f"Loading details for {label}")

        try:
            data = await self.gateway.fetch_json(self.config.detail_url(run_id))
            if isinstance(data, dict):
                data = {**data, "_id": run_id}
            detail = TestRunDetail.model_validate(data)
        except (RequestError, ValidationError) as e:
            if not self._is_current(run_id, pending):
                return
            log.error("Failed to load details for run %s: %s", run_id, e)
            self._slots[run_id] = RunSlot(
                state=RunState.ERROR, error=DETAIL_ERROR_MESSAGE
            )
            self.error = DETAIL_ERROR_MESSAGE
            self.announcer.announce(DETAIL_ERROR_MESSAGE)
            return

        if not self._is_current(run_id, pending):
            return
        self._slots[run_id] = RunSlot(state=RunState.LOADED, detail=detail)
        log.info(
            "Loaded details for run %s (passed=%d, failed=%d)",
            run_id,
            detail.results.passed,
            detail.results.failed,
        )
        self.announcer.announce(
            f"Loaded details for {label}. "
            f"{detail.results.passed} tests passed, "
            f"{detail.results.failed} tests failed."
        )

    def collapse(self, run_id: str, project: str | None = None) -> bool:
        """Drop a loaded detail; a run that is not loaded is left untouched.

        Returns:
            True if the run was collapsed

        """
        if self.state(run_id) is not RunState.LOADED:
            return False
        del self._slots[run_id]
        log.info("Collapsed details for run %s", run_id)
        self.announcer.announce(f"Collapsed details for {project or run_id}")
        return True

    def prune(self, keep_ids: Iterable[str]) -> None:
        """Forget every run whose id is not in ``keep_ids``.

        Outstanding fetches for forgotten runs are discarded on completion.
        """
        keep = set(keep_ids)
        for run_id in [run_id for run_id in self._slots if run_id not in keep]:
            log.debug("Dropping detail state for run %s", run_id)
            del self._slots[run_id]

    def detach(self) -> None:
        """Stop applying results of fetches that are still outstanding."""
        self._attached = False

    def _is_current(self, run_id: str, pending: RunSlot) -> bool:
        if not self._attached:
            log.debug("Discarding details for run %s after detach", run_id)
            return False
        if self._slots.get(run_id) is not pending:
            log.debug("Discarding details for run %s, no longer requested", run_id)
            return False
        return True
