"""Store holding the paginated list of run summaries."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError

from live_test_runs.config import PanelConfig
from live_test_runs.errors import RequestError, normalize_error
from live_test_runs.gateway.base import DataGateway
from live_test_runs.models.run import TestRunSummary, summary_list_adapter

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class SummaryListStore:
    """Loads up to ``limit`` run summaries and tracks coarse list state.

    ``loading`` drives the full-page placeholder for the first page and
    ``loading_more`` the trailing spinner for later pages; they are never
    set together by the same call.
    """

    gateway: DataGateway
    config: PanelConfig = field(default_factory=PanelConfig)

    runs: Sequence[TestRunSummary] = field(default=(), init=False)
    limit: int = field(init=False)
    loading: bool = field(default=False, init=False)
    loading_more: bool = field(default=False, init=False)
    error: str | None = field(default=None, init=False)

    _latest_token: int = field(default=0, init=False, repr=False)
    _attached: bool = field(default=True, init=False, repr=False)

    def __post_init__(self) -> None:
        self.limit = self.config.page_size

    @property
    def run_ids(self) -> frozenset[str]:
        return frozenset(run.id for run in self.runs)

    @property
    def can_request_more(self) -> bool:
        """Whether the server may hold more runs and the cap allows asking."""
        return len(self.runs) >= self.limit and self.limit < self.config.max_limit

    def find(self, run_id: str) -> TestRunSummary | None:
        """Return the loaded summary with the given id, if any."""
        for run in self.runs:
            if run.id == run_id:
                return run
        return None

    async def load(self, limit: int | None = None) -> None:
        """Fetch up to ``limit`` runs and replace the list.

        Failures are stored in ``error``; the previously loaded list is kept.
        """
        if limit is None:
            limit = self.limit

        self._latest_token += 1
        token = self._latest_token

        first_page = limit == self.config.page_size
        if first_page:
            self.loading = True
        else:
            self.loading_more = True

        log.info("Loading test runs (limit=%d)", limit)
        try:
            data = await self.gateway.fetch_json(
                self.config.summary_url, params={"limit": str(limit)}
            )
            runs = summary_list_adapter.validate_python(data)
        except (RequestError, ValidationError) as e:
            if self._should_apply(token):
                log.error("Failed to load test runs: %s", e)
                self.error = f"Failed to load test runs: {normalize_error(e)}"
        else:
            if self._should_apply(token):
                log.info("Loaded %d test run(s)", len(runs))
                self.runs = tuple(runs)
                self.error = None
        finally:
            if self._attached and self._is_latest(token):
                self.loading = False
                self.loading_more = False

    async def request_more(self) -> bool:
        """Grow the limit by one page, capped, and reload.

        Returns:
            True if a load was issued, False if no more runs may be requested

        """
        if not self.can_request_more:
            log.debug(
                "Not requesting more runs (loaded=%d, limit=%d, max=%d)",
                len(self.runs),
                self.limit,
                self.config.max_limit,
            )
            return False

        self.limit = min(self.limit + self.config.page_size, self.config.max_limit)
        await self.load(self.limit)
        return True

    def detach(self) -> None:
        """Stop applying results of loads that are still outstanding."""
        self._attached = False

    def _should_apply(self, token: int) -> bool:
        if not self._attached:
            log.debug("Discarding test runs response after detach")
            return False
        if not self._is_latest(token):
            log.info("Discarding stale test runs response")
            return False
        return True

    def _is_latest(self, token: int) -> bool:
        return not self.config.discard_stale_responses or token == self._latest_token
