"""Configuration for the test-run results panel."""

from typing import Self
from urllib.parse import quote

from pydantic import BaseModel, Field, model_validator

DEFAULT_API_BASE_URL = "https://about-me-automation-backend.azurewebsites.net/api"
PAGE_SIZE = 5
MAX_LIMIT = 30


class PanelConfig(BaseModel):
    """Configuration for the results API and the panel's paging behaviour."""

    api_base_url: str = DEFAULT_API_BASE_URL
    page_size: int = Field(default=PAGE_SIZE, gt=0)
    max_limit: int = Field(default=MAX_LIMIT, gt=0)
    announcement_delay: float = Field(default=1.0, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    # Drop list responses that resolve after a newer load was issued
    discard_stale_responses: bool = False

    @model_validator(mode="after")
    def check_limits(self) -> Self:
        """Ensure at least one page fits under the cap."""
        if self.max_limit < self.page_size:
            raise ValueError(
                f"max_limit ({self.max_limit}) must not be smaller than "
                f"page_size ({self.page_size})"
            )
        return self

    @property
    def summary_url(self) -> str:
        """Endpoint listing run summaries, most recent first."""
        return f"{self.api_base_url.rstrip('/')}/test-runs/summary"

    def detail_url(self, run_id: str) -> str:
        """Endpoint returning the full detail of one run."""
        return f"{self.api_base_url.rstrip('/')}/test-runs/{quote(run_id, safe='')}"
