"""aiohttp implementation of the data gateway."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from live_test_runs.config import PanelConfig
from live_test_runs.errors import (
    RequestError,
    extract_http_error_message,
    normalize_error,
)
from live_test_runs.gateway.base import DataGateway

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class HttpGateway(DataGateway):
    """Gateway performing GET requests over a shared aiohttp session."""

    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: PanelConfig
    ) -> AsyncGenerator["HttpGateway", None]:
        """Create gateway with managed session lifecycle."""
        async with aiohttp.ClientSession(
            headers={"Accept": "application/json"},
            timeout=aiohttp.ClientTimeout(total=config.request_timeout),
        ) as session:
            yield cls(session=session)

    async def fetch_json(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """GET a URL and decode the JSON body, raising RequestError on failure."""
        log.debug("GET %s params=%s", url, params)
        try:
            async with self.session.get(url, params=params) as response:
                if not response.ok:
                    text = await response.text()
                    message = extract_http_error_message(text, response.status)
                    log.warning(
                        "Request failed: url=%s status=%s message=%s",
                        url,
                        response.status,
                        message,
                    )
                    raise RequestError(message, status=response.status)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning("Request to %s failed: %r", url, e)
            raise RequestError(normalize_error(e)) from e
