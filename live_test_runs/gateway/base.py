"""Abstract base class for remote data gateways."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class DataGateway(ABC):
    """Abstract source of JSON documents for the panel.

    Implementations perform a GET and either return the parsed body or raise
    ``RequestError``; no other exception type may escape ``fetch_json``.
    """

    @abstractmethod
    async def fetch_json(
        self,
        url: str,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Fetch a URL and return its parsed JSON body.

        Args:
            url: Absolute URL to GET
            params: Optional query parameters

        Returns:
            The decoded JSON document

        Raises:
            RequestError: If the request fails or the body is not JSON

        """
