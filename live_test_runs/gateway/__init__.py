"""Remote data gateway module."""

from live_test_runs.gateway.base import DataGateway
from live_test_runs.gateway.http import HttpGateway

__all__ = ["DataGateway", "HttpGateway"]
