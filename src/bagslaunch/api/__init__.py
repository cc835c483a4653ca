"""Launch API client."""

from .client import LaunchApiClient, DEFAULT_BASE_URL, PING_URL

__all__ = ["LaunchApiClient", "DEFAULT_BASE_URL", "PING_URL"]
