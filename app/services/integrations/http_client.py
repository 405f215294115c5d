"""
HTTP client helper with standardized timeout configuration.

All outbound HTTP calls (Green API) go through create_httpx_client so nothing
waits on a hanging provider longer than the configured send timeout.
"""

import httpx

from app.core.config import settings


def get_httpx_timeout(total: float | None = None) -> httpx.Timeout:
    """
    Get standardized timeout configuration for HTTP clients.

    Args:
        total: Overall timeout in seconds (defaults to green_api_timeout_seconds)

    Returns:
        httpx.Timeout with explicit connect/read/write/pool values
    """
    if total is None:
        total = settings.green_api_timeout_seconds
    return httpx.Timeout(
        total,  # Default timeout for all operations
        connect=5.0,  # Time to establish connection
        read=total,  # Time to read response
        write=5.0,  # Time to write request
        pool=5.0,  # Time to get connection from pool
    )


def create_httpx_client(total: float | None = None) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient with standardized timeout configuration.

    Returns:
        httpx.AsyncClient configured with appropriate timeouts
    """
    return httpx.AsyncClient(timeout=get_httpx_timeout(total))
