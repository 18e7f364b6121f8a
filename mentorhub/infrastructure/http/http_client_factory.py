"""
HTTP client factory for outbound calls.
Handles configuration and initialization of pooled httpx clients.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from openai import DefaultAsyncHttpxClient

from ...config import Settings


@dataclass
class ConnectionLimits:
    """Connection pool configuration."""

    max_keepalive: int
    max_connections: int
    keepalive_expiry: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionLimits":
        return cls(
            max_keepalive=settings.pool_max_keepalive_connections,
            max_connections=settings.pool_max_connections,
            keepalive_expiry=settings.pool_keepalive_expiry,
        )


class HttpClientFactory:
    """Factory for creating configured httpx clients."""

    @staticmethod
    def build_httpx_config(settings: Settings) -> Dict[str, Any]:
        """Build httpx client configuration shared by all outbound clients."""
        limits = ConnectionLimits.from_settings(settings)
        return {
            "limits": httpx.Limits(
                max_keepalive_connections=limits.max_keepalive,
                max_connections=limits.max_connections,
                keepalive_expiry=limits.keepalive_expiry,
            ),
            "timeout": httpx.Timeout(
                connect=settings.http_connect_timeout,
                read=settings.http_read_timeout,
                write=settings.http_write_timeout,
                pool=settings.http_pool_timeout,
            ),
            "follow_redirects": True,
        }

    @staticmethod
    def create_client(
        settings: Settings,
        base_url: str = "",
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.AsyncClient:
        """
        Create an httpx client for :class:`RequestClient`.

        Args:
            settings: Application settings
            base_url: Base URL relative request paths are resolved against
            headers: Headers sent with every request

        Returns:
            Configured httpx client
        """
        default_headers = HttpClientFactory.get_default_headers(settings)
        default_headers.update(headers or {})
        return httpx.AsyncClient(
            base_url=base_url,
            headers=default_headers,
            **HttpClientFactory.build_httpx_config(settings),
        )

    @staticmethod
    def create_openai_client(settings: Settings) -> DefaultAsyncHttpxClient:
        """Create the httpx client handed to the OpenAI SDK."""
        return DefaultAsyncHttpxClient(**HttpClientFactory.build_httpx_config(settings))

    @staticmethod
    async def close_client(client: Optional[httpx.AsyncClient]) -> None:
        """
        Properly close an HTTP client to avoid resource leaks.

        Args:
            client: HTTP client to close
        """
        if client is None:
            return

        try:
            await client.aclose()
        except (httpx.HTTPError, RuntimeError) as e:
            logging.warning(f"Error closing HTTP client: {e}")

    @staticmethod
    def get_default_headers(settings: Settings) -> Dict[str, str]:
        return {
            "X-Title": settings.app_name,
            "Accept-Charset": "utf-8",
        }

    @staticmethod
    def log_client_configuration(client: httpx.AsyncClient, settings: Settings) -> None:
        config_info = {
            "client_type": type(client).__name__,
            "base_url": str(client.base_url),
            "pool_max_keepalive": settings.pool_max_keepalive_connections,
            "pool_max_connections": settings.pool_max_connections,
            "read_timeout": settings.http_read_timeout,
        }
        logging.info(f"HTTP client configuration: {config_info}")
