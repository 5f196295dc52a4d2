"""Gateway factory."""

from typing import Optional

import httpx

from ..config.settings import Settings
from .base import StatisticsGateway
from .http import HttpClientManager, HttpStatisticsGateway


def create_gateway(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> StatisticsGateway:
    """Create the REST gateway.

    Args:
        settings: Application settings
        transport: Optional httpx transport, used to stub the service

    Returns:
        The statistics gateway

    Raises:
        ValueError: If the backend URL is not configured
    """
    if not settings.backend.is_configured:
        raise ValueError("BACKEND_BASE_URL must be set in environment")

    client_manager = HttpClientManager(
        settings.backend.base_url,
        timeout_seconds=settings.backend.timeout_seconds,
        transport=transport,
    )
    return HttpStatisticsGateway(client_manager, login_path=settings.backend.login_path)
