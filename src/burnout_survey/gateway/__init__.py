"""Gateway layer for the remote statistics service."""

from .base import PUBLIC_ACCESS_TOKEN, ApiResult, StatisticsGateway
from .factory import create_gateway

__all__ = [
    "PUBLIC_ACCESS_TOKEN",
    "ApiResult",
    "StatisticsGateway",
    "create_gateway",
]
