"""Core infrastructure: config, logging, middleware, exceptions."""

from demandcast.core.config import Settings, get_settings
from demandcast.core.logging import get_logger, request_id_ctx

__all__ = [
    "Settings",
    "get_logger",
    "get_settings",
    "request_id_ctx",
]
