"""API endpoints."""

from signal_monitor.api.routes import router
from signal_monitor.api.websocket import manager, websocket_endpoint, ConnectionManager

__all__ = [
    "router",
    "manager",
    "websocket_endpoint",
    "ConnectionManager",
]
