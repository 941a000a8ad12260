"""
Deployment Modal Module

Real-time ECS rollout tracking via WebSocket.
Streams service snapshots to connected clients until the rollout completes.
"""

from .websocket_handler import DeploymentWebSocketManager
from .deployment_formatter import format_service_snapshot, format_rollout_complete, format_error_event

__all__ = [
    'DeploymentWebSocketManager',
    'format_service_snapshot',
    'format_rollout_complete',
    'format_error_event'
]
