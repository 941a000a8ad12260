from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from typing import Optional
from datetime import datetime, timezone

from config import AWS_REGION
from ECSStreamer.deploymentModal import websocket_handler

router = APIRouter(prefix="/rollout")


@router.get('/health')
def get_health():
    return {"status": "ok"}


@router.websocket("/track/{cluster}/{service}")
async def track_rollout(
    websocket: WebSocket,
    cluster: str,
    service: str,
    region: str = AWS_REGION,
    since: Optional[datetime] = None
):
    """
    WebSocket endpoint for real-time ECS rollout tracking.

    Streams a snapshot of the service deployments after every poll
    until the primary deployment reaches its desired count.

    Args:
        websocket: WebSocket connection
        cluster: ECS cluster name
        service: ECS service name
        region: AWS region
        since: Deployment creation time, older service events are ignored (default: now)

    Clients share one polling task per cluster and service: region and since
    only apply to the first client. Later clients first receive the latest
    rollout_update, if any.

    WebSocket Message Format:
        {
            "type": "rollout_update" | "rollout_complete" | "error",
            "timestamp": "2025-11-13T10:30:45",
            "service": {"cluster": "prod", "name": "frontend", "progress": 66},
            "primary": {
                "status": "PRIMARY",
                "taskDefRevision": "3",
                "desiredCount": 3,
                "runningCount": 2,
                "failedCount": 0,
                "pendingCount": 1,
                "rolloutState": "IN_PROGRESS"
            },
            "deployments": [...],
            "failureEvents": ["(service frontend) failed to launch a task ..."]
        }
    """
    if since and since.tzinfo is None:
        since = since.replace(tzinfo=timezone.utc)

    manager = websocket_handler.deployment_ws_manager
    await manager.connect(websocket, cluster, service, region, since)

    try:
        # Keep connection alive until the client leaves
        while True:
            try:
                await websocket.receive_text()
            except WebSocketDisconnect:
                break
    finally:
        manager.disconnect(websocket, cluster, service)
