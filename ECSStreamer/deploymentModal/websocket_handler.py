"""
WebSocket Handler for Rollout Tracking

Manages WebSocket connections and streams ECS rollout snapshots to clients.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Set, Tuple
from anyio.streams.memory import MemoryObjectReceiveStream
from fastapi import WebSocket

from ..deployment_streamer import ECSDeploymentStreamer, ECSServiceDescriber
from ..ecs_client import ECSClient
from ..stream import stream
from .deployment_formatter import (
    format_service_snapshot,
    format_rollout_complete,
    format_error_event,
    format_duration
)

logger = logging.getLogger(__name__)

ServiceKey = Tuple[str, str]


class DeploymentWebSocketManager:
    """
    Manages WebSocket connections for real-time rollout tracking.
    Handles multiple concurrent connections to the same service.
    """

    def __init__(self, describer_factory: Callable[[str], ECSServiceDescriber] = ECSClient):
        """
        Args:
            describer_factory: Builds a service describer for a region
        """
        self.describer_factory = describer_factory

        # Format: {(cluster, service): {websocket1, websocket2, ...}}
        self.active_connections: Dict[ServiceKey, Set[WebSocket]] = {}

        # Format: {(cluster, service): asyncio.Task}
        self.polling_tasks: Dict[ServiceKey, asyncio.Task] = {}

        # Last rollout_update sent per service, replayed to clients joining mid-rollout
        self.latest_updates: Dict[ServiceKey, dict] = {}

    async def connect(
        self,
        websocket: WebSocket,
        cluster: str,
        service: str,
        region: str = 'us-east-1',
        since: Optional[datetime] = None
    ):
        """
        Accept a new WebSocket connection and start tracking the rollout.

        Only the first client of a service starts the polling task, so region
        and since are ignored for clients joining an already tracked service.
        Those clients receive the latest update right away.

        Args:
            websocket: WebSocket connection
            cluster: ECS cluster name
            service: ECS service name
            region: AWS region
            since: Deployment creation time (default: now)
        """
        await websocket.accept()

        key = (cluster, service)
        self.active_connections.setdefault(key, set()).add(websocket)

        logger.info("WebSocket connected for %s/%s (Total: %d)", cluster, service, len(self.active_connections[key]))

        if key in self.polling_tasks:
            await self._send_initial_state(websocket, key)
        else:
            self.polling_tasks[key] = asyncio.create_task(
                self._poll_and_broadcast(key, region, since)
            )

    def disconnect(self, websocket: WebSocket, cluster: str, service: str):
        """
        Remove a WebSocket connection, stopping the polling task with the last one.
        """
        key = (cluster, service)
        if key not in self.active_connections:
            return

        self.active_connections[key].discard(websocket)
        if self.active_connections[key]:
            logger.info("WebSocket disconnected from %s/%s (Remaining: %d)", cluster, service, len(self.active_connections[key]))
            return

        del self.active_connections[key]
        self.latest_updates.pop(key, None)
        task = self.polling_tasks.pop(key, None)
        if task:
            task.cancel()
        logger.info("All connections closed for %s/%s", cluster, service)

    async def _poll_and_broadcast(self, key: ServiceKey, region: str, since: Optional[datetime]):
        """
        Stream the rollout of a service and broadcast every snapshot to its clients.
        """
        cluster, service = key
        started = datetime.now(timezone.utc)
        forwarder = None

        try:
            streamer = ECSDeploymentStreamer(
                self.describer_factory(region),
                cluster,
                service,
                since or started
            )
            listener = streamer.subscribe()
            forwarder = asyncio.create_task(self._forward(key, listener))

            logger.info("Started polling ECS service %s/%s", cluster, service)
            await stream([streamer])
            await forwarder

            logger.info("Rollout complete for %s/%s", cluster, service)
            duration = format_duration(started, datetime.now(timezone.utc))
            await self._broadcast(key, format_rollout_complete(cluster, service, duration))

        except asyncio.CancelledError:
            logger.info("Polling cancelled for %s/%s", cluster, service)
            raise
        except Exception as e:
            logger.error("Error polling %s/%s: %s", cluster, service, e)
            await self._broadcast(key, format_error_event(f"Error tracking rollout: {e}"))
        finally:
            if forwarder and not forwarder.done():
                forwarder.cancel()
            if self.polling_tasks.get(key) is asyncio.current_task():
                del self.polling_tasks[key]
                self.latest_updates.pop(key, None)

    async def _forward(self, key: ServiceKey, listener: MemoryObjectReceiveStream):
        cluster, service = key
        async with listener:
            async for snapshot in listener:
                message = format_service_snapshot(snapshot, cluster, service)
                self.latest_updates[key] = message
                await self._broadcast(key, message)

    async def _send_initial_state(self, websocket: WebSocket, key: ServiceKey):
        """
        Send the current rollout state to a client joining a tracked service.
        Nothing is sent before the first poll.
        """
        latest = self.latest_updates.get(key)
        if latest:
            await websocket.send_json(latest)

    async def _broadcast(self, key: ServiceKey, message: dict):
        """
        Broadcast a message to all clients connected to a service.
        Clients that fail to receive it are disconnected.
        """
        if key not in self.active_connections:
            return

        connections = self.active_connections[key].copy()

        disconnected = []
        for websocket in connections:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning("Error sending to client: %s", e)
                disconnected.append(websocket)

        for websocket in disconnected:
            self.disconnect(websocket, *key)


# Global instance
deployment_ws_manager = DeploymentWebSocketManager()
