"""
ECS Deployment Streamer

Polls an ECS service description and streams rollout snapshots to subscribers
until the primary deployment has converged.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Protocol, Sequence, Set

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from config import STREAMER_FETCH_INTERVAL_SECONDS
from .models import ECSDeployment, ECSService

logger = logging.getLogger(__name__)

ECS_PRIMARY_DEPLOYMENT_STATUS = 'PRIMARY'

ECS_EVENT_FAILURE_KEYWORDS = ('fail', 'unhealthy', 'error', 'throttle', 'unable', 'missing')


class ServiceDescriptionFetchError(Exception):
    """Raised when the service description could not be retrieved"""
    pass


class ECSServiceDescriber(Protocol):
    """Anything able to describe an ECS service, such as ECSClient."""

    def service(self, cluster: str, service: str) -> Dict:
        ...


class ECSDeploymentStreamer:
    """
    Streams ECS service descriptions from the deployment creation time
    until the primary deployment is completed.

    The caller drives it: fetch() stores a new snapshot, notify() flushes the
    stored snapshots to every subscriber. fetch() and notify() must not run
    concurrently.
    """

    def __init__(
        self,
        client: ECSServiceDescriber,
        cluster: str,
        service: str,
        deployment_creation_time: datetime,
        failure_keywords: Sequence[str] = ECS_EVENT_FAILURE_KEYWORDS,
        fetch_interval: Optional[float] = None,
    ):
        """
        Args:
            client: Describer used to retrieve the service description
            cluster: ECS cluster name
            service: ECS service name
            deployment_creation_time: Timezone-aware time the deployment started;
                older service events are ignored
            failure_keywords: Substrings marking an event message as a failure
            fetch_interval: Seconds to wait before the next fetch
                (default: STREAMER_FETCH_INTERVAL_SECONDS)
        """
        self.client = client
        self.cluster = cluster
        self.service = service
        self.deployment_creation_time = deployment_creation_time
        self.failure_keywords = tuple(failure_keywords)
        self.fetch_interval = timedelta(
            seconds=STREAMER_FETCH_INTERVAL_SECONDS if fetch_interval is None else fetch_interval
        )

        self.subscribers: List[MemoryObjectSendStream] = []
        self.past_event_ids: Set[str] = set()
        self.events_to_flush: List[ECSService] = []
        self._done = asyncio.Event()

    def subscribe(self, maxsize: int = 0) -> MemoryObjectReceiveStream:
        """
        Register a new listener for the snapshots flushed by notify().

        The returned stream ends (anyio.EndOfStream) once close() is called
        and the buffered snapshots are drained.

        Args:
            maxsize: Snapshots buffered before delivery blocks (0: wait for each read)
        """
        send_stream, receive_stream = anyio.create_memory_object_stream(maxsize)
        self.subscribers.append(send_stream)
        return receive_stream

    def fetch(self) -> datetime:
        """
        Retrieve and store a snapshot of the service.

        Returns:
            The time the next fetch should be attempted

        Raises:
            ServiceDescriptionFetchError: if describing the service failed
            ValueError: if a deployment has a malformed task definition ARN
        """
        try:
            out = self.client.service(self.cluster, self.service)
        except Exception as e:
            raise ServiceDescriptionFetchError(f"fetch service description: {e}") from e

        deployments = []
        for deployment in out.get('deployments', []):
            status = deployment.get('status', '')
            desired_count = deployment.get('desiredCount', 0)
            running_count = deployment.get('runningCount', 0)
            deployments.append(ECSDeployment(
                status=status,
                task_def_revision=parse_revision_from_task_def_arn(deployment.get('taskDefinition', '')),
                desired_count=desired_count,
                running_count=running_count,
                failed_count=deployment.get('failedTasks', 0),
                pending_count=deployment.get('pendingCount', 0),
                rollout_state=deployment.get('rolloutState', ''),
            ))
            if status == ECS_PRIMARY_DEPLOYMENT_STATUS and desired_count == running_count:
                self._mark_done()

        failure_msgs = []
        # ECS returns the newest events first
        for event in out.get('events', []):
            if event['createdAt'] < self.deployment_creation_time:
                break
            event_id = event['id']
            if event_id in self.past_event_ids:
                break
            message = event.get('message', '')
            if is_failure_service_event(message, self.failure_keywords):
                failure_msgs.append(message)
            self.past_event_ids.add(event_id)

        self.events_to_flush.append(ECSService(
            deployments=tuple(deployments),
            latest_failure_events=tuple(failure_msgs),
        ))
        logger.debug(
            "Fetched %s/%s: %d deployments, %d new failure events",
            self.cluster, self.service, len(deployments), len(failure_msgs),
        )
        return datetime.now(timezone.utc) + self.fetch_interval

    async def notify(self):
        """
        Flush all stored snapshots to the subscribers, in order.

        Each delivery waits for the listener to accept it, so a slow
        subscriber holds back every subscriber registered after it.
        """
        for event in self.events_to_flush:
            for subscriber in self.subscribers:
                await subscriber.send(event)
        self.events_to_flush = []

    async def close(self):
        """Close all subscribed listeners; no more snapshots will be sent."""
        for subscriber in self.subscribers:
            await subscriber.aclose()

    def done(self) -> asyncio.Event:
        """Event set once the primary deployment is completed."""
        return self._done

    def _mark_done(self):
        if self._done.is_set():
            return
        logger.info("Primary deployment of %s/%s completed", self.cluster, self.service)
        self._done.set()


def parse_revision_from_task_def_arn(arn: str) -> str:
    """
    Return the revision of a task definition ARN.
    For example "arn:aws:ecs:us-west-2:1111:task-definition/webapp-test-frontend:3" gives "3".

    Raises:
        ValueError: if the ARN is not of the form ".../family:revision"
    """
    try:
        family_name = arn.split('/')[1]
        return family_name.split(':')[1]
    except IndexError:
        raise ValueError(f"malformed task definition ARN: {arn!r}")


def is_failure_service_event(message: str, keywords: Sequence[str] = ECS_EVENT_FAILURE_KEYWORDS) -> bool:
    return any(keyword in message for keyword in keywords)
