"""
Rollout Snapshot Formatter

Formats ECS service snapshots into JSON structures for WebSocket transmission.
"""

from typing import Dict, Optional
from datetime import datetime

from ..deployment_streamer import ECS_PRIMARY_DEPLOYMENT_STATUS
from ..models import ECSDeployment, ECSService


def format_deployment(deployment: ECSDeployment) -> Dict:
    return {
        'status': deployment.status,
        'taskDefRevision': deployment.task_def_revision,
        'desiredCount': deployment.desired_count,
        'runningCount': deployment.running_count,
        'failedCount': deployment.failed_count,
        'pendingCount': deployment.pending_count,
        'rolloutState': deployment.rollout_state
    }


def primary_progress(snapshot: ECSService) -> int:
    """
    Progress of the primary deployment as a percentage (0-100).
    A primary deployment with no desired task counts as complete.
    """
    for deployment in snapshot.deployments:
        if deployment.status != ECS_PRIMARY_DEPLOYMENT_STATUS:
            continue
        if deployment.desired_count == 0:
            return 100
        return min(100, int((deployment.running_count / deployment.desired_count) * 100))
    return 0


def format_service_snapshot(snapshot: ECSService, cluster: str, service: str) -> Dict:
    """
    Format a service snapshot for WebSocket transmission.

    Args:
        snapshot: Snapshot flushed by the streamer
        cluster: ECS cluster name
        service: ECS service name

    Returns:
        Formatted event dictionary ready for JSON serialization
    """
    primary = next(
        (d for d in snapshot.deployments if d.status == ECS_PRIMARY_DEPLOYMENT_STATUS),
        None
    )

    return {
        'type': 'rollout_update',
        'timestamp': datetime.now().isoformat(),
        'service': {
            'cluster': cluster,
            'name': service,
            'progress': primary_progress(snapshot)
        },
        'primary': format_deployment(primary) if primary else None,
        'deployments': [format_deployment(d) for d in snapshot.deployments],
        'failureEvents': list(snapshot.latest_failure_events)
    }


def format_rollout_complete(
    cluster: str,
    service: str,
    duration: Optional[str] = None
) -> Dict:
    """
    Format a rollout completion event.

    Args:
        cluster: ECS cluster name
        service: ECS service name
        duration: Human-readable duration string

    Returns:
        Formatted completion event dictionary
    """
    return {
        'type': 'rollout_complete',
        'timestamp': datetime.now().isoformat(),
        'service': {
            'cluster': cluster,
            'name': service
        },
        'duration': duration or 'N/A'
    }


def format_error_event(message: str) -> Dict:
    return {
        'type': 'error',
        'timestamp': datetime.now().isoformat(),
        'message': message
    }


def format_duration(start: datetime, end: datetime) -> str:
    """Duration between two times, like "4m 15s"."""
    total_seconds = int((end - start).total_seconds())
    minutes = total_seconds // 60
    seconds = total_seconds % 60

    if minutes > 0:
        return f"{minutes}m {seconds}s"
    else:
        return f"{seconds}s"
