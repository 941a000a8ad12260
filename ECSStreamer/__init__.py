"""
ECS Streamer

Polls ECS service descriptions and streams rollout progress to subscribers.
"""

from .models import ECSDeployment, ECSService
from .ecs_client import ECSClient, ServiceNotFoundError
from .deployment_streamer import (
    ECSDeploymentStreamer,
    ServiceDescriptionFetchError,
    parse_revision_from_task_def_arn
)
from .stream import stream

__all__ = [
    'ECSDeployment',
    'ECSService',
    'ECSClient',
    'ServiceNotFoundError',
    'ECSDeploymentStreamer',
    'ServiceDescriptionFetchError',
    'parse_revision_from_task_def_arn',
    'stream'
]
