"""
Rollout snapshot models.
"""

from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field


class ECSDeployment(BaseModel):
    """One deployment of an ECS service rolling update."""

    model_config = ConfigDict(frozen=True)

    status: str
    task_def_revision: str
    desired_count: int = Field(default=0, ge=0)
    running_count: int = Field(default=0, ge=0)
    failed_count: int = Field(default=0, ge=0)
    pending_count: int = Field(default=0, ge=0)
    rollout_state: str = ''


class ECSService(BaseModel):
    """
    Snapshot of an ECS service at one poll.

    latest_failure_events only holds failure messages not reported by a previous snapshot.
    """

    model_config = ConfigDict(frozen=True)

    deployments: Tuple[ECSDeployment, ...] = ()
    latest_failure_events: Tuple[str, ...] = ()
