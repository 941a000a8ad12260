"""Shared fixtures: fake ECS describers and service descriptions."""

from datetime import datetime, timedelta, timezone

import pytest

CREATION_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
TASK_DEF_ARN = "arn:aws:ecs:us-west-2:1111:task-definition/webapp-test-frontend:{}"


def make_deployment(status="PRIMARY", revision=3, desired=3, running=3, pending=0, failed=0,
                    rollout_state="IN_PROGRESS"):
    return {
        'status': status,
        'taskDefinition': TASK_DEF_ARN.format(revision),
        'desiredCount': desired,
        'runningCount': running,
        'pendingCount': pending,
        'failedTasks': failed,
        'rolloutState': rollout_state,
    }


def make_event(event_id, message, minutes_after_creation=1):
    return {
        'id': event_id,
        'message': message,
        'createdAt': CREATION_TIME + timedelta(minutes=minutes_after_creation),
    }


class FakeDescriber:
    """Returns queued descriptions in order, repeating the last one. Exceptions are raised."""

    def __init__(self, *outputs):
        self.outputs = list(outputs)
        self.calls = []

    def service(self, cluster, service):
        self.calls.append((cluster, service))
        out = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(out, Exception):
            raise out
        return out


@pytest.fixture
def creation_time():
    return CREATION_TIME
