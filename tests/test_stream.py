"""Tests for the stream driver."""

import asyncio

import pytest

from ECSStreamer import ECSDeploymentStreamer, ServiceDescriptionFetchError, stream
from tests.conftest import FakeDescriber, make_deployment, make_event


async def collect(listener):
    return [snapshot async for snapshot in listener]


async def test_stream_runs_until_primary_completes(creation_time):
    describer = FakeDescriber(
        {'deployments': [make_deployment(running=1)], 'events': [make_event("e1", "task failed to start")]},
        {'deployments': [make_deployment(running=2)], 'events': []},
        {'deployments': [make_deployment(running=3)], 'events': []},
    )
    streamer = ECSDeploymentStreamer(describer, "prod", "frontend", creation_time, fetch_interval=0)
    reader = asyncio.create_task(collect(streamer.subscribe()))

    await asyncio.wait_for(stream([streamer]), timeout=5)
    snapshots = await asyncio.wait_for(reader, timeout=1)

    assert [s.deployments[0].running_count for s in snapshots] == [1, 2, 3]
    assert snapshots[0].latest_failure_events == ("task failed to start",)
    assert len(describer.calls) == 3
    assert streamer.done().is_set()


async def test_stream_drives_several_streamers(creation_time):
    fast = ECSDeploymentStreamer(
        FakeDescriber({'deployments': [make_deployment()], 'events': []}),
        "prod", "api", creation_time, fetch_interval=0,
    )
    slow_describer = FakeDescriber(
        {'deployments': [make_deployment(running=0)], 'events': []},
        {'deployments': [make_deployment(running=3)], 'events': []},
    )
    slow = ECSDeploymentStreamer(slow_describer, "prod", "worker", creation_time, fetch_interval=0)
    fast_reader = asyncio.create_task(collect(fast.subscribe()))
    slow_reader = asyncio.create_task(collect(slow.subscribe()))

    await asyncio.wait_for(stream([fast, slow]), timeout=5)

    assert len(await fast_reader) == 1
    assert len(await slow_reader) == 2


async def test_stream_closes_listeners_on_fetch_error(creation_time):
    describer = FakeDescriber(
        {'deployments': [make_deployment(running=1)], 'events': []},
        RuntimeError("expired token"),
    )
    streamer = ECSDeploymentStreamer(describer, "prod", "frontend", creation_time, fetch_interval=0)
    reader = asyncio.create_task(collect(streamer.subscribe()))

    with pytest.raises(ServiceDescriptionFetchError):
        await asyncio.wait_for(stream([streamer]), timeout=5)

    snapshots = await asyncio.wait_for(reader, timeout=1)
    assert len(snapshots) == 1
    assert not streamer.done().is_set()
