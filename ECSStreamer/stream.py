"""
Stream driver

Alternates fetch and notify on a set of streamers until every one of them is done.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List

from .deployment_streamer import ECSDeploymentStreamer

logger = logging.getLogger(__name__)


async def stream(streamers: List[ECSDeploymentStreamer]):
    """
    Drive the streamers until all of them are done.

    A streamer is closed as soon as its last snapshots are flushed after completion.
    If a fetch fails or the driver is cancelled, every remaining streamer is closed
    and the error is re-raised.

    Args:
        streamers: Streamers to drive; their listeners must be subscribed beforehand
    """
    active = list(streamers)

    try:
        while active:
            next_fetch = None
            for streamer in list(active):
                fetch_at = streamer.fetch()
                await streamer.notify()

                if streamer.done().is_set():
                    await streamer.close()
                    active.remove(streamer)
                    continue

                if next_fetch is None or fetch_at < next_fetch:
                    next_fetch = fetch_at

            if next_fetch is not None:
                delay = (next_fetch - datetime.now(timezone.utc)).total_seconds()
                await asyncio.sleep(max(delay, 0))
    except Exception as e:
        logger.error("Stopped streaming deployments: %s", e)
        raise
    finally:
        for streamer in active:
            await streamer.close()
