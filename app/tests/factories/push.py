"""Helpers for reading frames off push connections in tests."""

import asyncio
from typing import List


async def collect_frames(connection, poll_interval: float = 0.01) -> List[str]:
    """Every frame the stream yields until the connection completes."""
    return [frame async for frame in connection.stream(poll_interval=poll_interval)]


def drain_frames(connection) -> List[str]:
    """Close ``connection`` and return every frame queued before the close."""
    connection.complete("test")
    return asyncio.run(collect_frames(connection))
