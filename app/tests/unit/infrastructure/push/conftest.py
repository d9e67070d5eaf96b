import json
from typing import List, Tuple

import pytest

from tests.factories.push import drain_frames


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def parse_frames(frames: List[str]) -> List[Tuple[str, dict]]:
    """(event, data) pairs for event frames; comments are returned as ("comment", {})."""
    parsed = []
    for frame in frames:
        if frame.startswith(":"):
            parsed.append(("comment", {}))
            continue
        event = None
        data_lines = []
        for line in frame.strip().splitlines():
            if line.startswith("event: "):
                event = line[len("event: ") :]
            elif line.startswith("data: "):
                data_lines.append(line[len("data: ") :])
        parsed.append((event, json.loads("\n".join(data_lines))))
    return parsed


@pytest.fixture
def read_events():
    def _read(connection):
        return parse_frames(drain_frames(connection))

    return _read
