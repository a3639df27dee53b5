import pytest

from session import InputEvent, parse_key


class FixedRandom:
    """Tile source whose draws are pinned, for placing tiles exactly."""

    def __init__(self, index: int = 0, rank: int = 1):
        self.index = index
        self.rank = rank
        self.calls = []

    def next_empty_index(self, n: int) -> int:
        self.calls.append(("index", n))
        return self.index

    def next_tile_rank(self) -> int:
        self.calls.append(("rank",))
        return self.rank


class ScriptedInput:
    """Input source fed from a list of keys; runs out into quit."""

    def __init__(self, keys):
        self.keys = list(keys)
        self.reads = 0

    def read_event(self) -> InputEvent:
        self.reads += 1
        if not self.keys:
            return InputEvent.QUIT
        return parse_key(self.keys.pop(0))


# no merges possible in any direction
CHECKERBOARD = [
    [1, 2, 1, 2],
    [2, 1, 2, 1],
    [1, 2, 1, 2],
    [2, 1, 2, 1],
]


@pytest.fixture
def fixed_random():
    return FixedRandom()


@pytest.fixture
def checkerboard():
    return [row[:] for row in CHECKERBOARD]
