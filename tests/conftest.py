import pytest

from strikeprob.variates import BoxMullerSource, NormalSource


class SequenceSource(NormalSource):
    """Replays a fixed list of draws, cycling when exhausted."""

    def __init__(self, values):
        self.values = list(values)
        self.index = 0

    def next(self) -> float:
        value = self.values[self.index % len(self.values)]
        self.index += 1
        return float(value)


@pytest.fixture
def sequence_source():
    """Factory for deterministic sources replaying given draws."""
    return SequenceSource


@pytest.fixture
def seeded_source():
    return BoxMullerSource(seed=42)


@pytest.fixture
def zero_source():
    return SequenceSource([0.0])
