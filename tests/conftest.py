import os
import random

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from session import GameSession, MemoryStore


class FixedRng:
    """Always picks the first empty cell and spawns the given value."""

    def __init__(self, value=2):
        self.value = value

    def choice(self, seq):
        return seq[0]

    def random(self):
        return 0.0 if self.value == 4 else 0.5


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def session(store):
    return GameSession(store, rng=random.Random(2048))


@pytest.fixture
def fixed_session(store):
    return GameSession(store, rng=FixedRng())
