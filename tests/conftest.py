import os

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from flappy_game import GameConfig, GameSession  # noqa: E402


class FixedRandom:
    """Random source that always returns the same gap center, clamped to the range."""

    def __init__(self, value):
        self.value = value
        self.calls = []

    def uniform(self, low, high):
        self.calls.append((low, high))
        return min(max(self.value, low), high)


@pytest.fixture
def floating_config():
    """No gravity: the bird hovers where it is put."""
    return GameConfig(gravity=0.0)


@pytest.fixture
def session():
    return GameSession(seed=1234)


@pytest.fixture
def make_rng():
    return FixedRandom
