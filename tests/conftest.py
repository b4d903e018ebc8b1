import copy

import pytest

from gacha_engine.engine import GachaEngine


WEIGHTED_CONFIG = {
    "mode": "weighted",
    "rarity_rates": {"common": 0.8, "rare": 0.2},
    "pools": [
        {
            "rarity": "common",
            "items": [
                {"name": "ItemA", "weight": 0.5},
                {"name": "ItemB", "weight": 0.5},
            ],
        },
        {
            "rarity": "rare",
            "items": [
                {"name": "ItemC", "weight": 0.7},
                {"name": "ItemD", "weight": 0.3, "rate_up": True},
            ],
        },
    ],
}

FLAT_CONFIG = {
    "mode": "flatRate",
    "pools": [
        {
            "rarity": "flat",
            "items": [
                {"name": "ItemX", "weight": 0.6},
                {"name": "ItemY", "weight": 0.4},
            ],
        },
    ],
}


class StubRng:
    """Returns queued values from randrange, checking they are in range."""

    def __init__(self, values):
        self.values = list(values)

    def randrange(self, stop):
        value = self.values.pop(0)
        assert 0 <= value < stop, f"{value} outside [0, {stop})"
        return value


@pytest.fixture
def weighted_config():
    return copy.deepcopy(WEIGHTED_CONFIG)


@pytest.fixture
def flat_config():
    return copy.deepcopy(FLAT_CONFIG)


@pytest.fixture
def weighted_engine(weighted_config):
    return GachaEngine(weighted_config, seed=1234)


@pytest.fixture
def flat_engine(flat_config):
    return GachaEngine(flat_config, seed=1234)
