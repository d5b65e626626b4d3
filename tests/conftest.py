import json

import pytest

from franchise_tools.lookups import load_visuals_lookups, load_wardrobe_lookups


class ScriptedRandom:
    """Stands in for random.Random and replays fixed randint results."""

    def __init__(self, values):
        self.values = list(values)

    def randint(self, a, b):
        value = self.values.pop(0)
        assert a <= value <= b
        return value


@pytest.fixture
def visuals_lookups():
    return load_visuals_lookups()


@pytest.fixture
def wardrobe_lookups():
    return load_wardrobe_lookups()


@pytest.fixture
def write_snapshot(tmp_path):
    def _write(snapshot, name="franchise.json"):
        path = tmp_path / name
        path.write_text(json.dumps(snapshot), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def scripted_random():
    return ScriptedRandom
