"""
conftest.py
-----------
Shared pytest configuration and fixtures for level loop tests.

Contains:
- Event bus, tick source and scene navigator fixtures
- A fake level source and a recording event listener
- Config / controller factories
- Pytest configuration and hooks
"""

from dataclasses import replace
from functools import partial

import pytest

from level_loop.core.runtime.frame_ticker import FrameTicker
from level_loop.core.services.event_manager import EventManager
from level_loop.core.services.scene_manager import SceneManager
from level_loop.systems.level.errors import LevelNotFound
from level_loop.systems.level.level_context import ObjectGroup
from level_loop.systems.level.level_source import decode_level
from level_loop.systems.level.loop_config import LoopConfig, LoopValues
from level_loop.systems.level.loop_controller import LoopController


LOAD_EVENTS = ("enter_level", "things_loaded", "ready_to_draw", "ready_to_go")
UNLOAD_EVENTS = ("level_done", "pre_leave_level", "leave_level")

MENU_SCENES = ("Title", "LevelSelect", "Editor")

LEVELS = {
    0: {"name": "Tutorial", "ncols": 8, "nrows": 6, "w": 32, "h": 32, "things": []},
    3: {"name": "Cavern", "ncols": 16, "nrows": 12, "w": 32, "h": 32, "things": []},
}


# ===========================================================
# Test Helpers
# ===========================================================

class EventRecorder:
    """Subscribes to a set of event names and records (name, payload) pairs."""

    def __init__(self, events: EventManager, names=LOAD_EVENTS + UNLOAD_EVENTS):
        self.log = []
        for name in names:
            events.subscribe(name, partial(self._record, name))

    def _record(self, name, payload):
        self.log.append((name, payload))

    @property
    def names(self):
        return [name for name, _ in self.log]

    def payload(self, name):
        for event_name, payload in self.log:
            if event_name == name:
                return payload
        return None


class FakeSource:
    """Level source keyed by index, decoding JSON blobs."""

    def __init__(self, levels=None):
        self.levels = dict(LEVELS if levels is None else levels)
        self.requested = []
        self.decoded = []

    def get_by_index(self, index):
        self.requested.append(index)
        if index not in self.levels:
            raise LevelNotFound(f"No level at index {index!r}")
        return self.levels[index]

    def decode(self, blob):
        self.decoded.append(blob)
        return decode_level(blob)


def run_ticks(ticker: FrameTicker, count: int = 1, dt: float = 1 / 60):
    """Advance the ticker `count` times."""
    for _ in range(count):
        ticker.tick(dt)


def enter_from(scenes: SceneManager, origin: str, destination: str = "Level"):
    """Visit origin, then destination, so coming_from() reports origin."""
    scenes.go_to_scene(origin)
    scenes.go_to_scene(destination)


# ===========================================================
# Fixtures
# ===========================================================

@pytest.fixture
def events():
    """Fresh event bus for each test."""
    return EventManager()


@pytest.fixture
def ticker():
    return FrameTicker()


@pytest.fixture
def scenes(events):
    """Navigator with the three menu scenes and the level scene."""
    manager = SceneManager(events)
    for name in MENU_SCENES:
        manager.register(name, is_menu=True)
    manager.register("Level")
    return manager


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def advance(ticker):
    """advance(count=1, dt=1/60): tick the shared ticker."""
    return partial(run_ticks, ticker)


@pytest.fixture
def arrive(scenes):
    """arrive(origin): enter the level scene coming from origin."""
    return partial(enter_from, scenes)


@pytest.fixture
def recorder(events):
    return EventRecorder(events)


@pytest.fixture
def view():
    return ObjectGroup(name="view")


@pytest.fixture
def base_config():
    """Loop config with one value set per origin and no overlays."""
    return LoopConfig(
        normal_values=LoopValues("normal", "LevelSelect", 1.5),
        testing_values=LoopValues("testing", "Editor", 0.0),
        quick_test_values=LoopValues("quick_test", "Title", 0.0),
        coming_from_normal="LevelSelect",
        coming_from_testing="Editor",
        coming_from_quick_test="Title",
        leave_effect="fade",
    )


@pytest.fixture
def make_config(base_config):
    """Factory: base config with selected fields overridden."""
    def _make(**overrides):
        return replace(base_config, **overrides)
    return _make


@pytest.fixture
def make_controller(base_config, events, ticker, scenes, source):
    """Factory: controller wired to the shared fixtures."""
    controllers = []

    def _make(config=None, **kwargs):
        kwargs.setdefault("events", events)
        kwargs.setdefault("ticker", ticker)
        kwargs.setdefault("scenes", scenes)
        kwargs.setdefault("source", source)
        controller = LoopController(config=config or base_config, **kwargs)
        controllers.append(controller)
        return controller

    yield _make

    for controller in controllers:
        controller.close()


# ===========================================================
# Pytest Configuration
# ===========================================================

def pytest_configure(config):
    """Custom pytest configuration."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")


def pytest_collection_modifyitems(config, items):
    """Mark every test not explicitly marked integration as a unit test."""
    for item in items:
        if item.get_closest_marker("integration") is None:
            item.add_marker(pytest.mark.unit)
