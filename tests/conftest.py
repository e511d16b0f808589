"""
Pytest configuration and shared fixtures for Level Editor tests.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from level_editor.config import GenerationConfig
from level_editor.generator import LevelGenerator
from level_editor.group_manager import GroupManager
from level_editor.map_manager import MapManager
from level_editor.models import Role, TileGroup, VerticalAlignment
from level_editor.undo_manager import UndoManager


@pytest.fixture
def map_mgr():
    """Create a small 5x5 map with the default layer set."""
    return MapManager(width=5, height=5, groups=GroupManager())


@pytest.fixture
def undo_mgr():
    """Create an UndoManager with the standard 50 entry limit."""
    return UndoManager(max_history=50)


@pytest.fixture
def generator():
    """Create a seeded LevelGenerator with default tuning."""
    return LevelGenerator(config=GenerationConfig(), seed=1234)


@pytest.fixture
def grass_group():
    return TileGroup(
        id="grass",
        name="Grass Platform",
        left=[8],
        middle=[[9]],
        right=[10],
        single=[9],
        height=1,
        preview=[8, 9, 10],
        role=Role.TERRAIN,
    )


@pytest.fixture
def level_groups(grass_group):
    """A terrain, terrain-decoration and two scatter decorations."""
    flower = TileGroup(
        id="flower",
        name="Flower",
        single=[60],
        preview=[60],
        role=Role.TERRAIN_DECORATION,
        can_resize=False,
        can_flip=True,
        density=10,
    )
    cloud = TileGroup(
        id="cloud",
        name="Cloud",
        left=[40],
        middle=[[41]],
        right=[42],
        single=[41],
        preview=[40, 41, 42],
        role=Role.DECORATION,
        vertical_alignments=[VerticalAlignment.TOP],
        density=8,
    )
    bush = TileGroup(
        id="bush",
        name="Bush",
        left=[50],
        right=[51],
        single=[50],
        preview=[50, 51],
        role=Role.DECORATION,
        can_resize=False,
        can_flip=True,
        vertical_alignments=[VerticalAlignment.BOTTOM],
        density=10,
    )
    return [grass_group, flower, cloud, bush]
