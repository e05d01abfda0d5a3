"""Shared pytest configuration and fixtures."""

from typing import TYPE_CHECKING, Dict

import pytest

from maptree.conf import settings
from maptree.map import MapEntity

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture(autouse=True)
def reset_settings() -> "Generator[None, None, None]":
    """Start every test from the default settings and drop overrides afterwards."""
    settings.reset()
    yield
    settings.reset()


@pytest.fixture
def maps_dir(tmp_path: "Path") -> "Path":
    """An empty maps directory; the map tree file goes to maps_dir / "maps.xml"."""
    directory = tmp_path / "maps"
    directory.mkdir()
    return directory


@pytest.fixture
def map_tree() -> Dict[int, MapEntity]:
    """
    map1
     |
    map2-------+
     |         |
    map3      map4
    """
    maps = {map_id: MapEntity(map_id) for map_id in (1, 2, 3, 4)}
    maps[2].set_parent(maps[1])
    maps[3].set_parent(maps[2])
    maps[4].set_parent(maps[2])
    return maps
