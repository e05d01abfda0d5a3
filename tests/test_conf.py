"""Tests for the lazy settings object."""

from maptree.conf import LazySettings, global_settings, settings
from maptree.map import MapEntity


def test_defaults():
    fresh = LazySettings()
    assert not fresh.is_configured()

    assert fresh.DEFAULT_MAP_WIDTH == global_settings.DEFAULT_MAP_WIDTH == 20
    assert fresh.MAPS_FILE_NAME == "maps.xml"
    assert fresh.is_configured()


def test_configure_and_reset():
    settings.configure(DEFAULT_TILE_EDGE=16)
    assert settings.DEFAULT_TILE_EDGE == 16
    assert MapEntity(1).tilewidth == 16

    settings.reset()
    assert settings.DEFAULT_TILE_EDGE == 32


def test_attribute_assignment():
    settings.DEFAULT_LAYER_ENCODING = "csv"
    settings.DEFAULT_LAYER_COMPRESSION = None

    data = MapEntity(1).layers[0].data
    assert (data.encoding, data.compression) == ("csv", None)


def test_settings_module_from_environment(tmp_path, monkeypatch):
    (tmp_path / "maptree_test_overrides.py").write_text(
        "DEFAULT_MAP_WIDTH = 64\n"
        "DEFAULT_LAYER_NAME = 'Floor'\n"
        "lowercase_is_ignored = 1\n"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.setenv("MAPTREE_SETTINGS_MODULE", "maptree_test_overrides")

    fresh = LazySettings()

    assert fresh.DEFAULT_MAP_WIDTH == 64
    assert fresh.DEFAULT_LAYER_NAME == "Floor"
    assert fresh.DEFAULT_MAP_HEIGHT == 15
    assert not hasattr(fresh, "lowercase_is_ignored")


def test_missing_settings_module(monkeypatch):
    monkeypatch.setenv("MAPTREE_SETTINGS_MODULE", "no_such_settings_module_here")

    assert LazySettings().DEFAULT_MAP_WIDTH == 20
