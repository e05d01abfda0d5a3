"""Tests for saving and loading whole map trees."""

import logging

import pytest

from maptree.errors import (
    DuplicateMapID, MalformedMapFile, NonexistantDirectory, NonexistantFile,
)
from maptree.map import MapEntity, MapTreeService, load_tree, save_tree


@pytest.fixture
def service():
    return MapTreeService()


def snapshot(directory):
    """Relative path -> bytes of every file below `directory`."""
    return {
        str(path.relative_to(directory)): path.read_bytes()
        for path in sorted(directory.rglob("*")) if path.is_file()
    }


def shape(map_):
    return (map_.id, [shape(child) for child in map_.children])


def test_round_trip(service, maps_dir, map_tree):
    maps_file = maps_dir / "maps.xml"
    map_tree[3]["music"] = "cave.ogg"
    second_root = MapEntity(5, "Overworld")

    service.save_tree(maps_dir, maps_file, map_tree[1], second_root)

    assert sorted(path.name for path in maps_dir.iterdir()) == [
        "0001.tmx", "0002.tmx", "0003.tmx", "0004.tmx", "0005.tmx", "maps.xml",
    ]

    roots = service.load_tree(maps_dir, maps_file)

    assert [shape(root) for root in roots] == [
        (1, [(2, [(3, []), (4, [])])]),
        (5, []),
    ]
    assert all(root.is_root for root in roots)
    loaded = {map_.id: map_ for root in roots for map_ in root.traverse(include_self=True)}
    assert loaded[3]["music"] == "cave.ogg"
    assert loaded[3].parent is loaded[2]
    assert loaded[5].name == "Overworld"


def test_hierarchy_file_outside_maps_dir(service, maps_dir, map_tree, tmp_path):
    maps_file = tmp_path / "tree.xml"

    service.save_tree(maps_dir, maps_file, map_tree[1])

    assert maps_file.is_file()
    assert [shape(root) for root in service.load_tree(maps_dir, maps_file)] == [
        (1, [(2, [(3, []), (4, [])])]),
    ]


def test_parent_and_child_swap(service, maps_dir):
    """
    Save a map tree, reload it, swap a parent with its child, save and
    reload again.
    """
    maps_file = maps_dir / "maps.xml"
    map1 = MapEntity(1)
    map2 = MapEntity(2)
    map2.set_parent(map1)
    service.save_tree(maps_dir, maps_file, map1)

    (map1,) = service.load_tree(maps_dir, maps_file)
    (map2,) = map1.children
    map2.unmount()
    map1.set_parent(map2)
    service.save_tree(maps_dir, maps_file, map2)

    (root,) = service.load_tree(maps_dir, maps_file)
    assert shape(root) == (2, [(1, [])])


def test_unmounted_maps_are_removed(service, maps_dir, map_tree):
    maps_file = maps_dir / "maps.xml"
    service.save_tree(maps_dir, maps_file, map_tree[1])

    map_tree[3].unmount()
    service.save_tree(maps_dir, maps_file, map_tree[1])

    assert not (maps_dir / "0003.tmx").exists()
    assert [shape(root) for root in service.load_tree(maps_dir, maps_file)] == [
        (1, [(2, [(4, [])])]),
    ]


def test_save_wipes_maps_dir(service, maps_dir, map_tree):
    (maps_dir / "notes.txt").write_text("stale")
    (maps_dir / "0099.tmx").write_text("stale")
    (maps_dir / "old").mkdir()
    (maps_dir / "old" / "0001.tmx").write_text("stale")

    service.save_tree(maps_dir, maps_dir / "maps.xml", map_tree[1])

    assert sorted(path.name for path in maps_dir.iterdir()) == [
        "0001.tmx", "0002.tmx", "0003.tmx", "0004.tmx", "maps.xml",
    ]


def test_duplicate_ids_leave_disk_untouched(service, maps_dir, map_tree):
    maps_file = maps_dir / "maps.xml"
    service.save_tree(maps_dir, maps_file, map_tree[1])
    before = snapshot(maps_dir)

    MapEntity(3).set_parent(map_tree[1])

    with pytest.raises(DuplicateMapID) as excinfo:
        service.save_tree(maps_dir, maps_file, map_tree[1])

    assert excinfo.value.map_id == 3
    assert snapshot(maps_dir) == before


def test_duplicate_ids_across_roots(service, maps_dir, map_tree):
    with pytest.raises(DuplicateMapID):
        service.save_tree(maps_dir, maps_dir / "maps.xml", map_tree[1], MapEntity(4))
    assert list(maps_dir.iterdir()) == []


def test_check_map_ids(service, map_tree):
    service.check_map_ids(map_tree[1], MapEntity(5))

    with pytest.raises(DuplicateMapID):
        service.check_map_ids(map_tree[1], MapEntity(1))


def test_save_into_missing_directory(service, tmp_path, map_tree):
    with pytest.raises(NonexistantDirectory):
        service.save_tree(tmp_path / "nope", tmp_path / "maps.xml", map_tree[1])


def test_save_with_missing_hierarchy_directory(service, maps_dir, map_tree):
    (maps_dir / "0001.tmx").write_text("keep me")

    with pytest.raises(NonexistantDirectory):
        service.save_tree(maps_dir, maps_dir / "nope" / "maps.xml", map_tree[1])

    assert (maps_dir / "0001.tmx").read_text() == "keep me"


def test_save_empty_forest(service, maps_dir):
    service.save_tree(maps_dir, maps_dir / "maps.xml")

    assert [path.name for path in maps_dir.iterdir()] == ["maps.xml"]
    assert service.load_tree(maps_dir, maps_dir / "maps.xml") == []


def test_load_from_missing_directory(service, tmp_path):
    with pytest.raises(NonexistantDirectory):
        service.load_tree(tmp_path / "nope", tmp_path / "maps.xml")


def test_load_without_hierarchy_file(service, maps_dir):
    with pytest.raises(NonexistantFile):
        service.load_tree(maps_dir, maps_dir / "maps.xml")


def test_load_with_missing_map_file(service, maps_dir, map_tree):
    maps_file = maps_dir / "maps.xml"
    service.save_tree(maps_dir, maps_file, map_tree[1])
    (maps_dir / "0004.tmx").unlink()

    with pytest.raises(NonexistantFile):
        service.load_tree(maps_dir, maps_file)


def test_load_with_broken_map_file(service, maps_dir, map_tree):
    maps_file = maps_dir / "maps.xml"
    service.save_tree(maps_dir, maps_file, map_tree[1])
    (maps_dir / "0002.tmx").write_text("")

    with pytest.raises(MalformedMapFile):
        service.load_tree(maps_dir, maps_file)


def test_load_warns_about_duplicate_records(service, maps_dir, caplog):
    maps_file = maps_dir / "maps.xml"
    service.save_tree(maps_dir, maps_file, MapEntity(1), MapEntity(2))
    maps_file.write_text('<maps><map id="1"><map id="2"/></map><map id="2"/></maps>')

    with caplog.at_level(logging.WARNING, logger="maptree.map.storage"):
        roots = service.load_tree(maps_dir, maps_file)

    assert "Map ID 2 appears more than once" in caplog.text
    # Each record gets its own copy of the map
    assert [shape(root) for root in roots] == [(1, [(2, [])]), (2, [])]
    assert roots[0].children[0] is not roots[1]


def test_module_level_functions(maps_dir, map_tree):
    maps_file = maps_dir / "maps.xml"

    save_tree(maps_dir, maps_file, map_tree[1])
    roots = load_tree(maps_dir, maps_file)

    assert [shape(root) for root in roots] == [(1, [(2, [(3, []), (4, [])])])]
