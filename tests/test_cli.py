"""Tests for the `python -m maptree` inspector."""

import io

from maptree.__main__ import main, print_tree
from maptree.map import MapEntity, save_tree
from maptree.tmx import ObjectGroup


def test_print_tree(map_tree):
    layer = map_tree[3].add_layer(ObjectGroup(name="Events"))
    map_tree[3].add_object(layer)
    out = io.StringIO()

    print_tree([map_tree[1]], out)

    assert out.getvalue().splitlines() == [
        "   1  Map_0001  (20x15, 1 layers, 0 objects)",
        "     2  Map_0002  (20x15, 1 layers, 0 objects)",
        "       3  Map_0003  (20x15, 2 layers, 1 objects)",
        "       4  Map_0004  (20x15, 1 layers, 0 objects)",
    ]


def test_main_prints_tree(maps_dir, map_tree, capsys):
    save_tree(maps_dir, maps_dir / "maps.xml", map_tree[1])

    assert main([str(maps_dir)]) == 0

    out = capsys.readouterr().out
    assert "Map_0004" in out


def test_main_with_explicit_tree_file(tmp_path, maps_dir, capsys):
    tree_file = tmp_path / "tree.xml"
    save_tree(maps_dir, tree_file, MapEntity(7, "Lonely"))

    assert main([str(maps_dir), str(tree_file), "-v"]) == 0
    assert "Lonely" in capsys.readouterr().out


def test_main_usage(capsys):
    assert main([]) == 1
    assert "Usage" in capsys.readouterr().out

    assert main(["a", "b", "c"]) == 1


def test_main_reports_errors(tmp_path, capsys):
    assert main([str(tmp_path / "nope")]) == 1
    assert capsys.readouterr().out.startswith("Error: ")


def test_main_reports_duplicate_records(maps_dir, capsys):
    save_tree(maps_dir, maps_dir / "maps.xml", MapEntity(1), MapEntity(2))
    (maps_dir / "maps.xml").write_text('<maps><map id="1"/><map id="1"/></maps>')

    assert main([str(maps_dir)]) == 1
    assert "Duplicate map ID 1" in capsys.readouterr().out


def test_main_reports_broken_map_files(maps_dir, capsys):
    save_tree(maps_dir, maps_dir / "maps.xml", MapEntity(1))
    (maps_dir / "0001.tmx").write_text(
        '<map width="1" height="1" tilewidth="32" tileheight="32">'
        '<layer id="1" name="Ground" width="1" height="1">'
        '<data encoding="base64" compression="gzip">AAAAAAAAAAA=</data>'
        '</layer></map>'
    )

    assert main([str(maps_dir)]) == 1
    assert capsys.readouterr().out.startswith("Error: ")
