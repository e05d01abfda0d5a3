"""Tests for the map tree file."""

import pytest

from maptree.errors import NonexistantDirectory, NonexistantFile, ParseError
from maptree.map import HierarchyCodec, MapEntity, MapNode


@pytest.fixture
def codec():
    return HierarchyCodec()


def test_nodes_follow_tree_shape(codec, map_tree):
    lonely = MapEntity(5)

    nodes = codec.nodes_for([map_tree[1], lonely])

    assert nodes == [
        MapNode(1, [MapNode(2, [MapNode(3, []), MapNode(4, [])])]),
        MapNode(5, []),
    ]
    assert [node.id for node in nodes[0].walk()] == [1, 2, 3, 4]


def test_round_trip(codec, map_tree, tmp_path):
    path = codec.encode([map_tree[1], MapEntity(5)], tmp_path / "maps.xml")

    assert path == tmp_path / "maps.xml"
    assert codec.decode(path) == codec.nodes_for([map_tree[1], MapEntity(5)])


def test_written_document(codec, map_tree, tmp_path):
    path = codec.encode([map_tree[1]], tmp_path / "maps.xml")
    text = path.read_text(encoding="utf-8")

    assert text.startswith("<?xml")
    assert '<maps>' in text
    assert '<map id="3" />' in text
    assert text.index('id="2"') < text.index('id="3"') < text.index('id="4"')


def test_empty_forest(codec, tmp_path):
    path = codec.encode([], tmp_path / "maps.xml")
    assert codec.decode(path) == []


def test_decode_nested(codec, tmp_path):
    path = tmp_path / "maps.xml"
    path.write_text(
        '<maps>\n'
        '  <map id="1">\n'
        '    <map id="2">\n'
        '      <map id="3"/>\n'
        '    </map>\n'
        '    <map id="4"/>\n'
        '  </map>\n'
        '  <map id="5"/>\n'
        '</maps>\n'
    )

    nodes = codec.decode(path)

    assert [node.id for node in nodes] == [1, 5]
    assert [node.id for node in nodes[0].walk()] == [1, 2, 3, 4]
    assert nodes[0].children[0].children == [MapNode(3, [])]


def test_mismatched_tag_reports_line(codec, tmp_path):
    path = tmp_path / "maps.xml"
    path.write_text(
        '<maps>\n'
        '  <map id="1">\n'
        '  </mop>\n'
        '</maps>\n'
    )

    with pytest.raises(ParseError) as excinfo:
        codec.decode(path)

    assert excinfo.value.line == 3
    assert "line 3" in str(excinfo.value)


def test_wrong_root(codec, tmp_path):
    path = tmp_path / "maps.xml"
    path.write_text('<map id="1"/>')

    with pytest.raises(ParseError, match="<maps>"):
        codec.decode(path)


@pytest.mark.parametrize("raw_id", ['id="abc"', 'id="0"', 'id="-2"', ''])
def test_invalid_ids(codec, tmp_path, raw_id):
    path = tmp_path / "maps.xml"
    path.write_text(f'<maps><map {raw_id}/></maps>')

    with pytest.raises(ParseError):
        codec.decode(path)


def test_missing_file(codec, tmp_path):
    with pytest.raises(NonexistantFile):
        codec.decode(tmp_path / "maps.xml")


def test_encode_into_missing_directory(codec, tmp_path):
    with pytest.raises(NonexistantDirectory):
        codec.encode([], tmp_path / "nope" / "maps.xml")
