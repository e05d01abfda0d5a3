"""
The map tree file.

TMX can't express that one map is nested below another, so the shape of
the tree is kept in a separate file:

    <maps>
      <map id="1">            <!-- a root map -->
        <map id="2">          <!-- child of 1 -->
          <map id="3"/>       <!-- grandchild -->
        </map>
        <map id="4"/>         <!-- another child of 1 -->
      </map>
      <map id="5"/>           <!-- another root map -->
    </maps>

Nesting may be arbitrarily deep. The file only holds ids; the maps
themselves are joined in by MapTreeService.
"""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, NamedTuple, Union

from maptree.errors import NonexistantDirectory, NonexistantFile, ParseError
from maptree.tmx import indent_xml

from .entity import MapEntity

logger = logging.getLogger(__name__)


class MapNode(NamedTuple):
    """One <map> record: an id plus the records nested in it."""
    id: int
    children: List['MapNode']

    def walk(self):
        """Pre-order walk over this node and all nested ones."""
        yield self
        for child in self.children:
            yield from child.walk()


class HierarchyCodec:
    """Reads and writes the map tree file."""

    root_tag = 'maps'
    node_tag = 'map'

    def decode(self, path: Union[str, Path]) -> List[MapNode]:
        """
        Read the nested id records of a map tree file.

        Raises:
        -------
        NonexistantFile : `path` isn't a file
        ParseError : malformed XML, a wrong root element, or a <map>
            without a positive integer id
        """
        path = Path(path)
        if not path.is_file():
            raise NonexistantFile(path)

        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            line = e.position[0] if e.position else None
            raise ParseError(path, line, str(e)) from e

        if root.tag != self.root_tag:
            raise ParseError(path, None, f"expected a <{self.root_tag}> root element, found <{root.tag}>")

        nodes = [self._read_node(path, elem) for elem in root.findall(self.node_tag)]
        logger.debug("Read map tree with %d root maps from %s", len(nodes), path)
        return nodes

    def _read_node(self, path: Path, elem: ET.Element) -> MapNode:
        raw_id = elem.get('id')
        try:
            map_id = int(raw_id)
        except (TypeError, ValueError):
            raise ParseError(path, None, f"<{self.node_tag}> with invalid id {raw_id!r}") from None
        if map_id <= 0:
            raise ParseError(path, None, f"<{self.node_tag}> with invalid id {raw_id!r}")

        children = [self._read_node(path, child) for child in elem.findall(self.node_tag)]
        return MapNode(map_id, children)

    def nodes_for(self, roots: Iterable[MapEntity]) -> List[MapNode]:
        """The current shape of the given root maps as MapNodes."""
        return [MapNode(map_.id, self.nodes_for(map_.children)) for map_ in roots]

    def encode(self, roots: Iterable[MapEntity], path: Union[str, Path]) -> Path:
        """
        Write the shape of `roots` and all their descendants to `path`.

        Raises:
        -------
        NonexistantDirectory : the directory `path` should go into is missing
        """
        path = Path(path)
        if not path.parent.is_dir():
            raise NonexistantDirectory(path.parent)

        root = ET.Element(self.root_tag)
        for node in self.nodes_for(roots):
            self._write_node(root, node)
        indent_xml(root)

        ET.ElementTree(root).write(path, encoding='utf-8', xml_declaration=True)
        logger.debug("Wrote map tree to %s", path)
        return path

    def _write_node(self, parent: ET.Element, node: MapNode):
        elem = ET.SubElement(parent, self.node_tag)
        elem.set('id', str(node.id))
        for child in node.children:
            self._write_node(elem, child)
