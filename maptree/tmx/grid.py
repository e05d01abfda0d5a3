"""
The <map> element of a TMX file: dimensions, tile size, properties,
tileset bindings and layers.

TileGrid knows nothing about map ids, parents or children. It's the tile
content a MapEntity wraps, and the part of a map that actually ends up in
its file.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .elements import (
    Layer, MapObject, ObjectGroup, Tileset, TileLayer,
    _int, create_layer, read_properties, write_properties,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TileGrid:
    """
    Map-level content of a TMX file.

    ==========================================================================
    TILESET BINDINGS
    ==========================================================================

    `tilesets` maps each binding's firstgid to the Tileset occupying
    [firstgid, firstgid + tilecount). Iteration is in firstgid order where
    it matters (lookups, writing).

    ==========================================================================
    LAYER SIZES
    ==========================================================================

    Tile layers are fitted to width x height when the grid is read from or
    written to XML. Between those points a layer may still carry the
    payload size it had before the grid was resized.
    ==========================================================================
    """
    width: int = 0
    height: int = 0
    tilewidth: int = 0
    tileheight: int = 0
    version: str = "1.10"
    orientation: str = "orthogonal"
    renderorder: str = "right-down"
    properties: Dict[str, str] = field(default_factory=dict)
    tilesets: Dict[int, Tileset] = field(default_factory=dict)
    layers: List[Layer] = field(default_factory=list)
    nextlayerid: int = 1
    nextobjectid: int = 1

    @classmethod
    def from_xml(cls, root: ET.Element, base_dir: Optional[Union[str, Path]] = None) -> 'TileGrid':
        """
        Build a grid from a parsed <map> element.

        Parameters:
        -----------
        root : ET.Element
            The <map> element.
        base_dir : str or Path, optional
            Directory external tilesets are resolved against, normally the
            directory of the map file.

        Raises:
        -------
        ValueError : on attributes or tile data that can't be interpreted
        """
        base_dir = Path(base_dir) if base_dir is not None else Path('.')

        grid = cls(
            width=_int(root, 'width'),
            height=_int(root, 'height'),
            tilewidth=_int(root, 'tilewidth'),
            tileheight=_int(root, 'tileheight'),
            version=root.get('version', '1.0'),
            orientation=root.get('orientation', 'orthogonal'),
            renderorder=root.get('renderorder', 'right-down'),
            nextlayerid=_int(root, 'nextlayerid', 1),
            nextobjectid=_int(root, 'nextobjectid', 1),
        )
        grid.properties = read_properties(root)

        for tileset_elem in root.findall('tileset'):
            firstgid = tileset_elem.get('firstgid')
            if firstgid is None:
                raise ValueError("<tileset> without firstgid")
            grid.tilesets[int(firstgid)] = _read_tileset(tileset_elem, base_dir, grid)

        # Layers keep document order
        for elem in root:
            if elem.tag == 'layer':
                layer = TileLayer.from_xml(elem)
                layer.fit_to(grid.width, grid.height)
                grid.layers.append(layer)
            elif elem.tag == 'objectgroup':
                grid.layers.append(ObjectGroup.from_xml(elem))
            elif elem.tag == 'group':
                logger.warning("Skipping layer group %r, nested layer groups aren't supported",
                               elem.get('name', ''))

        return grid

    def to_xml(self) -> ET.Element:
        """Build the <map> element, fitting tile layers to the grid first."""
        root = ET.Element('map')
        root.set('version', self.version)
        root.set('orientation', self.orientation)
        root.set('renderorder', self.renderorder)
        root.set('width', str(self.width))
        root.set('height', str(self.height))
        root.set('tilewidth', str(self.tilewidth))
        root.set('tileheight', str(self.tileheight))
        root.set('infinite', '0')
        root.set('nextlayerid', str(self.nextlayerid))
        root.set('nextobjectid', str(self.nextobjectid))

        write_properties(root, self.properties)

        for firstgid, tileset in sorted(self.tilesets.items(), key=lambda item: item[0]):
            root.append(tileset.to_xml(firstgid))

        for layer in self.layers:
            if isinstance(layer, TileLayer):
                layer.fit_to(self.width, self.height)
            root.append(layer.to_xml())

        return root

    def get_tileset_for_gid(self, gid: int) -> Optional[Tuple[int, Tileset]]:
        """
        Find the binding a GID belongs to.

        A GID belongs to the binding with the largest firstgid <= gid.
        Returns (firstgid, tileset), or None for GID 0 and GIDs below every
        binding.
        """
        found = None
        for firstgid in sorted(self.tilesets):
            if firstgid > gid:
                break
            found = (firstgid, self.tilesets[firstgid])
        return found if gid else None

    def get_layer_by_name(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    def object_layers(self) -> List[ObjectGroup]:
        return [layer for layer in self.layers if isinstance(layer, ObjectGroup)]

    def iter_objects(self) -> Iterator[MapObject]:
        """All objects of all object layers, layer by layer."""
        for layer in self.object_layers():
            yield from layer.objects

    def highest_object_id(self) -> int:
        return max((obj.id for obj in self.iter_objects() if obj.id is not None), default=0)

    def gid_frontier(self) -> int:
        """First GID after every bound tileset (1 if none is bound)."""
        return max((firstgid + tileset.tilecount for firstgid, tileset in self.tilesets.items()),
                   default=1)


def _read_tileset(elem: ET.Element, base_dir: Path, grid: TileGrid) -> Tileset:
    source = elem.get('source')
    if not source:
        return Tileset.from_xml(elem)

    # External tileset, the definition lives in the TSX file
    tsx_path = base_dir / source
    try:
        tileset = Tileset.load_tsx(tsx_path)
    except FileNotFoundError:
        logger.warning("External tileset not found: %s", tsx_path)
        tileset = Tileset(
            name=Path(source).stem,
            tilewidth=grid.tilewidth,
            tileheight=grid.tileheight,
        )
    tileset.source = source
    return tileset


def create_empty_grid(width: int, height: int, tilewidth: int, tileheight: int,
                      layer_name: Optional[str] = "Ground") -> TileGrid:
    """
    A grid of the given size with one empty tile layer.

    Pass layer_name=None for a grid without layers.
    """
    grid = TileGrid(width=width, height=height, tilewidth=tilewidth, tileheight=tileheight)
    if layer_name is not None:
        layer = create_layer(layer_name, width, height)
        layer.id = grid.nextlayerid
        grid.nextlayerid += 1
        grid.layers.append(layer)
    return grid
