"""
Building blocks of a TMX map file (Tiled Map Format).

=============================================================================
WHAT LIVES HERE
=============================================================================

Everything a single map file contains below the <map> element:

    <map ...>
        <properties> ... </properties>
        <tileset firstgid="1" name="terrain" tilewidth="32" ...>
            <image source="terrain.png" width="384" height="384"/>
        </tileset>
        <layer id="1" name="Ground" width="20" height="15">
            <data encoding="base64" compression="zlib"> ... </data>
        </layer>
        <objectgroup id="2" name="Events">
            <object id="1" name="Object_0001" x="64" y="32"/>
        </objectgroup>
    </map>

The <map> element itself is handled by TileGrid (grid.py).

=============================================================================
PROPERTIES ARE STRINGS
=============================================================================

Custom properties are kept as plain str -> str mappings. Values read from
files are never converted, and values written are str()'d. The `type`
attribute of a <property> is not interpreted.

=============================================================================
GLOBAL TILE IDs (GIDs)
=============================================================================

A Tileset here is a *reference*: it doesn't know its firstgid. The map
that binds a tileset decides the GID range it occupies:

    map.tilesets = {1: terrain, 145: terrain, 289: houses}

    GID 0   = empty tile
    GID 150 = tile 5 of the second "terrain" binding

=============================================================================
"""

import base64
import xml.etree.ElementTree as ET
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
from PIL import Image as PILImage


# Tiled stores tile data as little-endian unsigned 32 bit integers
TILE_DTYPE = np.dtype('<u4')


# =============================================================================
# PROPERTY HELPERS
# =============================================================================

def read_properties(elem: ET.Element) -> Dict[str, str]:
    """
    Collect the <properties> child of `elem` into a dict.

    XML format:
        <properties>
            <property name="music" value="town.ogg"/>
            <property name="notes">multi-line
        text value</property>
        </properties>
    """
    properties: Dict[str, str] = {}
    props_elem = elem.find('properties')
    if props_elem is None:
        return properties

    for prop_elem in props_elem.findall('property'):
        name = prop_elem.get('name')
        if name is None:
            raise ValueError("<property> without a name")
        # Multi-line strings are stored as element text instead of value=
        value = prop_elem.get('value')
        if value is None:
            value = prop_elem.text or ''
        properties[name] = value
    return properties


def write_properties(parent: ET.Element, properties: Dict[str, str]):
    """Append a <properties> child to `parent` unless there's nothing to write."""
    if not properties:
        return
    props_elem = ET.SubElement(parent, 'properties')
    for name, value in properties.items():
        prop_elem = ET.SubElement(props_elem, 'property')
        prop_elem.set('name', name)
        prop_elem.set('value', str(value))


def indent_xml(elem: ET.Element, level: int = 0):
    """
    Add newlines and two-space indentation to `elem`, recursively.

    ElementTree doesn't pretty-print on its own. Text that already has
    content (e.g. CSV tile data) is left alone.
    """
    indent = "\n" + "  " * level

    if len(elem):
        if not elem.text or not elem.text.strip():
            elem.text = indent + "  "
        if not elem.tail or not elem.tail.strip():
            elem.tail = indent

        for child in elem:
            indent_xml(child, level + 1)

        # Last child closes the parent's indentation
        if not child.tail or not child.tail.strip():
            child.tail = indent
    else:
        if level and (not elem.tail or not elem.tail.strip()):
            elem.tail = indent


def _int(elem: ET.Element, name: str, default: int = 0) -> int:
    value = elem.get(name)
    return int(value) if value else default


def _float(elem: ET.Element, name: str, default: float = 0.0) -> float:
    value = elem.get(name)
    return float(value) if value else default


# =============================================================================
# IMAGE
# =============================================================================

@dataclass
class Image:
    """
    Image file reference of a tileset (or of a single tile in an image
    collection tileset). `source` is relative to the file that names it.
    """
    source: str
    width: Optional[int] = None
    height: Optional[int] = None
    trans: Optional[str] = None          # Transparent color, e.g. "ff00ff"

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'Image':
        return cls(
            source=elem.get('source', ''),
            width=int(elem.get('width')) if elem.get('width') else None,
            height=int(elem.get('height')) if elem.get('height') else None,
            trans=elem.get('trans')
        )

    def to_xml(self) -> ET.Element:
        elem = ET.Element('image')
        elem.set('source', self.source)
        if self.width:
            elem.set('width', str(self.width))
        if self.height:
            elem.set('height', str(self.height))
        if self.trans:
            elem.set('trans', self.trans)
        return elem


# =============================================================================
# TILE
# =============================================================================

@dataclass
class Tile:
    """
    Metadata of one tile inside a tileset.

    The id is LOCAL to the tileset (0-based); the GID of a tile is the
    binding's firstgid plus this id. Only tiles carrying properties or an
    own image appear in a file.
    """
    id: int
    type: str = ""
    properties: Dict[str, str] = field(default_factory=dict)
    image: Optional[Image] = None

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'Tile':
        tile = cls(id=_int(elem, 'id'), type=elem.get('type', ''))
        tile.properties = read_properties(elem)
        img_elem = elem.find('image')
        if img_elem is not None:
            tile.image = Image.from_xml(img_elem)
        return tile

    def to_xml(self) -> ET.Element:
        elem = ET.Element('tile')
        elem.set('id', str(self.id))
        if self.type:
            elem.set('type', self.type)
        write_properties(elem, self.properties)
        if self.image:
            elem.append(self.image.to_xml())
        return elem


# =============================================================================
# TILESET
# =============================================================================

@dataclass(eq=False)
class Tileset:
    """
    A collection of tile graphics that maps can bind.

    ==========================================================================
    EMBEDDED vs EXTERNAL
    ==========================================================================

    EMBEDDED: the full definition is written into every map binding it.

    EXTERNAL: `source` names a .tsx file; map files only store
        <tileset firstgid="1" source="../tilesets/terrain.tsx"/>
    and the definition is re-read from the TSX when the map is loaded.

    ==========================================================================
    TILE COUNT
    ==========================================================================

    `tilecount` is what a map's GID allocator advances by when the tileset
    gets bound. For spritesheets it follows from the image size:

        columns = (image_width  - 2*margin + spacing) // (tilewidth  + spacing)
        rows    = (image_height - 2*margin + spacing) // (tileheight + spacing)
        tilecount = columns * rows

    Tilesets compare by identity: binding the same tileset twice gives two
    GID ranges referring to one object.
    ==========================================================================
    """
    name: str
    tilewidth: int
    tileheight: int
    tilecount: int = 0
    columns: int = 0
    spacing: int = 0
    margin: int = 0
    image: Optional[Image] = None
    tiles: Dict[int, Tile] = field(default_factory=dict)
    properties: Dict[str, str] = field(default_factory=dict)
    source: Optional[str] = None                     # TSX path, if external

    @classmethod
    def from_image(cls, path: Union[str, Path], tilewidth: int, tileheight: int,
                   name: Optional[str] = None, spacing: int = 0, margin: int = 0,
                   source: Optional[str] = None) -> 'Tileset':
        """
        Create a spritesheet tileset, measuring the image with Pillow.

        Parameters:
        -----------
        path : str or Path
            The spritesheet on disk.
        source : str, optional
            Image path as it should appear in map files (relative to them).
            Defaults to the file name of `path`.
        """
        path = Path(path)
        with PILImage.open(path) as img:
            width, height = img.size

        columns = max(0, (width - 2 * margin + spacing) // (tilewidth + spacing))
        rows = max(0, (height - 2 * margin + spacing) // (tileheight + spacing))

        return cls(
            name=name or path.stem,
            tilewidth=tilewidth,
            tileheight=tileheight,
            tilecount=columns * rows,
            columns=columns,
            spacing=spacing,
            margin=margin,
            image=Image(source=source or path.name, width=width, height=height)
        )

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'Tileset':
        """Parse a <tileset> element of a map or the root of a TSX file."""
        tileset = cls(
            name=elem.get('name', ''),
            tilewidth=_int(elem, 'tilewidth'),
            tileheight=_int(elem, 'tileheight'),
            tilecount=_int(elem, 'tilecount'),
            columns=_int(elem, 'columns'),
            spacing=_int(elem, 'spacing'),
            margin=_int(elem, 'margin'),
            source=elem.get('source')
        )
        tileset.properties = read_properties(elem)

        img_elem = elem.find('image')
        if img_elem is not None:
            tileset.image = Image.from_xml(img_elem)

        for tile_elem in elem.findall('tile'):
            tile = Tile.from_xml(tile_elem)
            tileset.tiles[tile.id] = tile

        return tileset

    @classmethod
    def load_tsx(cls, path: Union[str, Path]) -> 'Tileset':
        """Read an external tileset file."""
        root = ET.parse(path).getroot()
        return cls.from_xml(root)

    def to_xml(self, firstgid: Optional[int] = None) -> ET.Element:
        """
        Build the <tileset> element.

        With a firstgid this is a map binding; external tilesets are then
        written as a bare reference. Without one, the full definition is
        produced (TSX export).
        """
        elem = ET.Element('tileset')

        if firstgid is not None:
            elem.set('firstgid', str(firstgid))
            if self.source:
                elem.set('source', self.source)
                return elem

        elem.set('name', self.name)
        elem.set('tilewidth', str(self.tilewidth))
        elem.set('tileheight', str(self.tileheight))
        elem.set('tilecount', str(self.tilecount))
        elem.set('columns', str(self.columns))
        if self.spacing:
            elem.set('spacing', str(self.spacing))
        if self.margin:
            elem.set('margin', str(self.margin))

        write_properties(elem, self.properties)

        if self.image:
            elem.append(self.image.to_xml())
        for tile in self.tiles.values():
            elem.append(tile.to_xml())

        return elem

    def save_tsx(self, path: Union[str, Path]):
        """Write the full definition to an external tileset file."""
        root = self.to_xml()
        root.set('version', '1.10')
        indent_xml(root)
        ET.ElementTree(root).write(path, encoding='utf-8', xml_declaration=True)


# =============================================================================
# LAYER DATA
# =============================================================================

@dataclass(eq=False)
class LayerData:
    """
    The GIDs of a tile layer plus the policy used to write them.

    ==========================================================================
    ENCODINGS
    ==========================================================================

    None (XML tiles, deprecated):  <data><tile gid="1"/>...</data>
    'csv':                         <data encoding="csv">1,2,3,...</data>
    'base64':                      <data encoding="base64">AQAAAA...</data>

    Base64 payloads may be compressed with 'zlib', 'gzip' or 'zstd'
    (the latter needs the zstandard package).

    ==========================================================================
    STORAGE
    ==========================================================================

    Tiles are a flat numpy uint32 vector in row-major order:
    tiles[y * width + x]. The vector doesn't know its width; the owning
    layer does.
    ==========================================================================
    """
    encoding: Optional[str] = None
    compression: Optional[str] = None
    tiles: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))

    def decode_data(self, data_elem: ET.Element):
        """Read the tiles and encoding policy from a <data> element."""
        encoding = data_elem.get('encoding')
        compression = data_elem.get('compression')

        if encoding == 'csv':
            csv_data = (data_elem.text or '').strip()
            # Trailing commas leave empty fields behind
            gids = [int(x) for x in csv_data.replace('\n', '').split(',') if x.strip()]
            self.tiles = _gid_array(gids)

        elif encoding == 'base64':
            raw_data = base64.b64decode((data_elem.text or '').strip())
            raw_data = _decompress(raw_data, compression)
            self.tiles = np.frombuffer(raw_data, dtype=TILE_DTYPE).astype(np.uint32)

        elif encoding is None:
            gids = [_int(tile_elem, 'gid') for tile_elem in data_elem.findall('tile')]
            self.tiles = _gid_array(gids)

        else:
            raise ValueError(f"unknown tile data encoding {encoding!r}")

        self.encoding = encoding
        self.compression = compression

    def to_xml(self, width: int, height: int) -> ET.Element:
        """Write the tiles using this object's encoding policy."""
        elem = ET.Element('data')

        if self.encoding == 'csv':
            elem.set('encoding', 'csv')
            rows = []
            for y in range(height):
                row = self.tiles[y * width:(y + 1) * width]
                rows.append(','.join(str(int(gid)) for gid in row))
            elem.text = '\n' + ',\n'.join(rows) + '\n'

        elif self.encoding == 'base64':
            elem.set('encoding', 'base64')
            if self.compression:
                elem.set('compression', self.compression)
            raw_data = self.tiles.astype(TILE_DTYPE).tobytes()
            raw_data = _compress(raw_data, self.compression)
            elem.text = '\n' + base64.b64encode(raw_data).decode('ascii') + '\n'

        elif self.encoding is None:
            for gid in self.tiles:
                ET.SubElement(elem, 'tile').set('gid', str(int(gid)))

        else:
            raise ValueError(f"unknown tile data encoding {self.encoding!r}")

        return elem

    def fit(self, width: int, height: int, new_width: int, new_height: int):
        """
        Crop or pad the tiles from a width x height grid to a new size.

        The top-left corner stays in place; new cells are empty (GID 0).
        A payload that doesn't hold width*height tiles is treated as a flat
        sequence and truncated or zero-padded.
        """
        fitted = np.zeros((new_height, new_width), dtype=np.uint32)

        if self.tiles.size == width * height:
            old = self.tiles.reshape((height, width))
            rows = min(height, new_height)
            cols = min(width, new_width)
            fitted[:rows, :cols] = old[:rows, :cols]
        else:
            flat = fitted.reshape(-1)
            count = min(self.tiles.size, flat.size)
            flat[:count] = self.tiles[:count]

        self.tiles = fitted.reshape(-1)


def _gid_array(gids: List[int]) -> np.ndarray:
    for gid in gids:
        if not 0 <= gid <= 0xFFFFFFFF:
            raise ValueError(f"tile GID out of range: {gid}")
    return np.array(gids, dtype=np.uint32)


def _decompress(raw_data: bytes, compression: Optional[str]) -> bytes:
    """
    Undo the payload compression.

    Corrupt payloads raise ValueError whatever the compression.
    """
    if not compression:
        return raw_data
    try:
        if compression == 'zlib':
            return zlib.decompress(raw_data)
        if compression == 'gzip':
            import gzip
            return gzip.decompress(raw_data)
    except (OSError, EOFError, zlib.error) as e:
        # gzip.BadGzipFile is an OSError, truncated streams raise EOFError
        raise ValueError(f"corrupt {compression} tile data: {e}") from e
    if compression == 'zstd':
        zstandard = _zstd()
        try:
            return zstandard.ZstdDecompressor().decompress(raw_data)
        except zstandard.ZstdError as e:
            raise ValueError(f"corrupt zstd tile data: {e}") from e
    raise ValueError(f"unknown tile data compression {compression!r}")


def _compress(raw_data: bytes, compression: Optional[str]) -> bytes:
    if not compression:
        return raw_data
    if compression == 'zlib':
        return zlib.compress(raw_data)
    if compression == 'gzip':
        import gzip
        return gzip.compress(raw_data)
    if compression == 'zstd':
        return _zstd().ZstdCompressor().compress(raw_data)
    raise ValueError(f"unknown tile data compression {compression!r}")


def _zstd():
    # zstd isn't in the stdlib
    try:
        import zstandard
    except ImportError:
        raise ImportError(
            "zstandard library required for zstd compression. "
            "Install with: pip install zstandard"
        )
    return zstandard


# =============================================================================
# TILE LAYER
# =============================================================================

@dataclass(eq=False)
class TileLayer:
    """
    A grid of GIDs.

    `width`/`height` describe the payload in `data`. When a map is resized
    they keep their old values until the map file codec fits the layer to
    the map's new dimensions on the next save or load.

        gid = layer.get_tile_gid(5, 10)
        layer.set_tile_gid(5, 10, 42)
    """
    name: str
    width: int
    height: int
    id: int = 0
    visible: bool = True
    opacity: float = 1.0
    offsetx: float = 0
    offsety: float = 0
    properties: Dict[str, str] = field(default_factory=dict)
    data: LayerData = field(default_factory=LayerData)

    def __post_init__(self):
        if self.data.tiles.size == 0 and self.width * self.height:
            self.data.tiles = np.zeros(self.width * self.height, dtype=np.uint32)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'TileLayer':
        layer = cls(
            name=elem.get('name', ''),
            width=_int(elem, 'width'),
            height=_int(elem, 'height'),
            id=_int(elem, 'id'),
            visible=elem.get('visible', '1') == '1',
            opacity=_float(elem, 'opacity', 1.0),
            offsetx=_float(elem, 'offsetx'),
            offsety=_float(elem, 'offsety'),
        )
        layer.properties = read_properties(elem)

        data_elem = elem.find('data')
        if data_elem is not None:
            layer.data = LayerData()
            layer.data.decode_data(data_elem)
        return layer

    def to_xml(self) -> ET.Element:
        elem = ET.Element('layer')
        elem.set('id', str(self.id))
        elem.set('name', self.name)
        elem.set('width', str(self.width))
        elem.set('height', str(self.height))

        # Defaults are left out
        if not self.visible:
            elem.set('visible', '0')
        if self.opacity != 1.0:
            elem.set('opacity', str(self.opacity))
        if self.offsetx:
            elem.set('offsetx', str(self.offsetx))
        if self.offsety:
            elem.set('offsety', str(self.offsety))

        write_properties(elem, self.properties)
        elem.append(self.data.to_xml(self.width, self.height))
        return elem

    def fit_to(self, width: int, height: int):
        """Crop or pad the payload to width x height."""
        if (width, height) == (self.width, self.height) and self.data.tiles.size == width * height:
            return
        self.data.fit(self.width, self.height, width, height)
        self.width = width
        self.height = height

    def get_tile_gid(self, x: int, y: int) -> int:
        """GID at column x, row y. Out of bounds reads as empty (0)."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return int(self.data.tiles[y * self.width + x])
        return 0

    def set_tile_gid(self, x: int, y: int, gid: int):
        """Set the GID at column x, row y. Out of bounds writes are ignored."""
        if 0 <= x < self.width and 0 <= y < self.height:
            self.data.tiles[y * self.width + x] = gid


# =============================================================================
# MAP OBJECT
# =============================================================================

@dataclass(eq=False)
class MapObject:
    """
    A placed object: spawn points, doors, NPC positions, triggers, ...

    `id` stays None until the object is added to a map, which hands out a
    map-unique id. Tile objects carry a `gid`.
    """
    id: Optional[int] = None
    name: str = ""
    type: str = ""
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0
    rotation: float = 0
    gid: Optional[int] = None
    visible: bool = True
    properties: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'MapObject':
        obj = cls(
            id=int(elem.get('id')) if elem.get('id') else None,
            name=elem.get('name', ''),
            type=elem.get('type', elem.get('class', '')),
            x=_float(elem, 'x'),
            y=_float(elem, 'y'),
            width=_float(elem, 'width'),
            height=_float(elem, 'height'),
            rotation=_float(elem, 'rotation'),
            visible=elem.get('visible', '1') == '1'
        )
        if elem.get('gid'):
            obj.gid = int(elem.get('gid'))
        obj.properties = read_properties(elem)
        return obj

    def to_xml(self) -> ET.Element:
        elem = ET.Element('object')
        if self.id is not None:
            elem.set('id', str(self.id))
        if self.name:
            elem.set('name', self.name)
        if self.type:
            elem.set('type', self.type)

        elem.set('x', str(self.x))
        elem.set('y', str(self.y))

        if self.width:
            elem.set('width', str(self.width))
        if self.height:
            elem.set('height', str(self.height))
        if self.rotation:
            elem.set('rotation', str(self.rotation))
        if self.gid is not None:
            elem.set('gid', str(self.gid))
        if not self.visible:
            elem.set('visible', '0')

        write_properties(elem, self.properties)
        return elem


# =============================================================================
# OBJECT GROUP
# =============================================================================

@dataclass(eq=False)
class ObjectGroup:
    """Object layer. Objects keep the order they were added in."""
    name: str
    id: int = 0
    visible: bool = True
    opacity: float = 1.0
    offsetx: float = 0
    offsety: float = 0
    properties: Dict[str, str] = field(default_factory=dict)
    objects: List[MapObject] = field(default_factory=list)

    @classmethod
    def from_xml(cls, elem: ET.Element) -> 'ObjectGroup':
        group = cls(
            name=elem.get('name', ''),
            id=_int(elem, 'id'),
            visible=elem.get('visible', '1') == '1',
            opacity=_float(elem, 'opacity', 1.0),
            offsetx=_float(elem, 'offsetx'),
            offsety=_float(elem, 'offsety'),
        )
        group.properties = read_properties(elem)
        for obj_elem in elem.findall('object'):
            group.objects.append(MapObject.from_xml(obj_elem))
        return group

    def to_xml(self) -> ET.Element:
        elem = ET.Element('objectgroup')
        elem.set('id', str(self.id))
        elem.set('name', self.name)

        if not self.visible:
            elem.set('visible', '0')
        if self.opacity != 1.0:
            elem.set('opacity', str(self.opacity))
        if self.offsetx:
            elem.set('offsetx', str(self.offsetx))
        if self.offsety:
            elem.set('offsety', str(self.offsety))

        write_properties(elem, self.properties)
        for obj in self.objects:
            elem.append(obj.to_xml())
        return elem


Layer = Union[TileLayer, ObjectGroup]


def create_layer(name: str, width: int, height: int) -> TileLayer:
    """An empty tile layer (all GIDs 0) of the given size."""
    return TileLayer(name=name, width=width, height=height)
