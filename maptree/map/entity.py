"""
A single map of a project's map tree.

=============================================================================
TREE SHAPE
=============================================================================

Maps form a forest. Every map has at most one parent (held weakly; the
tree owns its maps through the children lists) and any number of
children:

    map1
     └── map2
          ├── map3
          └── map4

The only operation that changes the shape is set_parent(); mount() and
unmount() and the `parent` setter are spelled-out aliases for it. It keeps
both sides of the relationship in step and notifies:

    1. the old parent   ChildRemoved
    2. the new parent   ChildAdded
    3. the map itself   ParentChanged

=============================================================================
TILE CONTENT
=============================================================================

Dimensions, layers, tilesets and properties live in a TileGrid the map
holds on to (`map.grid`). The map adds ids, events and per-map
allocation of object ids and tileset GIDs on top of it.
=============================================================================
"""

import logging
import weakref
from typing import Dict, Iterator, List, Optional, Tuple, Union

from maptree.conf import settings
from maptree.errors import CyclicMapTree, NotAnObjectLayer
from maptree.events import (
    ChildAdded, ChildRemoved, LayerAdded, ObjectAdded, Observable,
    ParentChanged, PropertyChanged, SizeChanged, TilesetAdded,
)
from maptree.tmx import MapObject, ObjectGroup, TileGrid, TileLayer, Tileset, create_empty_grid
from maptree.tmx.elements import Layer

from .allocators import ObjectIdAllocator, TilesetGidAllocator

logger = logging.getLogger(__name__)


def _check_id(map_id) -> int:
    if isinstance(map_id, bool):
        raise ValueError(f"Invalid map ID {map_id!r}")
    try:
        map_id = int(map_id)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid map ID {map_id!r}") from None
    if map_id <= 0:
        raise ValueError(f"Map IDs must be positive, got {map_id}")
    return map_id


class MapEntity(Observable):
    """
    One map: id, properties, tile content and its place in the tree.

    Parameters:
    -----------
    map_id : int
        Positive id, unique within the project. Can't be changed later.
    name : str, optional
        Human-readable name, "Map_0001" style if not given.
    width, height : int, optional
        Size in tiles; defaults come from settings (20x15).
    tile_edge : int, optional
        Tile width and height in pixels (settings default: 32).
    """

    def __init__(self, map_id: int, name: Optional[str] = None,
                 width: Optional[int] = None, height: Optional[int] = None,
                 tile_edge: Optional[int] = None):
        width = settings.DEFAULT_MAP_WIDTH if width is None else width
        height = settings.DEFAULT_MAP_HEIGHT if height is None else height
        tile_edge = settings.DEFAULT_TILE_EDGE if tile_edge is None else tile_edge

        grid = create_empty_grid(width, height, tile_edge, tile_edge,
                                 layer_name=settings.DEFAULT_LAYER_NAME)
        grid.version = settings.TMX_VERSION
        for layer in grid.layers:
            _apply_default_encoding(layer)

        self._setup(map_id, grid, ObjectIdAllocator(), TilesetGidAllocator())
        self.grid.properties["name"] = name if name is not None else self.default_name(self._id)

    @classmethod
    def from_grid(cls, map_id: int, grid: TileGrid) -> 'MapEntity':
        """
        Wrap tile content read from a file. The result is a root map without
        children; MapTreeService reattaches it to the tree.
        """
        map_ = cls.__new__(cls)
        last_object_id = max(grid.highest_object_id(), grid.nextobjectid - 1)
        map_._setup(map_id, grid, ObjectIdAllocator(last_object_id),
                    TilesetGidAllocator(grid.gid_frontier()))
        return map_

    def _setup(self, map_id, grid, object_ids, gids):
        self._id = _check_id(map_id)
        self._parent_ref: Optional[weakref.ref] = None
        self._children: List['MapEntity'] = []
        self.grid = grid
        self._object_ids = object_ids
        self._gids = gids

    @staticmethod
    def default_name(map_id: int) -> str:
        return f"Map_{map_id:04d}"

    @staticmethod
    def format_filename(map_id: int, extension: Optional[str] = None) -> str:
        """
        File name a map with the given id is stored under.

            format_filename(1)      -> "0001.tmx"
            format_filename(10000)  -> "10000.tmx"
        """
        digits = settings.MAP_FILENAME_DIGITS
        extension = extension or settings.MAP_FILE_EXTENSION
        return f"{map_id:0{digits}d}.{extension}"

    # -------------------------------------------------------------------------
    # Identity and properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> int:
        return self._id

    @property
    def filename(self) -> str:
        return self.format_filename(self._id)

    @property
    def name(self) -> str:
        return self.grid.properties.get("name", self.default_name(self._id))

    @name.setter
    def name(self, value: str):
        self.set_property("name", value)

    @property
    def properties(self) -> Dict[str, str]:
        """A copy of all properties; use set_property() to change them."""
        return dict(self.grid.properties)

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.grid.properties.get(str(key), default)

    def set_property(self, key: str, value) -> None:
        """Store `value` as a string and emit PropertyChanged."""
        key = str(key)
        value = str(value)
        self.grid.properties[key] = value
        self.notify_observers(PropertyChanged(self, key, value))

    def __getitem__(self, key: str) -> str:
        return self.grid.properties[str(key)]

    def __setitem__(self, key: str, value) -> None:
        self.set_property(key, value)

    # -------------------------------------------------------------------------
    # Tree
    # -------------------------------------------------------------------------

    @property
    def parent(self) -> Optional['MapEntity']:
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, new_parent: Optional['MapEntity']):
        self.set_parent(new_parent)

    @property
    def children(self) -> Tuple['MapEntity', ...]:
        return tuple(self._children)

    def set_parent(self, new_parent: Optional['MapEntity']) -> None:
        """
        Move this map (with its subtree) below `new_parent`, or make it a
        root map when `new_parent` is None.

        Setting the current parent again does nothing: the map keeps its
        place among its siblings and no events are emitted.

        Raises:
        -------
        CyclicMapTree : `new_parent` is this map or one of its descendants
        """
        old_parent = self.parent
        if new_parent is old_parent:
            return

        if new_parent is not None and (new_parent is self or self.is_ancestor_of(new_parent)):
            raise CyclicMapTree(self, new_parent)

        if old_parent is not None:
            old_parent._children.remove(self)
            old_parent.notify_observers(ChildRemoved(old_parent, self))

        if new_parent is not None:
            new_parent._children.append(self)
            new_parent.notify_observers(ChildAdded(new_parent, self))

        self._parent_ref = weakref.ref(new_parent) if new_parent is not None else None
        logger.debug("Map %d: parent %s -> %s", self._id,
                     old_parent.id if old_parent is not None else None,
                     new_parent.id if new_parent is not None else None)
        self.notify_observers(ParentChanged(self, new_parent))

    def mount(self, parent: 'MapEntity') -> None:
        """Attach this map below `parent`."""
        self.set_parent(parent)

    def unmount(self) -> None:
        """Detach this map (and its subtree) from its parent."""
        self.set_parent(None)

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def root(self) -> 'MapEntity':
        """The topmost ancestor, or the map itself for root maps."""
        current = self
        while current.parent is not None:
            current = current.parent
        return current

    def has_child(self, map_or_id: Union['MapEntity', int]) -> bool:
        """True if the map (or a map with that id) is a direct child."""
        if isinstance(map_or_id, MapEntity):
            return any(child is map_or_id for child in self._children)
        return any(child.id == map_or_id for child in self._children)

    def is_ancestor_of(self, other: 'MapEntity') -> bool:
        current = other.parent
        while current is not None:
            if current is self:
                return True
            current = current.parent
        return False

    def traverse(self, include_self: bool = False) -> Iterator['MapEntity']:
        """
        Pre-order walk over all descendants, optionally starting with self.

        Lazy: maps are produced as the walk reaches them. Every call starts
        a new walk.
        """
        if include_self:
            yield self

        stack = list(reversed(self._children))
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current._children))

    # -------------------------------------------------------------------------
    # Tile content
    # -------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self.grid.width

    @width.setter
    def width(self, value: int):
        self.resize(value, self.grid.height)

    @property
    def height(self) -> int:
        return self.grid.height

    @height.setter
    def height(self, value: int):
        self.resize(self.grid.width, value)

    @property
    def tilewidth(self) -> int:
        return self.grid.tilewidth

    @property
    def tileheight(self) -> int:
        return self.grid.tileheight

    def resize(self, width: int, height: int) -> None:
        """
        Change the map's size in tiles and emit SizeChanged.

        Tile layer payloads aren't touched here; they are cropped or padded
        when the map is next written or read.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Map size must be positive, got {width}x{height}")
        self.grid.width = width
        self.grid.height = height
        self.notify_observers(SizeChanged(self, width, height))

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return tuple(self.grid.layers)

    def add_layer(self, layer: Layer) -> Layer:
        """
        Append `layer` on top of all others and emit LayerAdded.

        Tile layers without an encoding get the configured defaults. A
        layer id of 0 is replaced by the map's next free layer id.
        """
        if isinstance(layer, TileLayer):
            _apply_default_encoding(layer)

        if not layer.id:
            layer.id = self.grid.nextlayerid
        self.grid.nextlayerid = max(self.grid.nextlayerid, layer.id + 1)

        self.grid.layers.append(layer)
        self.notify_observers(LayerAdded(self, layer))
        return layer

    @property
    def tilesets(self) -> Dict[int, Tileset]:
        """Copy of the bindings, firstgid -> tileset."""
        return dict(self.grid.tilesets)

    @property
    def next_gid(self) -> int:
        return self._gids.next()

    @property
    def gid_allocator(self) -> TilesetGidAllocator:
        return self._gids

    def add_tileset(self, tileset: Tileset, gid: Optional[int] = None) -> int:
        """
        Bind `tileset` and emit TilesetAdded. Returns its firstgid.

        Without `gid` the next free range is allocated. An explicit `gid` is
        used as given: it isn't checked against existing bindings and it
        doesn't move the allocator, so later automatic bindings may overlap
        it.
        """
        if gid is None:
            gid = self._gids.allocate(tileset.tilecount)
        self.grid.tilesets[gid] = tileset
        self.notify_observers(TilesetAdded(self, gid, tileset))
        return gid

    @property
    def objects(self) -> List[MapObject]:
        return list(self.grid.iter_objects())

    @property
    def object_id_allocator(self) -> ObjectIdAllocator:
        return self._object_ids

    def add_object(self, layer: Layer, obj: Optional[MapObject] = None) -> MapObject:
        """
        Place `obj` (a new blank object if omitted) on an object layer of
        this map and emit ObjectAdded.

        Objects without an id get the next one from the map's allocator;
        an explicit id is reserved there so it isn't handed out again.
        Objects without a name get "Object_<id>".

        Raises:
        -------
        NotAnObjectLayer : `layer` is a tile layer
        ValueError : `layer` doesn't belong to this map
        """
        if not isinstance(layer, ObjectGroup):
            raise NotAnObjectLayer(layer)
        if not any(own is layer for own in self.grid.layers):
            raise ValueError(f"Layer {layer.name!r} doesn't belong to map {self._id}")

        if obj is None:
            obj = MapObject()
        if obj.id is None:
            obj.id = self._object_ids.next()
        else:
            self._object_ids.reserve(obj.id)
        if not obj.name:
            obj.name = f"Object_{obj.id:04d}"

        layer.objects.append(obj)
        self.notify_observers(ObjectAdded(self, layer, obj))
        return obj

    def __repr__(self):
        return f"<{self.__class__.__name__} {self._id} {self.name!r}>"


def _apply_default_encoding(layer: TileLayer):
    if layer.data.encoding is None and layer.data.compression is None:
        layer.data.encoding = settings.DEFAULT_LAYER_ENCODING
        layer.data.compression = settings.DEFAULT_LAYER_COMPRESSION
