"""Maps, their tree, and how both are stored"""

from .allocators import ObjectIdAllocator, TilesetGidAllocator
from .codec import MapFileCodec
from .entity import MapEntity
from .hierarchy import HierarchyCodec, MapNode
from .storage import MapTreeService, load_tree, save_tree

__all__ = [
    "HierarchyCodec",
    "MapEntity",
    "MapFileCodec",
    "MapNode",
    "MapTreeService",
    "ObjectIdAllocator",
    "TilesetGidAllocator",
    "load_tree",
    "save_tree",
]
