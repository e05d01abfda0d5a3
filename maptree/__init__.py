"""
Map tree management for tile-map (TMX) projects

Maps are stored one TMX file each, their nesting in a separate map tree
file. See maptree.map.storage for how both are kept in step.
"""

from .errors import (
    CyclicMapTree, DuplicateMapID, InvalidPath, MalformedMapFile, MapTreeError,
    NonexistantDirectory, NonexistantFile, NotAnObjectLayer, ParseError,
)
from .events import EventType, Observable
from .map import (
    HierarchyCodec, MapEntity, MapFileCodec, MapNode, MapTreeService,
    ObjectIdAllocator, TilesetGidAllocator, load_tree, save_tree,
)
from .project import Project, ProjectPaths

__version__ = "0.3.0"
__all__ = [
    "CyclicMapTree",
    "DuplicateMapID",
    "EventType",
    "HierarchyCodec",
    "InvalidPath",
    "MalformedMapFile",
    "MapEntity",
    "MapFileCodec",
    "MapNode",
    "MapTreeError",
    "MapTreeService",
    "NonexistantDirectory",
    "NonexistantFile",
    "NotAnObjectLayer",
    "ObjectIdAllocator",
    "Observable",
    "ParseError",
    "Project",
    "ProjectPaths",
    "TilesetGidAllocator",
    "load_tree",
    "save_tree",
]
