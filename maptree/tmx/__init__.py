"""TMX map file content: tilesets, layers, objects and the map grid"""

from .elements import (
    Image, LayerData, MapObject, ObjectGroup, Tile, TileLayer, Tileset,
    create_layer, indent_xml,
)
from .grid import TileGrid, create_empty_grid

__all__ = [
    "Image",
    "LayerData",
    "MapObject",
    "ObjectGroup",
    "Tile",
    "TileLayer",
    "Tileset",
    "TileGrid",
    "create_layer",
    "create_empty_grid",
    "indent_xml",
]
