"""Default settings for the map tree.

Projects can override these in their own settings module:

    # settings.py
    DEFAULT_MAP_WIDTH = 40
    DEFAULT_LAYER_ENCODING = "csv"
    DEFAULT_LAYER_COMPRESSION = None
"""

# New maps
DEFAULT_MAP_WIDTH = 20
"""Width in tiles of a freshly created map."""

DEFAULT_MAP_HEIGHT = 15
"""Height in tiles of a freshly created map."""

DEFAULT_TILE_EDGE = 32
"""Tile width and height in pixels of a freshly created map."""

DEFAULT_LAYER_NAME = "Ground"
"""Name of the empty tile layer every new map starts with."""

# Tile layer payloads
DEFAULT_LAYER_ENCODING = "base64"
"""Encoding for tile layers that don't set one: "csv", "base64" or None (XML tiles)."""

DEFAULT_LAYER_COMPRESSION = "zlib"
"""Compression used together with base64: "zlib", "gzip", "zstd" or None."""

# Storage
MAP_FILE_EXTENSION = "tmx"
"""Extension of the per-map files."""

MAP_FILENAME_DIGITS = 4
"""Minimum number of digits in a map file name; ids are zero-padded to it."""

MAPS_FILE_NAME = "maps.xml"
"""Name of the hierarchy descriptor inside a project's maps directory."""

TMX_VERSION = "1.10"
"""Version attribute written into map files."""
