"""
Reading and writing single map files.

A map file is a TMX document named after the map's id:

    maps/
    ├── 0001.tmx
    ├── 0002.tmx
    └── 10000.tmx

The id is *only* stored in the file name, so renaming a map file changes
the map's id. A map file knows nothing about parents or children; see
HierarchyCodec for that.
"""

import logging
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union

from maptree.conf import settings
from maptree.errors import MalformedMapFile, NonexistantDirectory, NonexistantFile
from maptree.tmx import TileGrid, indent_xml

from .entity import MapEntity

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r'^(\d+)$')


class MapFileCodec:
    """
    Converts between MapEntity objects and their files.

    Parameters:
    -----------
    extension : str, optional
        File extension without the dot; settings.MAP_FILE_EXTENSION if
        omitted.
    """

    def __init__(self, extension: Optional[str] = None):
        self._extension = extension

    @property
    def extension(self) -> str:
        return self._extension or settings.MAP_FILE_EXTENSION

    def format_filename(self, map_id: int) -> str:
        return MapEntity.format_filename(map_id, self.extension)

    def parse_filename(self, path: Union[str, Path]) -> int:
        """
        Recover the map id from a file name ("0042.tmx" -> 42).

        Raises:
        -------
        MalformedMapFile : the name isn't a positive number plus extension
        """
        path = Path(path)
        match = _FILENAME_RE.match(path.stem)
        if not match or int(match.group(1)) == 0:
            raise MalformedMapFile(path, None, f"'{path.name}' doesn't name a map ID")
        return int(match.group(1))

    def decode(self, path: Union[str, Path]) -> MapEntity:
        """
        Load the map stored at `path`.

        The returned map is always a root map without children.

        Raises:
        -------
        NonexistantFile : `path` isn't a file
        MalformedMapFile : bad file name, or the content isn't a TMX map
        """
        path = Path(path)
        if not path.is_file():
            raise NonexistantFile(path)

        map_id = self.parse_filename(path)

        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as e:
            line = e.position[0] if e.position else None
            raise MalformedMapFile(path, line, str(e)) from e

        if root.tag != 'map':
            raise MalformedMapFile(path, None, f"expected a <map> root element, found <{root.tag}>")

        try:
            grid = TileGrid.from_xml(root, path.parent)
        except (ValueError, ET.ParseError) as e:
            raise MalformedMapFile(path, None, str(e)) from e

        map_ = MapEntity.from_grid(map_id, grid)
        logger.debug("Loaded map %d from %s", map_id, path)
        return map_

    def encode(self, map_: MapEntity, directory: Union[str, Path]) -> Path:
        """
        Write `map_` into `directory`, replacing any existing file of the
        same name. Returns the written path.

        Raises:
        -------
        NonexistantDirectory : `directory` doesn't exist
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise NonexistantDirectory(directory)

        grid = map_.grid
        grid.nextobjectid = max(grid.nextobjectid,
                                map_.object_id_allocator.last + 1,
                                grid.highest_object_id() + 1)

        root = grid.to_xml()
        indent_xml(root)

        target = directory / self.format_filename(map_.id)
        ET.ElementTree(root).write(target, encoding='utf-8', xml_declaration=True)
        logger.debug("Saved map %d to %s", map_.id, target)
        return target
