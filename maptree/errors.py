"""
Exceptions raised by the map tree.

All of them derive from MapTreeError, so callers that only want to know
"did loading/saving the maps fail" can catch that one class.

    MapTreeError
    ├── InvalidPath
    │   ├── NonexistantFile
    │   └── NonexistantDirectory
    ├── ParseError
    │   └── MalformedMapFile
    ├── DuplicateMapID
    ├── NotAnObjectLayer
    └── CyclicMapTree
"""

from pathlib import Path
from typing import Optional, Union


class MapTreeError(Exception):
    """Base class for every error of this library."""


class InvalidPath(MapTreeError):
    """
    Something expected on the filesystem is missing.

    Also raised when the entry exists but has the wrong type, e.g. a
    directory where a file should be.
    """

    def __init__(self, path: Union[str, Path], msg: Optional[str] = None):
        super().__init__(msg or f"The path '{path}' doesn't exist or isn't of the expected type.")
        self.path = Path(path)


class NonexistantDirectory(InvalidPath):
    """A directory couldn't be found."""

    def __init__(self, path: Union[str, Path], msg: Optional[str] = None):
        super().__init__(path, msg or f"Not a directory: '{path}'.")


class NonexistantFile(InvalidPath):
    """A file couldn't be found."""

    def __init__(self, path: Union[str, Path], msg: Optional[str] = None):
        super().__init__(path, msg or f"Not a file: '{path}'.")


class ParseError(MapTreeError):
    """
    A hierarchy or map file is structurally malformed.

    Attributes:
    -----------
    path : Path or None
        The offending file, if one applies.
    line : int or None
        The faulty line, when it can be determined.
    """

    def __init__(self, path: Optional[Union[str, Path]], line: Optional[int], message: str):
        location = ""
        if path is not None:
            location = f" in '{path}'" if line is None else f" in '{path}', line {line}"
        super().__init__(f"Parsing error{location}: {message}")
        self.path = Path(path) if path is not None else None
        self.line = line


class MalformedMapFile(ParseError):
    """A map file has no usable payload or its name doesn't encode an id."""


class DuplicateMapID(MapTreeError):
    """Two maps of one forest share an id."""

    def __init__(self, map_id: int, msg: Optional[str] = None):
        super().__init__(msg or f"Duplicate map ID {map_id}!")
        self.map_id = map_id


class NotAnObjectLayer(MapTreeError, TypeError):
    """An object was added to a layer that can't hold objects."""

    def __init__(self, layer, msg: Optional[str] = None):
        name = getattr(layer, "name", layer)
        super().__init__(msg or f"layer is not an object-container: {name!r}")
        self.layer = layer


class CyclicMapTree(MapTreeError, ValueError):
    """Reparenting would make a map its own ancestor."""

    def __init__(self, map_, parent, msg: Optional[str] = None):
        super().__init__(msg or f"Map {map_.id} can't be mounted below its own descendant {parent.id}.")
        self.map = map_
        self.parent = parent
