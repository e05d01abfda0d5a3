"""
The project a map tree belongs to.

A project directory looks like this:

    mygame/
    └── data/
        ├── maps/
        │   ├── maps.xml        map tree file
        │   ├── 0001.tmx
        │   └── 0002.tmx
        └── resources/
            └── graphics/
                └── tilesets/

Project holds the root maps, forwards its own RootMapAdded/RootMapRemoved
events, and runs the map tree through MapTreeService when it is loaded or
saved.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from maptree.conf import settings
from maptree.errors import NonexistantDirectory
from maptree.events import Observable, RootMapAdded, RootMapRemoved
from maptree.map import HierarchyCodec, MapEntity, MapTreeService

logger = logging.getLogger(__name__)


class ProjectPaths:
    """All paths of one project, derived from its root directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser().resolve()
        self.data_dir = self.root / "data"
        self.maps_dir = self.data_dir / "maps"
        self.maps_file = self.maps_dir / settings.MAPS_FILE_NAME
        self.resources_dir = self.data_dir / "resources"
        self.graphics_dir = self.resources_dir / "graphics"
        self.tilesets_dir = self.graphics_dir / "tilesets"

    def __repr__(self):
        return f"<ProjectPaths {self.root}>"


class Project(Observable):
    """
    A game project and its map tree.

    Use Project.create() for a new project directory and Project.load()
    for an existing one.
    """

    def __init__(self, paths: ProjectPaths, root_maps: Optional[List[MapEntity]] = None,
                 service: Optional[MapTreeService] = None):
        self.paths = paths
        self.service = service or MapTreeService()
        self._root_maps: List[MapEntity] = list(root_maps or [])

    @classmethod
    def create(cls, path: Union[str, Path]) -> 'Project':
        """
        Create the directory skeleton of an empty project at `path`.

        An existing map tree file is left alone; use load() to open a
        project that already has maps.
        """
        paths = ProjectPaths(path)
        for directory in (paths.maps_dir, paths.tilesets_dir):
            directory.mkdir(parents=True, exist_ok=True)

        project = cls(paths)
        if paths.maps_file.exists():
            logger.warning("Keeping existing map tree file %s", paths.maps_file)
        else:
            HierarchyCodec().encode([], paths.maps_file)
        logger.info("Created project at %s", paths.root)
        return project

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Project':
        """
        Open the project at `path`.

        Raises:
        -------
        NonexistantDirectory : `path` or its maps directory is missing
        NonexistantFile : the map tree file or a map file is missing
        ParseError : a malformed map tree or map file
        """
        if not Path(path).is_dir():
            raise NonexistantDirectory(path)

        paths = ProjectPaths(path)
        service = MapTreeService()
        root_maps = service.load_tree(paths.maps_dir, paths.maps_file)
        return cls(paths, root_maps, service)

    @property
    def root_maps(self) -> List[MapEntity]:
        """Copy of the root map list; use add_root_map()/remove_root_map()."""
        return list(self._root_maps)

    def add_root_map(self, map_: MapEntity) -> None:
        """Add a root map and emit RootMapAdded."""
        if not map_.is_root:
            raise ValueError(f"Map {map_.id} has a parent and can't be a root map")
        self._root_maps.append(map_)
        self.notify_observers(RootMapAdded(self, map_))

    def remove_root_map(self, map_: MapEntity) -> None:
        """
        Remove a root map and emit RootMapRemoved. Unknown maps are ignored.

        The map's file stays on disk until the next save().
        """
        if not any(own is map_ for own in self._root_maps):
            return
        self._root_maps = [own for own in self._root_maps if own is not map_]
        self.notify_observers(RootMapRemoved(self, map_))

    def iter_maps(self):
        """Every map of the project, tree by tree in pre-order."""
        for root in self._root_maps:
            yield from root.traverse(include_self=True)

    def find_map(self, map_id: int) -> Optional[MapEntity]:
        for map_ in self.iter_maps():
            if map_.id == map_id:
                return map_
        return None

    def next_map_id(self) -> int:
        """One past the highest id in use (1 for a project without maps)."""
        return max((map_.id for map_ in self.iter_maps()), default=0) + 1

    def save(self) -> None:
        """Write the map tree and all maps. See MapTreeService.save_tree()."""
        self.service.save_tree(self.paths.maps_dir, self.paths.maps_file, *self._root_maps)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.paths.root}>"
