"""
Saving and loading a whole map tree.

Storing maps takes two kinds of files: one TMX file per map, written by
MapFileCodec, and the map tree file describing the nesting, written by
HierarchyCodec. MapTreeService keeps the two consistent:

    service = MapTreeService()
    service.save_tree("data/maps", "data/maps/maps.xml", *root_maps)
    root_maps = service.load_tree("data/maps", "data/maps/maps.xml")

Saving wipes the maps directory first, so maps unmounted since the last
save disappear from disk. The map tree file may live inside that
directory; it is rewritten right after the wipe.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Set, Union

from maptree.errors import DuplicateMapID, NonexistantDirectory

from .codec import MapFileCodec
from .entity import MapEntity
from .hierarchy import HierarchyCodec, MapNode

logger = logging.getLogger(__name__)


class MapTreeService:
    """
    Loads and saves forests of maps.

    Callers serialize access themselves; nothing here is locked.
    """

    def __init__(self, map_codec: Optional[MapFileCodec] = None,
                 hierarchy_codec: Optional[HierarchyCodec] = None):
        self.map_codec = map_codec or MapFileCodec()
        self.hierarchy_codec = hierarchy_codec or HierarchyCodec()

    def load_tree(self, maps_dir: Union[str, Path],
                  hierarchy_path: Union[str, Path]) -> List[MapEntity]:
        """
        Rebuild the forest described by `hierarchy_path` from the map files
        in `maps_dir`.

        Returns:
        --------
        List of root maps, each with its full subtree attached.

        Raises:
        -------
        NonexistantDirectory : `maps_dir` is missing
        NonexistantFile : the map tree file or a referenced map file is missing
        ParseError : the map tree file or a map file is malformed
        """
        maps_dir = Path(maps_dir)
        if not maps_dir.is_dir():
            raise NonexistantDirectory(maps_dir)

        nodes = self.hierarchy_codec.decode(hierarchy_path)

        seen: Set[int] = set()
        for node in nodes:
            for record in node.walk():
                if record.id in seen:
                    logger.warning("Map ID %d appears more than once in %s", record.id, hierarchy_path)
                seen.add(record.id)

        roots = [self._load_node(maps_dir, node, None) for node in nodes]
        logger.info("Loaded %d maps in %d trees from %s", len(seen), len(roots), maps_dir)
        return roots

    def _load_node(self, maps_dir: Path, node: MapNode,
                   parent: Optional[MapEntity]) -> MapEntity:
        map_ = self.map_codec.decode(maps_dir / self.map_codec.format_filename(node.id))
        map_.set_parent(parent)

        for child in node.children:
            self._load_node(maps_dir, child, map_)

        return map_

    def check_map_ids(self, *roots: MapEntity) -> None:
        """
        Make sure no id occurs twice anywhere in the trees below `roots`.

        Raises:
        -------
        DuplicateMapID : on the first id seen a second time
        """
        seen: Set[int] = set()
        for root in roots:
            for map_ in root.traverse(include_self=True):
                if map_.id in seen:
                    raise DuplicateMapID(map_.id)
                seen.add(map_.id)

    def save_tree(self, maps_dir: Union[str, Path], hierarchy_path: Union[str, Path],
                  *roots: MapEntity) -> None:
        """
        Write the map tree file and all maps of the given trees.

        Steps:
            1. validate the ids (nothing is written if this fails)
            2. delete everything inside `maps_dir`
            3. write the map tree file
            4. write every map file

        A failure during steps 2-4 (disk full, permissions) leaves the
        directory partially written; there is no rollback.

        Raises:
        -------
        NonexistantDirectory : `maps_dir` or the map tree file's directory
            is missing
        DuplicateMapID : an id occurs more than once; the disk is untouched
        """
        maps_dir = Path(maps_dir)
        hierarchy_path = Path(hierarchy_path)
        if not maps_dir.is_dir():
            raise NonexistantDirectory(maps_dir)
        if not hierarchy_path.parent.is_dir():
            raise NonexistantDirectory(hierarchy_path.parent)

        self.check_map_ids(*roots)

        for entry in maps_dir.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()

        self.hierarchy_codec.encode(roots, hierarchy_path)

        count = 0
        for root in roots:
            for map_ in root.traverse(include_self=True):
                self.map_codec.encode(map_, maps_dir)
                count += 1

        logger.info("Saved %d maps in %d trees to %s", count, len(roots), maps_dir)


_default_service = MapTreeService()


def load_tree(maps_dir: Union[str, Path], hierarchy_path: Union[str, Path]) -> List[MapEntity]:
    """MapTreeService.load_tree() with the default codecs."""
    return _default_service.load_tree(maps_dir, hierarchy_path)


def save_tree(maps_dir: Union[str, Path], hierarchy_path: Union[str, Path],
              *roots: MapEntity) -> None:
    """MapTreeService.save_tree() with the default codecs."""
    _default_service.save_tree(maps_dir, hierarchy_path, *roots)
