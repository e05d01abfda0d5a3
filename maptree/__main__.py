#!/usr/bin/env python3

"""
Map tree inspector

Usage:
    python -m maptree <maps_dir> [maps.xml] [-v]

Loads the map tree stored in <maps_dir> (the map tree file defaults to
<maps_dir>/maps.xml), prints it, and checks that no map ID is used twice.

Options:
    -v    Verbose logging
"""

import logging
import sys
from pathlib import Path


def print_tree(roots, out=None):
    out = out or sys.stdout

    def show(map_, depth):
        out.write(f"{'  ' * depth}{map_.id:4d}  {map_.name}  "
                  f"({map_.width}x{map_.height}, {len(map_.layers)} layers, "
                  f"{len(map_.objects)} objects)\n")
        for child in map_.children:
            show(child, depth + 1)

    for root in roots:
        show(root, 0)


def main(argv=None):
    from .conf import settings
    from .errors import MapTreeError
    from .map import MapTreeService

    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "-v" in args
    args = [arg for arg in args if arg != "-v"]

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args or len(args) > 2:
        print(__doc__)
        return 1

    maps_dir = Path(args[0])
    maps_file = Path(args[1]) if len(args) > 1 else maps_dir / settings.MAPS_FILE_NAME

    service = MapTreeService()
    try:
        roots = service.load_tree(maps_dir, maps_file)
        print_tree(roots)
        service.check_map_ids(*roots)
    except MapTreeError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
