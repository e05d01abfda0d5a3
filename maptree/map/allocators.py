"""
Per-map id sources.

ObjectIdAllocator hands out ids for placed objects; TilesetGidAllocator
hands out the GID ranges tilesets occupy. Both guard their counter with a
lock, since objects may be created from more than one place during an
editing session. Nothing else in the map tree is locked.
"""

import threading


class ObjectIdAllocator:
    """
    Monotonically increasing object ids.

    `last` is the most recently issued id: 0 for a fresh map, or the
    highest id already used when a map was read from its file.
    """

    def __init__(self, last: int = 0):
        self._last = last
        self._lock = threading.Lock()

    @property
    def last(self) -> int:
        return self._last

    def next(self) -> int:
        """Issue the next id."""
        with self._lock:
            self._last += 1
            return self._last

    def reserve(self, object_id: int):
        """Mark an id chosen elsewhere as used so next() never issues it."""
        with self._lock:
            self._last = max(self._last, object_id)

    def __repr__(self):
        return f"<ObjectIdAllocator last={self._last}>"


class TilesetGidAllocator:
    """
    The first free GID of a map.

    Binding a tileset of N tiles at the frontier moves the frontier N
    further, so automatically placed tilesets never overlap:

        alloc = TilesetGidAllocator()   # frontier 1
        alloc.allocate(144)             # -> 1, frontier 145
        alloc.allocate(144)             # -> 145, frontier 289

    GIDs chosen by hand are not reported here, so a tileset bound manually
    inside [1, frontier) or beyond it can collide with later automatic
    bindings.
    """

    def __init__(self, frontier: int = 1):
        self._frontier = frontier
        self._lock = threading.Lock()

    def next(self) -> int:
        """The GID the next automatically bound tileset will start at."""
        return self._frontier

    def advance(self, count: int):
        """Move the frontier past `count` newly bound tiles."""
        if count < 0:
            raise ValueError(f"can't advance by a negative tile count ({count})")
        with self._lock:
            self._frontier += count

    def allocate(self, count: int) -> int:
        """Reserve `count` GIDs at the frontier and return the first one."""
        if count < 0:
            raise ValueError(f"can't allocate a negative tile count ({count})")
        with self._lock:
            gid = self._frontier
            self._frontier += count
            return gid

    def __repr__(self):
        return f"<TilesetGidAllocator next={self._frontier}>"
