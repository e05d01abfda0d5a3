"""
Typed notifications emitted by maps and projects.

Every notification is a frozen dataclass carrying the object that emitted
it plus the event's payload. Each event class has a `type` tag from
EventType so observers can filter without isinstance() chains.

Example usage:

    def on_child(event: ChildAdded):
        print(f"{event.emitter.id} gained {event.new_child.id}")

    root.observe(on_child, EventType.CHILD_ADDED)
    child.mount(root)   # prints "1 gained 2"

Observers are called synchronously, in the order they registered. The
event plumbing isn't thread-safe; emit and register from one thread.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, List, Optional, Tuple, Union


class EventType(str, Enum):
    """Tags of all notifications. Being a str enum, "child_added" matches too."""

    PARENT_CHANGED = "parent_changed"
    CHILD_ADDED = "child_added"
    CHILD_REMOVED = "child_removed"
    PROPERTY_CHANGED = "property_changed"
    SIZE_CHANGED = "size_changed"
    TILESET_ADDED = "tileset_added"
    LAYER_ADDED = "layer_added"
    OBJECT_ADDED = "object_added"
    ROOT_MAP_ADDED = "root_map_added"
    ROOT_MAP_REMOVED = "root_map_removed"


@dataclass(frozen=True)
class Event:
    """Base event class."""

    type: ClassVar[EventType]
    emitter: Any


# -----------------------------------------------------------------------------
# Map events
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class ParentChanged(Event):
    """The emitting map got a new parent (None when it became a root map)."""

    type: ClassVar[EventType] = EventType.PARENT_CHANGED
    new_parent: Any


@dataclass(frozen=True)
class ChildAdded(Event):
    type: ClassVar[EventType] = EventType.CHILD_ADDED
    new_child: Any


@dataclass(frozen=True)
class ChildRemoved(Event):
    type: ClassVar[EventType] = EventType.CHILD_REMOVED
    old_child: Any


@dataclass(frozen=True)
class PropertyChanged(Event):
    type: ClassVar[EventType] = EventType.PROPERTY_CHANGED
    property: str
    new_value: str


@dataclass(frozen=True)
class SizeChanged(Event):
    type: ClassVar[EventType] = EventType.SIZE_CHANGED
    width: int
    height: int


@dataclass(frozen=True)
class TilesetAdded(Event):
    type: ClassVar[EventType] = EventType.TILESET_ADDED
    gid: int
    tileset: Any


@dataclass(frozen=True)
class LayerAdded(Event):
    type: ClassVar[EventType] = EventType.LAYER_ADDED
    layer: Any


@dataclass(frozen=True)
class ObjectAdded(Event):
    type: ClassVar[EventType] = EventType.OBJECT_ADDED
    layer: Any
    object: Any


# -----------------------------------------------------------------------------
# Project events
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class RootMapAdded(Event):
    type: ClassVar[EventType] = EventType.ROOT_MAP_ADDED
    map: Any


@dataclass(frozen=True)
class RootMapRemoved(Event):
    type: ClassVar[EventType] = EventType.ROOT_MAP_REMOVED
    map: Any


Callback = Callable[[Event], None]


class Observable:
    """
    Mixin giving a class a list of observers.

    Two ways to listen:

    - observe(callback, event_type=None): a callable receiving the event,
      optionally only for one EventType.
    - add_observer(obj): any object with an update(event) method, receiving
      every event.
    """

    def _observer_list(self) -> List[Tuple[Optional[EventType], Callback]]:
        # Created lazily so subclasses needn't call a mixin __init__
        try:
            return self.__dict__["_observers"]
        except KeyError:
            observers: List[Tuple[Optional[EventType], Callback]] = []
            self.__dict__["_observers"] = observers
            return observers

    def observe(self, callback: Callback,
                event_type: Optional[Union[EventType, str]] = None) -> Callback:
        """Register `callback`; returns it so it can be removed later."""
        if event_type is not None:
            event_type = EventType(event_type)
        self._observer_list().append((event_type, callback))
        return callback

    def add_observer(self, observer: Any) -> None:
        """Register an object whose update(event) gets every event."""
        self._observer_list().append((None, observer.update))

    def remove_observer(self, observer: Any) -> None:
        """Remove a callback or update()-object. Unknown observers are ignored."""
        target = getattr(observer, "update", observer)
        self.__dict__["_observers"] = [
            (tag, cb) for tag, cb in self._observer_list()
            if cb != target and cb != observer
        ]

    def count_observers(self) -> int:
        return len(self._observer_list())

    def notify_observers(self, event: Event) -> None:
        # Copy so callbacks may (un)register observers while being notified
        for event_type, callback in list(self._observer_list()):
            if event_type is None or event_type == event.type:
                callback(event)
