"""Tests for the observer plumbing."""

import unittest

from maptree.events import (
    ChildAdded, EventType, Observable, PropertyChanged, SizeChanged,
)


class ObservedThing(Observable):
    """Emits a property change or a size change on demand."""

    def rename(self, value):
        self.notify_observers(PropertyChanged(self, "name", value))

    def grow(self):
        self.notify_observers(SizeChanged(self, 2, 3))


class AnObserver:
    def __init__(self):
        self.results = []

    def update(self, event):
        self.results.append(event.type)


class TestObservable(unittest.TestCase):
    def setUp(self) -> None:
        self.target = ObservedThing()
        self.results = []

    def test_observe_without_filter_gets_everything_in_order(self) -> None:
        self.target.observe(lambda event: self.results.append(event.type))
        self.target.rename("a")
        self.target.grow()
        self.target.rename("b")

        assert self.results == [
            EventType.PROPERTY_CHANGED, EventType.SIZE_CHANGED, EventType.PROPERTY_CHANGED,
        ]

    def test_observe_with_filter(self) -> None:
        self.target.observe(lambda event: self.results.append(event.type), EventType.SIZE_CHANGED)
        self.target.rename("a")
        self.target.grow()
        self.target.rename("b")

        assert self.results == [EventType.SIZE_CHANGED]

    def test_filter_accepts_plain_strings(self) -> None:
        self.target.observe(lambda event: self.results.append(event.new_value), "property_changed")
        self.target.grow()
        self.target.rename("a")

        assert self.results == ["a"]

    def test_unknown_filter_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.target.observe(print, "exploded")

    def test_event_carries_emitter(self) -> None:
        self.target.observe(self.results.append)
        self.target.rename("a")

        assert self.results[0].emitter is self.target
        assert self.results[0].property == "name"

    def test_observers_run_in_registration_order(self) -> None:
        self.target.observe(lambda event: self.results.append("first"))
        self.target.observe(lambda event: self.results.append("second"))
        self.target.grow()

        assert self.results == ["first", "second"]

    def test_update_objects(self) -> None:
        observer = AnObserver()
        self.target.add_observer(observer)
        self.target.rename("a")
        self.target.grow()

        assert observer.results == [EventType.PROPERTY_CHANGED, EventType.SIZE_CHANGED]

    def test_remove_observer(self) -> None:
        observer = AnObserver()
        callback = self.target.observe(self.results.append)
        self.target.add_observer(observer)
        assert self.target.count_observers() == 2

        self.target.remove_observer(callback)
        self.target.remove_observer(observer)
        self.target.grow()

        assert self.results == []
        assert observer.results == []
        assert self.target.count_observers() == 0

    def test_events_are_immutable(self) -> None:
        event = ChildAdded(self.target, None)
        with self.assertRaises(AttributeError):
            event.new_child = self.target
